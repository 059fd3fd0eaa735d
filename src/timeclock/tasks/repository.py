from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import TaskAction
from .model import TaskActivity, TaskType


class TaskTypeRepository(Protocol):
    def list_for_company(self, company_id: str, *, include_inactive: bool = False) -> Sequence[TaskType]:
        raise NotImplementedError

    def get(self, company_id: str, task_type_id: str) -> Optional[TaskType]:
        raise NotImplementedError

    def get_active_by_code(self, company_id: str, code: str) -> Optional[TaskType]:
        raise NotImplementedError

    def find_active_by_codes(self, company_id: str, codes: Sequence[str]) -> Optional[TaskType]:
        raise NotImplementedError

    def create(self, *, company_id: str, name: str, code: str) -> str:
        raise NotImplementedError

    def update(self, company_id: str, task_type_id: str, *, fields: dict) -> bool:
        raise NotImplementedError

    def delete(self, company_id: str, task_type_id: str) -> bool:
        raise NotImplementedError


class TaskActivityRepository(Protocol):
    def create(
        self,
        *,
        company_id: str,
        user_id: Optional[str],
        profile_id: str,
        task_id: str,
        task_type_id: str,
        project_id: Optional[str],
        time_entry_id: str,
        action_type: TaskAction,
        timestamp: datetime,
    ) -> str:
        raise NotImplementedError

    def get(self, activity_id: str) -> Optional[TaskActivity]:
        raise NotImplementedError

    def list_for_entry(self, time_entry_id: str) -> Sequence[TaskActivity]:
        raise NotImplementedError

    def list_recent(self, company_id: str, *, limit: int = 50) -> Sequence[TaskActivity]:
        raise NotImplementedError
