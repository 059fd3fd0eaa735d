from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import utc_now
from ..common.validators import optional_str, require_fields, require_non_empty
from ..core.actor import Actor
from ..core.constants import AUTO_OTHER, OTHER_TASK_CODES
from ..core.enums import TaskAction
from ..core.exceptions import NotFoundError, ValidationError
from .model import TaskActivity, TaskType
from .repository import TaskActivityRepository, TaskTypeRepository

logger = logging.getLogger(__name__)

_ACTIVITY_FIELDS = ("user_id", "profile_id", "task_id", "company_id", "time_entry_id", "task_type_id", "action_type")


class TaskService:
    def __init__(
        self,
        task_types: TaskTypeRepository,
        activities: TaskActivityRepository,
        *,
        now: Callable[[], datetime] = utc_now,
    ):
        self._task_types = task_types
        self._activities = activities
        self._now = now

    def verify_task(self, *, task_code: str, company_id: str) -> Optional[TaskType]:
        """Active task type for a scanned/typed code, or None."""
        require_fields(
            {"task_code": task_code, "company_id": company_id},
            ("task_code", "company_id"),
            message="task_code and company_id are required",
        )
        return self._task_types.get_active_by_code(company_id, str(task_code).strip())

    def record_task_activity(
        self,
        *,
        user_id: str,
        profile_id: str,
        task_id: str,
        company_id: str,
        time_entry_id: str,
        task_type_id: str,
        action_type: str,
        project_id: Optional[str] = None,
    ) -> Optional[TaskActivity]:
        """Insert a start/finish row. Returns None when ``auto-other`` has no task type to resolve to."""
        payload = {
            "user_id": user_id,
            "profile_id": profile_id,
            "task_id": task_id,
            "company_id": company_id,
            "time_entry_id": time_entry_id,
            "task_type_id": task_type_id,
            "action_type": action_type,
        }
        require_fields(payload, _ACTIVITY_FIELDS, message=f"Required fields: {', '.join(_ACTIVITY_FIELDS)}")
        try:
            action = TaskAction(action_type)
        except ValueError:
            raise ValidationError("action_type must be start or finish")

        if task_id == AUTO_OTHER or task_type_id == AUTO_OTHER:
            other = self._task_types.find_active_by_codes(company_id, OTHER_TASK_CODES)
            if other is None:
                logger.info("No Other task type configured for company %s; skipping", company_id)
                return None
            task_id = task_type_id = other.id

        activity_id = self._activities.create(
            company_id=company_id,
            user_id=user_id,
            profile_id=profile_id,
            task_id=task_id,
            task_type_id=task_type_id,
            project_id=optional_str(project_id),
            time_entry_id=time_entry_id,
            action_type=action,
            timestamp=self._now(),
        )
        activity = self._activities.get(activity_id)
        if activity is None:
            raise NotFoundError("Task activity not found")
        return activity

    def auto_close_tasks_on_shift_end(
        self,
        *,
        time_entry_id: str,
        user_id: Optional[str],
        company_id: str,
    ) -> list[str]:
        """Finish every task started during the entry that has no matching finish."""
        require_fields(
            {"time_entry_id": time_entry_id, "user_id": user_id, "company_id": company_id},
            ("time_entry_id", "user_id", "company_id"),
            message="time_entry_id, user_id, and company_id are required",
        )
        activities = [
            a for a in self._activities.list_for_entry(time_entry_id) if a.user_id == user_id
        ]
        finished = Counter(a.task_id for a in activities if a.action_type == TaskAction.FINISH)

        closed: list[str] = []
        now = self._now()
        for start in (a for a in activities if a.action_type == TaskAction.START):
            if finished[start.task_id] > 0:
                finished[start.task_id] -= 1
                continue
            self._activities.create(
                company_id=start.company_id,
                user_id=start.user_id,
                profile_id=start.profile_id,
                task_id=start.task_id,
                task_type_id=start.task_type_id,
                project_id=start.project_id,
                time_entry_id=start.time_entry_id,
                action_type=TaskAction.FINISH,
                timestamp=now,
            )
            closed.append(start.task_id)

        if closed:
            logger.info("Auto-closed %d task(s) for entry %s", len(closed), time_entry_id)
        return closed

    def recent_activity(self, *, actor: Actor, limit: int = 50) -> Sequence[TaskActivity]:
        return self._activities.list_recent(actor.require_company(), limit=limit)

    # -------- task types --------
    def list_task_types(self, *, actor: Actor, include_inactive: bool = False) -> Sequence[TaskType]:
        return self._task_types.list_for_company(actor.require_company(), include_inactive=include_inactive)

    def create_task_type(self, *, actor: Actor, name: str, code: str) -> TaskType:
        company_id = actor.require_admin()
        name = require_non_empty(name, "Task name")
        code = require_non_empty(code, "Task code")
        if self._task_types.get_active_by_code(company_id, code):
            raise ValidationError("Task code already exists")
        task_type_id = self._task_types.create(company_id=company_id, name=name, code=code)
        task_type = self._task_types.get(company_id, task_type_id)
        if task_type is None:
            raise NotFoundError("Task type not found")
        return task_type

    def update_task_type(self, *, actor: Actor, task_type_id: str, fields: dict) -> TaskType:
        company_id = actor.require_admin()
        if not self._task_types.get(company_id, task_type_id):
            raise NotFoundError("Task type not found")
        changes: dict = {}
        if "name" in fields:
            changes["name"] = require_non_empty(fields["name"], "Task name")
        if "code" in fields:
            changes["code"] = require_non_empty(fields["code"], "Task code")
        if "is_active" in fields:
            changes["is_active"] = int(bool(fields["is_active"]))
        self._task_types.update(company_id, task_type_id, fields=changes)
        task_type = self._task_types.get(company_id, task_type_id)
        if task_type is None:
            raise NotFoundError("Task type not found")
        return task_type

    def delete_task_type(self, *, actor: Actor, task_type_id: str) -> None:
        company_id = actor.require_admin()
        if not self._task_types.delete(company_id, task_type_id):
            raise NotFoundError("Task type not found")
