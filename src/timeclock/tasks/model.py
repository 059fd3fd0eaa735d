from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import TaskAction


@dataclass(frozen=True)
class TaskType:
    id: str
    company_id: str
    name: str
    code: str
    is_active: bool = True


@dataclass(frozen=True)
class TaskActivity:
    id: str
    company_id: str
    user_id: Optional[str]
    profile_id: str
    task_id: str
    task_type_id: str
    time_entry_id: str
    action_type: TaskAction
    timestamp: datetime
    project_id: Optional[str] = None
    # joined, read-only
    employee_name: Optional[str] = None
    task_name: Optional[str] = None
    task_code: Optional[str] = None
    project_name: Optional[str] = None
