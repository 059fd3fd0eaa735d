from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..core.enums import ExecutionStatus, ReportType, ScheduleFrequency


@dataclass(frozen=True)
class ReportConfig:
    scope: str = "all"
    department_ids: tuple[str, ...] = ()
    project_ids: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "ReportConfig":
        data = data or {}
        return cls(
            scope=str(data.get("scope") or "all"),
            department_ids=tuple(str(d) for d in data.get("department_ids") or ()),
            project_ids=tuple(str(p) for p in data.get("project_ids") or ()),
        )

    def as_dict(self) -> dict:
        return {
            "scope": self.scope,
            "department_ids": list(self.department_ids),
            "project_ids": list(self.project_ids),
        }


@dataclass(frozen=True)
class ScheduledReport:
    id: str
    company_id: str
    name: str
    report_type: ReportType
    schedule_frequency: ScheduleFrequency
    schedule_time: str
    schedule_day_of_week: Optional[int] = None
    schedule_day_of_month: Optional[int] = None
    report_config: ReportConfig = field(default_factory=ReportConfig)
    is_active: bool = True
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    # joined, read-only
    company_name: Optional[str] = None
    timezone: Optional[str] = None

    @property
    def schedule_hour(self) -> int:
        return int(self.schedule_time.split(":")[0])


@dataclass(frozen=True)
class ReportRecipient:
    id: str
    scheduled_report_id: str
    email: str
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class ReportExecution:
    id: str
    scheduled_report_id: str
    executed_at: datetime
    recipients_count: int
    status: ExecutionStatus
    error_message: Optional[str] = None
    # joined, read-only
    report_name: Optional[str] = None


REPORT_TYPE_NAMES = {
    ReportType.EMPLOYEE_TIMECARD: "Employee Timecard",
    ReportType.PROJECT_TIMECARD: "Project Timecard",
    ReportType.WEEKLY_PAYROLL: "Weekly Payroll",
    ReportType.MONTHLY_PROJECT_BILLING: "Monthly Project Billing",
}
