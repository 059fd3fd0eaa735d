from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from ..common.datetime_utils import format_duration


@dataclass(frozen=True)
class ReportPeriod:
    start: date
    end: date

    def label(self, fmt: str = "%a, %b %d, %Y") -> dict:
        return {"start": self.start.strftime(fmt), "end": self.end.strftime(fmt)}


@dataclass(frozen=True)
class PayrollRow:
    profile_id: str
    employee: str
    days_worked: int
    regular_minutes: int
    overtime_minutes: int
    break_minutes: int
    total_minutes: int

    @property
    def has_overtime(self) -> bool:
        return self.overtime_minutes > 0

    def formatted(self) -> dict:
        return {
            "profile_id": self.profile_id,
            "employee": self.employee,
            "days_worked": self.days_worked,
            "regular": format_duration(self.regular_minutes),
            "overtime": format_duration(self.overtime_minutes),
            "breaks": format_duration(self.break_minutes),
            "total": format_duration(self.total_minutes),
            "has_overtime": self.has_overtime,
        }


@dataclass
class HoursSummary:
    key: Optional[str]
    name: str
    total_minutes: int = 0
    entry_count: int = 0
    employee_id: Optional[str] = None
    profile_ids: set = field(default_factory=set)

    def as_dict(self) -> dict:
        return {
            "id": self.key,
            "name": self.name,
            "employee_id": self.employee_id,
            "total_minutes": self.total_minutes,
            "total_hours": round(self.total_minutes / 60, 2),
            "total": format_duration(self.total_minutes),
            "entries": self.entry_count,
            "employees": len(self.profile_ids),
        }
