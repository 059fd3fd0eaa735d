from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Optional


@dataclass(frozen=True)
class EmployeeSchedule:
    """One weekday of an employee's recurring schedule (day_of_week: 0=Sunday)."""

    id: str
    company_id: str
    profile_id: str
    day_of_week: int
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    is_day_off: bool = False


def sunday_based_weekday(day: date) -> int:
    # date.weekday() is Monday=0
    return (day.weekday() + 1) % 7
