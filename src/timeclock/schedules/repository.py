from __future__ import annotations

from datetime import time
from typing import Optional, Protocol, Sequence

from .model import EmployeeSchedule


class ScheduleRepository(Protocol):
    def list_for_profile(self, profile_id: str) -> Sequence[EmployeeSchedule]:
        raise NotImplementedError

    def list_for_day(self, company_id: str, day_of_week: int) -> Sequence[EmployeeSchedule]:
        raise NotImplementedError

    def upsert(
        self,
        *,
        company_id: str,
        profile_id: str,
        day_of_week: int,
        start_time: Optional[time],
        end_time: Optional[time],
        is_day_off: bool,
    ) -> str:
        """Create or update the profile's row for that weekday.

        Returns the schedule id.
        """

        raise NotImplementedError

    def delete(self, company_id: str, schedule_id: str) -> bool:
        raise NotImplementedError
