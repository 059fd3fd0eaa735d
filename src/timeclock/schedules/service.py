from __future__ import annotations

from typing import Any, Optional, Sequence

from ..common.datetime_utils import parse_hhmm
from ..core.actor import Actor
from ..core.exceptions import NotFoundError, ValidationError
from ..profiles.repository import ProfileRepository
from .model import EmployeeSchedule
from .repository import ScheduleRepository


class ScheduleService:
    def __init__(self, schedules: ScheduleRepository, profiles: ProfileRepository):
        self._schedules = schedules
        self._profiles = profiles

    def _check_profile(self, company_id: str, profile_id: str) -> None:
        if not self._profiles.get_in_company(company_id, profile_id):
            raise NotFoundError("Employee not found")

    def list_for_profile(self, *, actor: Actor, profile_id: str) -> Sequence[EmployeeSchedule]:
        company_id = actor.require_company()
        if not actor.is_admin and profile_id != actor.profile_id:
            profile_id = actor.profile_id or ""
        self._check_profile(company_id, profile_id)
        return self._schedules.list_for_profile(profile_id)

    def set_day(
        self,
        *,
        actor: Actor,
        profile_id: str,
        day_of_week: Any,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        is_day_off: bool = False,
    ) -> str:
        company_id = actor.require_admin()
        self._check_profile(company_id, profile_id)

        try:
            dow = int(day_of_week)
        except (TypeError, ValueError):
            raise ValidationError("day_of_week must be 0 (Sunday) to 6 (Saturday)")
        if not 0 <= dow <= 6:
            raise ValidationError("day_of_week must be 0 (Sunday) to 6 (Saturday)")

        start_t = None if is_day_off else parse_hhmm(start_time or "")
        end_t = None if is_day_off else parse_hhmm(end_time or "")
        if not is_day_off:
            if not start_t or not end_t:
                raise ValidationError("start_time and end_time are required unless it is a day off")
            if end_t <= start_t:
                raise ValidationError("End time must be after start time")

        return self._schedules.upsert(
            company_id=company_id,
            profile_id=profile_id,
            day_of_week=dow,
            start_time=start_t,
            end_time=end_t,
            is_day_off=bool(is_day_off),
        )

    def set_week(self, *, actor: Actor, profile_id: str, days: Sequence[dict]) -> Sequence[EmployeeSchedule]:
        if not days:
            raise ValidationError("At least one day is required")
        for day in days:
            self.set_day(
                actor=actor,
                profile_id=profile_id,
                day_of_week=day.get("day_of_week"),
                start_time=day.get("start_time"),
                end_time=day.get("end_time"),
                is_day_off=bool(day.get("is_day_off")),
            )
        return self._schedules.list_for_profile(profile_id)

    def delete(self, *, actor: Actor, schedule_id: str) -> None:
        company_id = actor.require_admin()
        if not self._schedules.delete(company_id, schedule_id):
            raise NotFoundError("Schedule not found")
