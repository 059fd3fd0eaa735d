from __future__ import annotations

import csv
import io
import logging
from datetime import date, datetime, timedelta
from typing import Callable, Optional, Sequence

import pandas as pd

from ..common.datetime_utils import day_bounds_utc, format_duration, to_local, utc_now
from ..companies.repository import CompanyRepository
from ..core.actor import Actor
from ..core.constants import DEFAULT_REPORT_DAYS, DEFAULT_TIMEZONE
from ..core.exceptions import ValidationError
from ..profiles.repository import ProfileRepository
from ..schedules.model import sunday_based_weekday
from ..schedules.repository import ScheduleRepository
from ..time_entries.model import EntryFilters, TimeEntry
from ..time_entries.repository import TimeEntryRepository
from .aggregation import employee_label, group_entries, hours_by_employee, hours_by_project, payroll_rows
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator
from .model import PayrollRow

logger = logging.getLogger(__name__)

DETAIL_COLUMNS = [
    "Employee",
    "Employee ID",
    "Project",
    "Date",
    "Clock In",
    "Clock Out",
    "Duration",
    "Hours",
    "Type",
    "Description",
]


class ReportService:
    """Live dashboard reports over a company's time entries."""

    def __init__(
        self,
        entries: TimeEntryRepository,
        profiles: ProfileRepository,
        schedules: ScheduleRepository,
        companies: CompanyRepository,
        *,
        calculator: Optional[PayrollCalculator] = None,
        now: Callable[[], datetime] = utc_now,
    ):
        self._entries = entries
        self._profiles = profiles
        self._schedules = schedules
        self._companies = companies
        self._calculator = calculator or StandardPayrollCalculator()
        self._now = now

    # -------- helpers --------
    def _timezone(self, company_id: str) -> str:
        company = self._companies.get(company_id)
        return company.timezone if company else DEFAULT_TIMEZONE

    def today(self, company_id: str) -> date:
        return to_local(self._now(), self._timezone(company_id)).date()

    def resolve_range(self, company_id: str, start: Optional[date], end: Optional[date]) -> tuple[date, date]:
        """Default to the last DEFAULT_REPORT_DAYS local days, today included."""
        end = end or self.today(company_id)
        start = start or end - timedelta(days=DEFAULT_REPORT_DAYS - 1)
        if end < start:
            raise ValidationError("End date must be on or after start date")
        return start, end

    def _entries_between(
        self,
        company_id: str,
        start: date,
        end: date,
        filters: Optional[EntryFilters] = None,
    ) -> Sequence[TimeEntry]:
        tz_name = self._timezone(company_id)
        range_start, _ = day_bounds_utc(start, tz_name)
        _, range_end = day_bounds_utc(end, tz_name)
        return self._entries.list_range(company_id, range_start, range_end, filters)

    # -------- summaries --------
    def employee_hours(self, *, actor: Actor, start: Optional[date] = None, end: Optional[date] = None) -> list[dict]:
        company_id = actor.require_admin()
        start, end = self.resolve_range(company_id, start, end)
        entries = self._entries_between(company_id, start, end, EntryFilters(include_breaks=False, closed_only=True))
        return [s.as_dict() for s in hours_by_employee(entries, self._calculator)]

    def project_hours(self, *, actor: Actor, start: Optional[date] = None, end: Optional[date] = None) -> list[dict]:
        company_id = actor.require_admin()
        start, end = self.resolve_range(company_id, start, end)
        entries = self._entries_between(company_id, start, end, EntryFilters(include_breaks=False, closed_only=True))
        return [s.as_dict() for s in hours_by_project(entries, self._calculator)]

    def payroll(self, *, actor: Actor, start: Optional[date] = None, end: Optional[date] = None) -> list[PayrollRow]:
        company_id = actor.require_admin()
        start, end = self.resolve_range(company_id, start, end)
        entries = self._entries_between(company_id, start, end)
        return payroll_rows(entries, self._calculator, self._timezone(company_id))

    # -------- daily timecard --------
    def daily_timecard(self, *, actor: Actor, day: Optional[date] = None) -> list[dict]:
        company_id = actor.require_admin()
        tz_name = self._timezone(company_id)
        day = day or self.today(company_id)
        entries = self._entries_between(company_id, day, day)

        breaks: dict[str, int] = {}
        for e in entries:
            if e.is_break:
                breaks[e.profile_id] = breaks.get(e.profile_id, 0) + 1

        cards: list[dict] = []
        for profile_id, shifts in group_entries(entries, by="profile").items():
            first_in = min(s.start_time for s in shifts)
            closed = [s.end_time for s in shifts if s.end_time is not None]
            total = sum(self._calculator.worked_minutes(s) for s in shifts)
            cards.append(
                {
                    "profile_id": profile_id,
                    "employee": employee_label(shifts[0]),
                    "employee_id": shifts[0].employee_id,
                    "entries": [self._detail_row(s, tz_name) for s in shifts],
                    "first_in": to_local(first_in, tz_name).strftime("%I:%M %p"),
                    "last_out": to_local(max(closed), tz_name).strftime("%I:%M %p") if closed else None,
                    "is_clocked_in": any(s.is_open for s in shifts),
                    "breaks": breaks.get(profile_id, 0),
                    "total_minutes": total,
                    "total": format_duration(total),
                }
            )
        cards.sort(key=lambda c: c["employee"].lower())
        return cards

    # -------- details & exports --------
    def _detail_row(self, e: TimeEntry, tz_name: str) -> dict:
        start_local = to_local(e.start_time, tz_name)
        minutes = self._calculator.worked_minutes(e)
        return {
            "Employee": employee_label(e),
            "Employee ID": e.employee_id or "",
            "Project": e.project_name or "",
            "Date": start_local.strftime("%Y-%m-%d"),
            "Clock In": start_local.strftime("%I:%M %p"),
            "Clock Out": to_local(e.end_time, tz_name).strftime("%I:%M %p") if e.end_time else "Open",
            "Duration": format_duration(minutes),
            "Hours": round(minutes / 60, 2),
            "Type": "Break" if e.is_break else "Shift",
            "Description": e.description or "",
        }

    def time_entry_details(
        self,
        *,
        actor: Actor,
        start: Optional[date] = None,
        end: Optional[date] = None,
        profile_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> list[dict]:
        company_id = actor.require_admin()
        start, end = self.resolve_range(company_id, start, end)
        filters = EntryFilters(profile_id=profile_id, project_ids=(project_id,) if project_id else ())
        tz_name = self._timezone(company_id)
        return [self._detail_row(e, tz_name) for e in self._entries_between(company_id, start, end, filters)]

    def export_csv(self, *, actor: Actor, start: Optional[date] = None, end: Optional[date] = None, **filters) -> bytes:
        rows = self.time_entry_details(actor=actor, start=start, end=end, **filters)
        output = io.StringIO()
        writer = csv.DictWriter(output, fieldnames=DETAIL_COLUMNS, quoting=csv.QUOTE_ALL)
        writer.writeheader()
        writer.writerows(rows)
        return output.getvalue().encode("utf-8-sig")

    def export_excel(self, *, actor: Actor, start: Optional[date] = None, end: Optional[date] = None, **filters) -> bytes:
        rows = self.time_entry_details(actor=actor, start=start, end=end, **filters)
        df = pd.DataFrame(rows, columns=DETAIL_COLUMNS)

        output = io.BytesIO()
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name="Time Entries")
        return output.getvalue()

    # -------- un-clocked users --------
    def unclocked_users(self, *, actor: Actor, day: Optional[date] = None) -> list[dict]:
        """Active employees scheduled to work ``day`` who have no shift that day."""
        company_id = actor.require_admin()
        day = day or self.today(company_id)

        scheduled = [s for s in self._schedules.list_for_day(company_id, sunday_based_weekday(day)) if not s.is_day_off]
        if not scheduled:
            return []

        clocked = {e.profile_id for e in self._entries_between(company_id, day, day) if not e.is_break}
        out: list[dict] = []
        for s in scheduled:
            if s.profile_id in clocked:
                continue
            profile = self._profiles.get_in_company(company_id, s.profile_id)
            if profile is None or not profile.is_active:
                continue
            out.append(
                {
                    "profile_id": profile.id,
                    "employee": profile.name,
                    "employee_id": profile.employee_id,
                    "department": profile.department_name,
                    "scheduled_start": s.start_time,
                    "scheduled_end": s.end_time,
                }
            )
        out.sort(key=lambda r: (r["scheduled_start"] is None, r["scheduled_start"], r["employee"].lower()))
        logger.debug("Un-clocked users for %s on %s: %d", company_id, day, len(out))
        return out
