from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import (
    end_of_local_day,
    floor_minutes,
    parse_iso_datetime,
    round_minutes,
    to_local,
    utc_now,
)
from ..common.validators import optional_str, require_fields
from ..companies.repository import CompanyRepository
from ..core.actor import Actor
from ..core.constants import AUTO_CLOSE_DESCRIPTION, DEFAULT_HISTORY_LIMIT, DEFAULT_TIMEZONE, MAX_SHIFT_HOURS
from ..core.enums import AdjustmentType, ClockAction
from ..core.exceptions import NotFoundError, ValidationError
from ..notifications.mailer import Mailer
from ..notifications.templates import render
from ..profiles.repository import ProfileRepository
from ..storage.service import PhotoService
from ..tasks.service import TaskService
from .model import EntryFilters, Location, NewTimeEntry, TimeAdjustment, TimeEntry
from .repository import AdjustmentRepository, TimeEntryRepository

logger = logging.getLogger(__name__)


class TimeclockService:
    """Kiosk use cases: clock in, clock out, breaks and status checks."""

    def __init__(
        self,
        entries: TimeEntryRepository,
        profiles: ProfileRepository,
        *,
        tasks: Optional[TaskService] = None,
        photos: Optional[PhotoService] = None,
        now: Callable[[], datetime] = utc_now,
    ):
        self._entries = entries
        self._profiles = profiles
        self._tasks = tasks
        self._photos = photos
        self._now = now

    def perform(
        self,
        *,
        action: str,
        profile_id: str,
        company_id: str,
        time_entry_id: Optional[str] = None,
        photo_url: Optional[str] = None,
        location: Optional[Location] = None,
        project_id: Optional[str] = None,
    ) -> tuple[TimeEntry, str]:
        """Dispatch one kiosk action; returns the entry and a user-facing message."""
        require_fields(
            {"action": action, "profile_id": profile_id, "company_id": company_id},
            ("action", "profile_id", "company_id"),
        )
        try:
            clock_action = ClockAction(action)
        except ValueError:
            raise ValidationError("Invalid action. Use: clock_in, clock_out, or break")

        if clock_action == ClockAction.CLOCK_IN:
            entry = self.clock_in(
                profile_id=profile_id,
                company_id=company_id,
                photo_url=photo_url,
                location=location,
                project_id=project_id,
            )
            return entry, "Clocked in successfully"
        if clock_action == ClockAction.CLOCK_OUT:
            entry = self.clock_out(
                profile_id=profile_id,
                company_id=company_id,
                time_entry_id=time_entry_id,
                photo_url=photo_url,
                location=location,
            )
            return entry, "Clocked out successfully"
        return self.record_break(profile_id=profile_id, company_id=company_id), "Break recorded"

    def _active_profile(self, company_id: str, profile_id: str):
        profile = self._profiles.get_in_company(company_id, profile_id)
        if not profile:
            raise NotFoundError("Employee not found or not in this company")
        if not profile.is_active:
            raise ValidationError("Employee is not active")
        return profile

    def _store_photo(self, company_id: str, profile_id: str, photo: Optional[str]) -> Optional[str]:
        """Persist a data-URL photo once the action has passed its checks."""
        photo = optional_str(photo)
        if photo is None or self._photos is None:
            return photo
        return self._photos.store_clock_photo(company_id=company_id, profile_id=profile_id, photo=photo)

    def _reload(self, entry_id: str) -> TimeEntry:
        entry = self._entries.get(entry_id)
        if entry is None:
            raise NotFoundError("Time entry not found")
        return entry

    def clock_in(
        self,
        *,
        profile_id: str,
        company_id: str,
        photo_url: Optional[str] = None,
        location: Optional[Location] = None,
        project_id: Optional[str] = None,
    ) -> TimeEntry:
        profile = self._active_profile(company_id, profile_id)

        if self._entries.find_open(company_id, profile_id=profile_id):
            raise ValidationError("Already clocked in. Please clock out first.")

        photo_url = self._store_photo(company_id, profile_id, photo_url)

        entry_id = self._entries.create(
            NewTimeEntry(
                company_id=company_id,
                profile_id=profile_id,
                # employees without a login account are tracked by profile id
                user_id=profile.user_id or profile_id,
                start_time=self._now(),
                project_id=optional_str(project_id),
                photo_url=photo_url,
                location=location or Location(),
            )
        )
        logger.info("Clock in successful: %s (profile=%s)", entry_id, profile_id)
        return self._reload(entry_id)

    def clock_out(
        self,
        *,
        profile_id: str,
        company_id: str,
        time_entry_id: Optional[str] = None,
        photo_url: Optional[str] = None,
        location: Optional[Location] = None,
    ) -> TimeEntry:
        self._active_profile(company_id, profile_id)

        if time_entry_id:
            entry = self._entries.get(time_entry_id)
            if not entry or entry.company_id != company_id or entry.profile_id != profile_id:
                raise NotFoundError("No active time entry found. Are you clocked in?")
            if entry.end_time is not None:
                raise ValidationError("This time entry is already closed")
        else:
            entry = self._entries.find_open(company_id, profile_id=profile_id)
            if not entry:
                raise NotFoundError("No active time entry found. Are you clocked in?")

        photo_url = self._store_photo(company_id, profile_id, photo_url)
        end_time = self._now()
        self._entries.close(
            entry.id,
            end_time=end_time,
            duration_minutes=max(0, floor_minutes(entry.start_time, end_time)),
            photo_url=photo_url,
            location=location,
        )
        logger.info("Clock out successful: %s (profile=%s)", entry.id, profile_id)

        if self._tasks is not None:
            try:
                self._tasks.auto_close_tasks_on_shift_end(
                    time_entry_id=entry.id, user_id=entry.user_id, company_id=company_id
                )
            except Exception:
                # the shift itself is closed; open tasks stay visible for review
                logger.exception("Failed to auto-close tasks for entry %s", entry.id)

        return self._reload(entry.id)

    def record_break(self, *, profile_id: str, company_id: str) -> TimeEntry:
        profile = self._active_profile(company_id, profile_id)
        now = self._now()
        entry_id = self._entries.create(
            NewTimeEntry(
                company_id=company_id,
                profile_id=profile_id,
                user_id=profile.user_id or profile_id,
                start_time=now,
                end_time=now,
                duration_minutes=0,
                is_break=True,
            )
        )
        logger.info("Break recorded: %s (profile=%s)", entry_id, profile_id)
        return self._reload(entry_id)

    def check_status(
        self,
        *,
        company_id: str,
        profile_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Optional[TimeEntry]:
        if (not profile_id and not user_id) or not company_id:
            raise ValidationError("user_id or profile_id and company_id are required")
        entry = self._entries.find_open(company_id, profile_id=profile_id, user_id=None if profile_id else user_id)
        logger.debug(
            "Clock status check: company=%s profile=%s user=%s clocked_in=%s",
            company_id,
            profile_id,
            user_id,
            entry is not None,
        )
        return entry


class AdminTimeService:
    """Admin corrections to time entries, and the overtime auto-close job."""

    def __init__(
        self,
        entries: TimeEntryRepository,
        adjustments: AdjustmentRepository,
        companies: CompanyRepository,
        profiles: ProfileRepository,
        mailer: Mailer,
        *,
        now: Callable[[], datetime] = utc_now,
    ):
        self._entries = entries
        self._adjustments = adjustments
        self._companies = companies
        self._profiles = profiles
        self._mailer = mailer
        self._now = now

    def _entry_in_company(self, company_id: str, entry_id: str) -> TimeEntry:
        entry = self._entries.get(entry_id) if entry_id else None
        if not entry or entry.company_id != company_id:
            raise NotFoundError("Time entry not found")
        return entry

    def _audit(
        self,
        entry: TimeEntry,
        *,
        admin_user_id: Optional[str],
        new_end_time: Optional[datetime],
        action_type: AdjustmentType,
        reason: Optional[str],
    ) -> None:
        try:
            self._adjustments.create(
                company_id=entry.company_id,
                time_entry_id=entry.id,
                admin_user_id=admin_user_id,
                affected_user_id=entry.user_id,
                old_end_time=entry.end_time,
                new_end_time=new_end_time,
                action_type=action_type,
                reason=reason,
            )
        except Exception:
            # the entry change stands even when the audit row cannot be written
            logger.exception("Error logging %s adjustment for entry %s", action_type.value, entry.id)

    def retroactive_clockout(
        self,
        *,
        actor: Actor,
        time_entry_id: str,
        new_end_time: str,
        reason: Optional[str] = None,
    ) -> TimeEntry:
        company_id = actor.require_admin()
        require_fields(
            {"time_entry_id": time_entry_id, "new_end_time": new_end_time},
            ("time_entry_id", "new_end_time"),
            message="time_entry_id and new_end_time are required",
        )
        entry = self._entry_in_company(company_id, time_entry_id)

        new_end = parse_iso_datetime(new_end_time)
        if new_end < entry.start_time:
            raise ValidationError("End time cannot be before the clock-in time")

        self._entries.update(
            entry.id,
            fields={"end_time": new_end, "duration_minutes": round_minutes(entry.start_time, new_end)},
        )
        self._audit(
            entry,
            admin_user_id=actor.account_id,
            new_end_time=new_end,
            action_type=AdjustmentType.RETROACTIVE_CLOCKOUT,
            reason=optional_str(reason),
        )
        logger.info("[AUDIT] Retroactive clock-out of %s by %s", entry.id, actor.account_id)
        return self._entry_in_company(company_id, entry.id)

    def edit_entry(
        self,
        *,
        actor: Actor,
        time_entry_id: str,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        project_id: Optional[str] = None,
        description: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> TimeEntry:
        company_id = actor.require_admin()
        entry = self._entry_in_company(company_id, time_entry_id)

        new_start = parse_iso_datetime(start_time) if start_time else entry.start_time
        new_end = parse_iso_datetime(end_time) if end_time else entry.end_time
        if new_end is not None and new_end < new_start:
            raise ValidationError("End time cannot be before the clock-in time")

        fields: dict = {"start_time": new_start, "end_time": new_end}
        if new_end is not None:
            fields["duration_minutes"] = round_minutes(new_start, new_end)
        if project_id is not None:
            fields["project_id"] = optional_str(project_id)
        if description is not None:
            fields["description"] = optional_str(description)

        self._entries.update(entry.id, fields=fields)
        self._audit(
            entry,
            admin_user_id=actor.account_id,
            new_end_time=new_end,
            action_type=AdjustmentType.MANUAL_EDIT,
            reason=optional_str(reason),
        )
        return self._entry_in_company(company_id, entry.id)

    def delete_entry(self, *, actor: Actor, time_entry_id: str) -> None:
        company_id = actor.require_admin()
        self._entry_in_company(company_id, time_entry_id)
        self._entries.delete(company_id, time_entry_id)
        logger.info("[AUDIT] Time entry %s deleted by %s", time_entry_id, actor.account_id)

    def list_open_entries(self, *, actor: Actor) -> Sequence[TimeEntry]:
        return self._entries.list_open(actor.require_admin())

    def list_entries(
        self,
        *,
        actor: Actor,
        start: datetime,
        end: datetime,
        profile_id: Optional[str] = None,
    ) -> Sequence[TimeEntry]:
        company_id = actor.require_company()
        if not actor.is_admin:
            # non-admins only see their own time
            profile_id = actor.profile_id
        return self._entries.list_range(company_id, start, end, EntryFilters(profile_id=profile_id))

    def list_adjustments(self, *, actor: Actor, time_entry_id: Optional[str] = None) -> Sequence[TimeAdjustment]:
        return self._adjustments.list_for_company(
            actor.require_admin(), time_entry_id=time_entry_id, limit=DEFAULT_HISTORY_LIMIT
        )

    def auto_close_overtime_shifts(self, now: Optional[datetime] = None) -> dict:
        now = now or self._now()
        cutoff = now - timedelta(hours=MAX_SHIFT_HOURS)
        overtime = self._entries.list_open_started_before(cutoff)
        logger.info("Found %d overtime entries to close", len(overtime))

        if not overtime:
            return {
                "success": True,
                "message": "No overtime entries to close",
                "closed": 0,
                "closed_entry_ids": [],
                "emails_sent": 0,
            }

        by_company: "OrderedDict[str, list[TimeEntry]]" = OrderedDict()
        for entry in overtime:
            by_company.setdefault(entry.company_id, []).append(entry)

        closed: list[str] = []
        emails_sent = 0
        for company_id, entries in by_company.items():
            company = self._companies.get(company_id)
            tz_name = company.timezone if company else DEFAULT_TIMEZONE
            end_of_day = end_of_local_day(now, tz_name)

            company_closed: list[TimeEntry] = []
            for entry in entries:
                duration = floor_minutes(entry.start_time, end_of_day)
                try:
                    self._entries.close(
                        entry.id,
                        end_time=end_of_day,
                        duration_minutes=duration,
                        description=AUTO_CLOSE_DESCRIPTION,
                    )
                except Exception:
                    logger.exception("Failed to close entry %s", entry.id)
                    continue
                closed.append(entry.id)
                company_closed.append(entry)
                logger.info("Closed entry %s with duration %d minutes", entry.id, duration)
                self._audit(
                    entry,
                    admin_user_id=None,
                    new_end_time=end_of_day,
                    action_type=AdjustmentType.AUTO_CLOSE_OVERTIME,
                    reason=AUTO_CLOSE_DESCRIPTION,
                )

            if company_closed:
                emails_sent += self._notify_admins(company_id, company, tz_name, company_closed)

        logger.info("Auto-close complete. Closed %d entries, sent %d emails", len(closed), emails_sent)
        return {"success": True, "closed": len(closed), "closed_entry_ids": closed, "emails_sent": emails_sent}

    def _notify_admins(self, company_id: str, company, tz_name: str, entries: Sequence[TimeEntry]) -> int:
        admin_emails = list(self._profiles.list_admin_emails(company_id))
        logger.info("Found %d admin emails for company %s", len(admin_emails), company_id)
        if not admin_emails or not self._mailer.enabled:
            return 0

        rows = [
            {
                "employee": e.employee_name or "Unknown Employee",
                "employee_id": e.employee_id or "N/A",
                "project": e.project_name or "No Project",
                "clock_in": to_local(e.start_time, tz_name).strftime("%m/%d/%y, %I:%M %p"),
            }
            for e in entries
        ]
        html = render(
            "email/auto_close.html",
            rows=rows,
            max_hours=MAX_SHIFT_HOURS,
            company_name=company.company_name if company else "Your Company",
        )
        try:
            self._mailer.send(
                to=admin_emails,
                subject=f"Auto Clock-Out: {len(entries)} employee(s) exceeded {MAX_SHIFT_HOURS}-hour shift limit",
                html=html,
            )
        except Exception:
            logger.exception("Failed to send admin notification email for company %s", company_id)
            return 0
        return len(admin_emails)
