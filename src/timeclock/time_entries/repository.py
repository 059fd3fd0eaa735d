from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AdjustmentType
from .model import EntryFilters, Location, NewTimeEntry, TimeAdjustment, TimeEntry


class TimeEntryRepository(Protocol):
    def get(self, entry_id: str) -> Optional[TimeEntry]:
        raise NotImplementedError

    def find_open(
        self,
        company_id: str,
        *,
        profile_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Optional[TimeEntry]:
        """Latest entry without an end time for the profile (or auth user)."""
        raise NotImplementedError

    def create(self, entry: NewTimeEntry) -> str:
        raise NotImplementedError

    def close(
        self,
        entry_id: str,
        *,
        end_time: datetime,
        duration_minutes: int,
        photo_url: Optional[str] = None,
        location: Optional[Location] = None,
        description: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError

    def update(self, entry_id: str, *, fields: dict) -> bool:
        raise NotImplementedError

    def delete(self, company_id: str, entry_id: str) -> bool:
        raise NotImplementedError

    def list_open(self, company_id: str) -> Sequence[TimeEntry]:
        raise NotImplementedError

    def list_open_started_before(self, cutoff: datetime) -> Sequence[TimeEntry]:
        """Open entries across all companies whose start_time < cutoff."""
        raise NotImplementedError

    def list_range(
        self,
        company_id: str,
        start: datetime,
        end: datetime,
        filters: Optional[EntryFilters] = None,
    ) -> Sequence[TimeEntry]:
        """Entries with start_time in [start, end), oldest first."""
        raise NotImplementedError

    def list_with_photos(self, company_id: str) -> Sequence[TimeEntry]:
        raise NotImplementedError


class AdjustmentRepository(Protocol):
    def create(
        self,
        *,
        company_id: str,
        time_entry_id: str,
        admin_user_id: Optional[str],
        affected_user_id: Optional[str],
        old_end_time: Optional[datetime],
        new_end_time: Optional[datetime],
        action_type: AdjustmentType,
        reason: Optional[str],
    ) -> str:
        raise NotImplementedError

    def list_for_company(
        self,
        company_id: str,
        *,
        time_entry_id: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[TimeAdjustment]:
        raise NotImplementedError
