from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AdjustmentType


@dataclass(frozen=True)
class Location:
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None


@dataclass(frozen=True)
class TimeEntry:
    id: str
    company_id: str
    profile_id: str
    user_id: Optional[str]
    start_time: datetime
    end_time: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    is_break: bool = False
    project_id: Optional[str] = None
    description: Optional[str] = None
    clock_in_photo_url: Optional[str] = None
    clock_out_photo_url: Optional[str] = None
    clock_in_latitude: Optional[float] = None
    clock_in_longitude: Optional[float] = None
    clock_in_address: Optional[str] = None
    clock_out_latitude: Optional[float] = None
    clock_out_longitude: Optional[float] = None
    clock_out_address: Optional[str] = None
    # joined, read-only
    employee_name: Optional[str] = None
    employee_id: Optional[str] = None
    department_id: Optional[str] = None
    project_name: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.end_time is None and not self.is_break


@dataclass(frozen=True)
class NewTimeEntry:
    company_id: str
    profile_id: str
    user_id: Optional[str]
    start_time: datetime
    end_time: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    is_break: bool = False
    project_id: Optional[str] = None
    description: Optional[str] = None
    photo_url: Optional[str] = None
    location: Location = Location()


@dataclass(frozen=True)
class EntryFilters:
    profile_id: Optional[str] = None
    project_ids: tuple[str, ...] = ()
    department_ids: tuple[str, ...] = ()
    include_breaks: bool = True
    closed_only: bool = False


@dataclass(frozen=True)
class TimeAdjustment:
    id: str
    company_id: str
    time_entry_id: str
    admin_user_id: Optional[str]
    affected_user_id: Optional[str]
    old_end_time: Optional[datetime]
    new_end_time: Optional[datetime]
    action_type: AdjustmentType
    reason: Optional[str]
    created_at: Optional[datetime] = None
