from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import RequestStatus, TimeOffType


@dataclass(frozen=True)
class TimeOffRequest:
    id: str
    company_id: str
    profile_id: str
    type: TimeOffType
    start_date: date
    end_date: date
    reason: str
    status: RequestStatus
    hours_requested: Optional[Decimal] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    # joined, read-only
    employee_name: Optional[str] = None
