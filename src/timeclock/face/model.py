from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import ReviewStatus, VerificationStatus


@dataclass(frozen=True)
class FaceVerification:
    id: str
    company_id: str
    time_entry_id: str
    profile_id: str
    status: VerificationStatus
    clock_photo_url: Optional[str] = None
    profile_photo_url: Optional[str] = None
    match_distance: Optional[float] = None
    match_reason: Optional[str] = None
    error_message: Optional[str] = None
    verification_version: Optional[str] = None
    reviewed_by: Optional[str] = None
    review_status: Optional[ReviewStatus] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    # joined, read-only
    employee_name: Optional[str] = None


@dataclass(frozen=True)
class VerificationOutcome:
    """Result of one comparison before it is stored."""

    status: VerificationStatus
    match_distance: Optional[float] = None
    match_reason: Optional[str] = None
    error_message: Optional[str] = None
