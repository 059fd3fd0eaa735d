from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import ReviewStatus, VerificationStatus
from .model import FaceVerification, VerificationOutcome


class FaceVerificationRepository(Protocol):
    def create(
        self,
        *,
        company_id: str,
        time_entry_id: str,
        profile_id: str,
        clock_photo_url: Optional[str],
        profile_photo_url: Optional[str],
        outcome: VerificationOutcome,
        verification_version: str,
    ) -> str:
        raise NotImplementedError

    def get(self, company_id: str, verification_id: str) -> Optional[FaceVerification]:
        raise NotImplementedError

    def latest_for_entry(self, time_entry_id: str) -> Optional[FaceVerification]:
        raise NotImplementedError

    def list_for_company(
        self,
        company_id: str,
        *,
        status: Optional[VerificationStatus] = None,
        limit: int = 200,
    ) -> Sequence[FaceVerification]:
        raise NotImplementedError

    def mark_reviewed(self, verification_id: str, *, reviewed_by: str, review_status: ReviewStatus) -> bool:
        raise NotImplementedError
