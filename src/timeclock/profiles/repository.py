from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import EnrollmentStatus, ProfileStatus
from .model import Profile, ProfileFilters


class ProfileRepository(Protocol):
    def get(self, profile_id: str) -> Optional[Profile]:
        raise NotImplementedError

    def get_in_company(self, company_id: str, profile_id: str) -> Optional[Profile]:
        raise NotImplementedError

    def get_by_user_id(self, user_id: str) -> Optional[Profile]:
        raise NotImplementedError

    def find_by_identifier(self, company_id: str, identifier: str) -> Optional[Profile]:
        """Match employee_id, email (case-insensitive) or profile id."""
        raise NotImplementedError

    def list_for_company(self, company_id: str, filters: Optional[ProfileFilters] = None) -> Sequence[Profile]:
        raise NotImplementedError

    def find_by_pin_lookup(self, company_id: str, pin_lookup: str) -> Sequence[Profile]:
        """Profiles in the company (any status) whose PIN lookup digest matches."""
        raise NotImplementedError

    def list_admin_emails(self, company_id: str) -> Sequence[str]:
        raise NotImplementedError

    def create(self, *, fields: dict) -> str:
        raise NotImplementedError

    def update(self, profile_id: str, *, fields: dict) -> bool:
        raise NotImplementedError

    def set_status(self, profile_id: str, status: ProfileStatus) -> bool:
        raise NotImplementedError

    def set_pin(self, profile_id: str, pin_hash: Optional[str], pin_lookup: Optional[str]) -> bool:
        raise NotImplementedError

    def set_face_enrollment(
        self,
        profile_id: str,
        *,
        status: EnrollmentStatus,
        embedding: Optional[list],
    ) -> bool:
        raise NotImplementedError
