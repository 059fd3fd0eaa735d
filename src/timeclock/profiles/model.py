from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import EnrollmentStatus, ProfileStatus, Role


@dataclass(frozen=True)
class Profile:
    id: str
    company_id: Optional[str]
    user_id: Optional[str]
    first_name: Optional[str]
    last_name: Optional[str]
    display_name: Optional[str]
    email: Optional[str] = None
    phone: Optional[str] = None
    employee_id: Optional[str] = None
    department_id: Optional[str] = None
    department_name: Optional[str] = None
    pin_hash: Optional[str] = None
    pin_lookup: Optional[str] = None
    status: ProfileStatus = ProfileStatus.ACTIVE
    avatar_url: Optional[str] = None
    face_embedding: Optional[list] = None
    face_enrollment_status: EnrollmentStatus = EnrollmentStatus.NOT_ENROLLED
    face_embedding_updated_at: Optional[datetime] = None
    date_of_hire: Optional[date] = None
    role: Optional[Role] = None
    created_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == ProfileStatus.ACTIVE

    @property
    def name(self) -> str:
        if self.display_name:
            return self.display_name
        return " ".join(p for p in (self.first_name, self.last_name) if p) or "Unknown"

    def summary(self) -> dict:
        """Public kiosk view of an employee (never includes PIN state)."""
        return {
            "id": self.id,
            "profile_id": self.id,
            "user_id": self.user_id,
            "display_name": self.name,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "employee_id": self.employee_id,
            "avatar_url": self.avatar_url,
        }


@dataclass(frozen=True)
class ProfileFilters:
    status: Optional[ProfileStatus] = None
    department_id: Optional[str] = None
    search: Optional[str] = None


@dataclass
class ImportResult:
    imported: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


# Columns an admin may change through update_profile.
EDITABLE_FIELDS = (
    "first_name",
    "last_name",
    "display_name",
    "email",
    "phone",
    "employee_id",
    "department_id",
    "avatar_url",
    "date_of_hire",
)
