from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .enums import Role
from .exceptions import AuthorizationError, ValidationError


@dataclass(frozen=True)
class Actor:
    """The signed-in dashboard user on whose behalf a service call runs."""

    account_id: str
    profile_id: Optional[str]
    company_id: Optional[str]
    role: Optional[Role]

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def require_company(self) -> str:
        if not self.company_id:
            raise ValidationError("Company not found for user")
        return self.company_id

    def require_admin(self) -> str:
        if not self.is_admin:
            raise AuthorizationError("Admin access required")
        return self.require_company()
