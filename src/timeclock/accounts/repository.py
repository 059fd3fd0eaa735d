from __future__ import annotations

from typing import Optional, Protocol

from ..core.enums import Role
from .model import Account, UserRole


class AccountRepository(Protocol):
    def get(self, account_id: str) -> Optional[Account]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[Account]:
        raise NotImplementedError

    def create(self, *, email: str, password_hash: str) -> str:
        raise NotImplementedError

    def update_password(self, account_id: str, password_hash: str) -> bool:
        raise NotImplementedError


class RoleRepository(Protocol):
    def get_for_profile(self, profile_id: str) -> Optional[UserRole]:
        raise NotImplementedError

    def assign(self, *, profile_id: str, user_id: Optional[str], role: Role) -> None:
        """Create the profile's role row, or update the existing one."""
        raise NotImplementedError
