from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Account:
    id: str
    email: str
    password_hash: str
    is_active: bool = True
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class UserRole:
    id: str
    user_id: Optional[str]
    profile_id: str
    role: Role


@dataclass(frozen=True)
class SessionUser:
    """What gets stored in the Flask session after a dashboard login."""

    account_id: str
    email: str
    profile_id: Optional[str]
    company_id: Optional[str]
    role: Optional[Role]
    display_name: Optional[str] = None
