from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.rate_limit import RateLimiter, RateLimitResult
from ..common.validators import require_email, require_fields, require_min_length, require_non_empty
from ..core.actor import Actor
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, NotFoundError, RateLimitError, ValidationError
from ..profiles.model import Profile
from ..profiles.repository import ProfileRepository
from .pins import PinHasher
from .model import SessionUser
from .repository import AccountRepository, RoleRepository

logger = logging.getLogger(__name__)


def _parse_role(value: Optional[str]) -> Optional[Role]:
    if not value:
        return None
    try:
        return Role(value)
    except ValueError:
        raise ValidationError(f"Invalid role: {value}")


def _password_matches(password_hash: str, password: Optional[str]) -> bool:
    try:
        return check_password_hash(password_hash, password or "")
    except ValueError:
        # placeholder or corrupted hash
        return False


class AuthService:
    """Use cases: dashboard login, signup and auth accounts for existing employees."""

    def __init__(self, accounts: AccountRepository, roles: RoleRepository, profiles: ProfileRepository):
        self._accounts = accounts
        self._roles = roles
        self._profiles = profiles

    def _session_user(self, account_id: str, email: str) -> SessionUser:
        profile = self._profiles.get_by_user_id(account_id)
        return SessionUser(
            account_id=account_id,
            email=email,
            profile_id=profile.id if profile else None,
            company_id=profile.company_id if profile else None,
            role=profile.role if profile else None,
            display_name=profile.name if profile else None,
        )

    def authenticate(self, email: str, password: str) -> SessionUser:
        account = self._accounts.get_by_email((email or "").strip())
        if not account or not account.is_active:
            raise AuthenticationError("Invalid email or password")

        if not _password_matches(account.password_hash, password):
            logger.warning("[AUDIT] Failed dashboard login for %s", account.email)
            raise AuthenticationError("Invalid email or password")

        return self._session_user(account.id, account.email)

    def refresh(self, account_id: str) -> SessionUser:
        account = self._accounts.get(account_id)
        if not account or not account.is_active:
            raise AuthenticationError("Session expired")
        return self._session_user(account.id, account.email)

    def signup(self, *, email: str, password: str, first_name: str, last_name: str) -> SessionUser:
        """Create a dashboard account plus a company-less profile (company comes later)."""
        email = require_email(email)
        require_min_length(password, "Password", 6)
        if self._accounts.get_by_email(email):
            raise ValidationError("An account with this email already exists")

        account_id = self._accounts.create(email=email, password_hash=generate_password_hash(password))
        first = (first_name or "").strip() or None
        last = (last_name or "").strip() or None
        self._profiles.create(
            fields={
                "user_id": account_id,
                "email": email,
                "first_name": first,
                "last_name": last,
                "display_name": " ".join(p for p in (first, last) if p) or email,
            }
        )
        return self._session_user(account_id, email)

    def change_password(self, *, actor: Actor, current_password: str, new_password: str) -> None:
        account = self._accounts.get(actor.account_id)
        if not account or not _password_matches(account.password_hash, current_password):
            raise AuthenticationError("Current password is incorrect")
        require_min_length(new_password, "Password", 6)
        self._accounts.update_password(account.id, generate_password_hash(new_password))

    def create_auth_account(
        self,
        *,
        actor: Actor,
        profile_id: str,
        email: str,
        password: str,
        role: Optional[str] = None,
    ) -> str:
        company_id = actor.require_admin()
        if not profile_id or not email or not password:
            raise ValidationError("profile_id, email, and password are required")

        profile = self._profiles.get_in_company(company_id, profile_id)
        if not profile:
            raise NotFoundError("Profile not found")
        if profile.user_id:
            raise ValidationError("Profile already has a login account")

        email = require_email(email)
        require_min_length(password, "Password", 6)
        if self._accounts.get_by_email(email):
            raise ValidationError("An account with this email already exists")

        role_value = _parse_role(role)
        account_id = self._accounts.create(email=email, password_hash=generate_password_hash(password))
        logger.info("Auth account %s created for profile %s", account_id, profile_id)

        self._profiles.update(profile_id, fields={"user_id": account_id, "email": email})
        if role_value is not None:
            self._roles.assign(profile_id=profile_id, user_id=account_id, role=role_value)
        elif profile.role is not None:
            self._roles.assign(profile_id=profile_id, user_id=account_id, role=profile.role)
        return account_id


@dataclass(frozen=True)
class PinAuthResult:
    profile: Profile
    limit: RateLimitResult


class PinAuthService:
    """Kiosk PIN sign-in, rate limited per company and client IP."""

    def __init__(self, profiles: ProfileRepository, limiter: RateLimiter, pins: PinHasher):
        self._profiles = profiles
        self._limiter = limiter
        self._pins = pins

    def authenticate(self, *, company_id: str, pin: str, client_ip: str) -> PinAuthResult:
        require_fields({"company_id": company_id, "pin": pin}, ("company_id", "pin"))

        key = f"pin:{company_id}:{client_ip}"
        limit = self._limiter.hit(key)
        if not limit.allowed:
            logger.warning("[SECURITY] Rate limit exceeded for PIN auth: company=%s, ip=%s", company_id, client_ip)
            raise RateLimitError(
                "Too many failed attempts. Please try again later.",
                remaining=limit.remaining,
                reset_at=limit.reset_at,
            )

        pin = require_non_empty(str(pin), "PIN")
        lookup = self._pins.lookup(company_id, pin)
        match = next(
            (
                p
                for p in self._profiles.find_by_pin_lookup(company_id, lookup)
                if p.is_active and self._pins.verify(p.pin_hash, pin)
            ),
            None,
        )

        if match is None:
            logger.warning("[AUDIT] Failed PIN attempt: company=%s, ip=%s, error=invalid_pin", company_id, client_ip)
            raise AuthenticationError(
                "Invalid PIN",
                headers=limit.headers(),
            )

        self._limiter.reset(key)
        logger.info("[AUDIT] Successful PIN auth: company=%s, profile=%s, ip=%s", company_id, match.id, client_ip)
        return PinAuthResult(profile=match, limit=limit)
