from __future__ import annotations

import csv
import io
import logging
from typing import Iterable, Optional, Sequence

from werkzeug.security import generate_password_hash

from ..accounts.pins import PinHasher
from ..accounts.repository import AccountRepository, RoleRepository
from ..badges.urls import extract_profile_id
from ..common.rate_limit import RateLimiter
from ..common.validators import optional_str, require_email, require_fields, require_min_length, require_pin
from ..companies.repository import DepartmentRepository
from ..core.actor import Actor
from ..core.enums import EnrollmentStatus, ProfileStatus, Role
from ..core.exceptions import NotFoundError, RateLimitError, ValidationError
from .model import EDITABLE_FIELDS, ImportResult, Profile, ProfileFilters
from .repository import ProfileRepository

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = ["Name", "Email", "Role", "Status", "Department", "Phone", "Employee ID", "First Name", "Last Name"]


def _role(value: Optional[str]) -> Optional[Role]:
    if not value:
        return None
    try:
        return Role(value)
    except ValueError:
        raise ValidationError(f"Invalid role: {value}")


class ProfileService:
    """Use cases: manage employees of a company (admin) and kiosk lookups."""

    def __init__(
        self,
        profiles: ProfileRepository,
        accounts: AccountRepository,
        roles: RoleRepository,
        departments: DepartmentRepository,
        *,
        lookup_limiter: RateLimiter,
        pins: PinHasher,
    ):
        self._profiles = profiles
        self._accounts = accounts
        self._roles = roles
        self._departments = departments
        self._lookup_limiter = lookup_limiter
        self._pins = pins

    # -------- helpers --------
    def _require_profile(self, company_id: str, profile_id: str) -> Profile:
        profile = self._profiles.get_in_company(company_id, profile_id)
        if not profile:
            raise NotFoundError("Employee not found")
        return profile

    def _unique_pin_lookup(self, company_id: str, pin: str, *, exclude_profile_id: Optional[str] = None) -> str:
        """Return the lookup digest for a PIN no other profile in the company holds, active or not."""
        lookup = self._pins.lookup(company_id, pin)
        for other in self._profiles.find_by_pin_lookup(company_id, lookup):
            if other.id != exclude_profile_id:
                raise ValidationError("PIN is already in use by another employee")
        return lookup

    def _check_department(self, company_id: str, department_id: Optional[str]) -> None:
        if department_id and not self._departments.get(company_id, department_id):
            raise ValidationError("Department not found")

    # -------- CRUD --------
    def create_user(
        self,
        *,
        actor: Actor,
        first_name: str,
        last_name: str,
        email: Optional[str] = None,
        display_name: Optional[str] = None,
        phone: Optional[str] = None,
        department_id: Optional[str] = None,
        employee_id: Optional[str] = None,
        role: Optional[str] = None,
        pin: Optional[str] = None,
        create_auth_account: bool = False,
        password: Optional[str] = None,
    ) -> Profile:
        company_id = actor.require_admin()
        first = optional_str(first_name)
        last = optional_str(last_name)
        if not first and not last:
            raise ValidationError("First or last name is required")

        email = require_email(email) if optional_str(email) else None
        department_id = optional_str(department_id)
        self._check_department(company_id, department_id)

        role_value = _role(role) or Role.EMPLOYEE

        pin_hash = pin_lookup = None
        if optional_str(pin):
            pin = require_pin(pin)
            pin_lookup = self._unique_pin_lookup(company_id, pin)
            pin_hash = self._pins.hash(pin)

        account_id = None
        if create_auth_account:
            if not email or not password:
                raise ValidationError("Email and password are required to create a login account")
            require_min_length(password, "Password", 6)
            if self._accounts.get_by_email(email):
                raise ValidationError("An account with this email already exists")
            account_id = self._accounts.create(email=email, password_hash=generate_password_hash(password))

        profile_id = self._profiles.create(
            fields={
                "company_id": company_id,
                "user_id": account_id,
                "first_name": first or "",
                "last_name": last or "",
                "display_name": optional_str(display_name) or f"{first or ''} {last or ''}".strip(),
                "email": email,
                "phone": optional_str(phone),
                "employee_id": optional_str(employee_id),
                "department_id": department_id,
                "pin_hash": pin_hash,
                "pin_lookup": pin_lookup,
                "status": ProfileStatus.ACTIVE,
            }
        )
        self._roles.assign(profile_id=profile_id, user_id=account_id, role=role_value)
        logger.info("Profile %s created in company %s by %s", profile_id, company_id, actor.account_id)
        return self._require_profile(company_id, profile_id)

    def update_profile(self, *, actor: Actor, profile_id: str, fields: dict) -> Profile:
        company_id = actor.require_admin()
        self._require_profile(company_id, profile_id)

        changes = {k: (optional_str(v) if isinstance(v, str) else v) for k, v in fields.items() if k in EDITABLE_FIELDS}
        if changes.get("email"):
            changes["email"] = require_email(changes["email"])
        if "department_id" in changes:
            self._check_department(company_id, changes["department_id"])
        if changes:
            self._profiles.update(profile_id, fields=changes)

        if fields.get("role"):
            self._roles.assign(profile_id=profile_id, user_id=None, role=_role(fields["role"]))
        return self._require_profile(company_id, profile_id)

    def set_status(self, *, actor: Actor, profile_id: str, status: str) -> Profile:
        company_id = actor.require_admin()
        profile = self._require_profile(company_id, profile_id)
        try:
            new_status = ProfileStatus(status)
        except ValueError:
            raise ValidationError("Status must be active or inactive")
        if profile.id == actor.profile_id and new_status == ProfileStatus.INACTIVE:
            raise ValidationError("You cannot deactivate your own profile")
        self._profiles.set_status(profile_id, new_status)
        return self._require_profile(company_id, profile_id)

    def set_pin(self, *, actor: Actor, profile_id: str, pin: Optional[str]) -> None:
        company_id = actor.require_admin()
        self._require_profile(company_id, profile_id)
        if not optional_str(pin):
            self._profiles.set_pin(profile_id, None, None)
            return
        pin = require_pin(pin)
        lookup = self._unique_pin_lookup(company_id, pin, exclude_profile_id=profile_id)
        self._profiles.set_pin(profile_id, self._pins.hash(pin), lookup)

    def get_profile(self, *, actor: Actor, profile_id: str) -> Profile:
        company_id = actor.require_company()
        return self._require_profile(company_id, profile_id)

    def list_profiles(self, *, actor: Actor, filters: Optional[ProfileFilters] = None) -> Sequence[Profile]:
        return self._profiles.list_for_company(actor.require_company(), filters)

    def stats(self, *, actor: Actor) -> dict:
        profiles = self._profiles.list_for_company(actor.require_company())
        active = sum(1 for p in profiles if p.is_active)
        return {
            "total": len(profiles),
            "active": active,
            "inactive": len(profiles) - active,
            "face_enrolled": sum(1 for p in profiles if p.face_enrollment_status == EnrollmentStatus.ENROLLED),
            "with_login": sum(1 for p in profiles if p.user_id),
        }

    # -------- kiosk --------
    def lookup_employee(self, *, company_id: str, identifier: str, client_ip: str) -> Optional[Profile]:
        require_fields(
            {"company_id": company_id, "identifier": identifier},
            ("company_id", "identifier"),
            message="company_id and identifier are required",
        )

        limit = self._lookup_limiter.hit(f"lookup:{company_id}:{client_ip}")
        if not limit.allowed:
            logger.warning("[SECURITY] Rate limit exceeded for lookup: company=%s, ip=%s", company_id, client_ip)
            raise RateLimitError("Too many requests. Please slow down.", remaining=0, reset_at=limit.reset_at)

        raw = identifier.strip()
        profile = self._profiles.find_by_identifier(company_id, raw)
        if profile is None:
            scanned = extract_profile_id(raw)
            if scanned and scanned != raw:
                profile = self._profiles.find_by_identifier(company_id, scanned)

        if profile is None or not profile.is_active:
            logger.info("Employee lookup found no match in company %s", company_id)
            return None
        return profile

    # -------- CSV --------
    def import_csv(self, *, actor: Actor, content: str) -> ImportResult:
        company_id = actor.require_admin()
        result = ImportResult()
        reader = csv.DictReader(io.StringIO(content.lstrip("\ufeff")))
        if not reader.fieldnames:
            raise ValidationError("CSV file is empty")

        # header is row 1
        for row_no, raw in enumerate(reader, start=2):
            row = {(k or "").strip().lower(): (v or "").strip() for k, v in raw.items()}
            first = row.get("first_name") or ""
            last = row.get("last_name") or ""
            if not first and not last:
                result.failed += 1
                result.errors.append(f"Row {row_no}: Missing name")
                continue

            department_id = None
            if row.get("department"):
                dept = self._departments.get_by_name(company_id, row["department"])
                department_id = dept.id if dept else None

            try:
                profile_id = self._profiles.create(
                    fields={
                        "company_id": company_id,
                        "first_name": first,
                        "last_name": last,
                        "display_name": f"{first} {last}".strip(),
                        "email": row.get("email") or None,
                        "phone": row.get("phone") or None,
                        "employee_id": row.get("employee_id") or None,
                        "department_id": department_id,
                        "status": ProfileStatus.ACTIVE,
                    }
                )
                role = Role(row["role"].lower()) if row.get("role", "").lower() in {r.value for r in Role} else Role.EMPLOYEE
                self._roles.assign(profile_id=profile_id, user_id=None, role=role)
                result.imported += 1
            except Exception as e:
                logger.error("Import error on row %s: %s", row_no, e)
                result.failed += 1
                result.errors.append(f"Row {row_no}: {e}")
        return result

    def export_csv(self, *, actor: Actor, profile_ids: Optional[Iterable[str]] = None) -> bytes:
        profiles = list(self._profiles.list_for_company(actor.require_company()))
        if profile_ids:
            wanted = set(profile_ids)
            profiles = [p for p in profiles if p.id in wanted]
        if not profiles:
            raise ValidationError("No users to export")

        output = io.StringIO()
        writer = csv.DictWriter(output, fieldnames=EXPORT_COLUMNS, quoting=csv.QUOTE_ALL)
        writer.writeheader()
        for p in profiles:
            writer.writerow(
                {
                    "Name": p.name,
                    "Email": p.email or "",
                    "Role": (p.role or Role.EMPLOYEE).value,
                    "Status": p.status.value,
                    "Department": p.department_name or "",
                    "Phone": p.phone or "",
                    "Employee ID": p.employee_id or "",
                    "First Name": p.first_name or "",
                    "Last Name": p.last_name or "",
                }
            )
        return output.getvalue().encode("utf-8-sig")
