from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Sequence

from ..accounts.repository import RoleRepository
from ..common.datetime_utils import get_zone
from ..common.validators import optional_str, require_non_empty
from ..core.actor import Actor
from ..core.enums import Role
from ..core.exceptions import NotFoundError, ValidationError
from ..profiles.repository import ProfileRepository
from .model import COMPANY_FIELDS, FEATURE_FIELDS, Company, CompanyFeatures, Department
from .repository import CompanyRepository, DepartmentRepository

logger = logging.getLogger(__name__)


class CompanyService:
    def __init__(
        self,
        companies: CompanyRepository,
        departments: DepartmentRepository,
        profiles: ProfileRepository,
        roles: RoleRepository,
    ):
        self._companies = companies
        self._departments = departments
        self._profiles = profiles
        self._roles = roles

    @staticmethod
    def _clean_fields(fields: dict) -> dict:
        out = {k: optional_str(v) for k, v in fields.items() if k in COMPANY_FIELDS}
        if out.get("timezone"):
            # get_zone maps unknown names to the default zone
            if get_zone(out["timezone"]).key != out["timezone"]:
                raise ValidationError(f"Unknown timezone: {out['timezone']}")
        return out

    def create_company(self, *, actor: Actor, email: Optional[str], fields: dict) -> Company:
        """Create a company, its default features, and make the creator its admin."""
        data = self._clean_fields(fields)
        data["company_name"] = require_non_empty(data.get("company_name"), "Company name")

        profile = self._profiles.get_by_user_id(actor.account_id)
        if profile and profile.company_id:
            raise ValidationError("You already belong to a company")

        company_id = self._companies.create(fields=data)
        self._companies.save_features(CompanyFeatures(company_id=company_id))

        if profile:
            self._profiles.update(profile.id, fields={"company_id": company_id})
            profile_id = profile.id
        else:
            profile_id = self._profiles.create(
                fields={"company_id": company_id, "user_id": actor.account_id, "email": email, "display_name": email}
            )
        self._roles.assign(profile_id=profile_id, user_id=actor.account_id, role=Role.ADMIN)

        logger.info("Company %s created by account %s", company_id, actor.account_id)
        company = self._companies.get(company_id)
        if company is None:
            raise NotFoundError("Company not found")
        return company

    def get_company(self, *, actor: Actor) -> Company:
        company = self._companies.get(actor.require_company())
        if not company:
            raise NotFoundError("Company not found")
        return company

    def update_company(self, *, actor: Actor, fields: dict) -> Company:
        company_id = actor.require_admin()
        data = self._clean_fields(fields)
        if "company_name" in data:
            data["company_name"] = require_non_empty(data["company_name"], "Company name")
        self._companies.update(company_id, fields=data)
        return self.get_company(actor=actor)

    def get_features(self, company_id: str) -> CompanyFeatures:
        return self._companies.get_features(company_id) or CompanyFeatures(company_id=company_id)

    def update_features(self, *, actor: Actor, fields: dict) -> CompanyFeatures:
        company_id = actor.require_admin()
        current = self.get_features(company_id)
        changes = {k: bool(v) for k, v in fields.items() if k in FEATURE_FIELDS}
        updated = replace(current, **changes)
        self._companies.save_features(updated)
        return updated

    # -------- departments --------
    def list_departments(self, *, actor: Actor, include_inactive: bool = False) -> Sequence[Department]:
        return self._departments.list_for_company(actor.require_company(), include_inactive=include_inactive)

    def create_department(self, *, actor: Actor, name: str, description: Optional[str] = None) -> Department:
        company_id = actor.require_admin()
        name = require_non_empty(name, "Department name")
        if self._departments.get_by_name(company_id, name):
            raise ValidationError("Department already exists")
        department_id = self._departments.create(company_id=company_id, name=name, description=optional_str(description))
        dept = self._departments.get(company_id, department_id)
        if dept is None:
            raise NotFoundError("Department not found")
        return dept

    def update_department(self, *, actor: Actor, department_id: str, fields: dict) -> Department:
        company_id = actor.require_admin()
        if not self._departments.get(company_id, department_id):
            raise NotFoundError("Department not found")
        changes: dict = {}
        if "name" in fields:
            changes["name"] = require_non_empty(fields["name"], "Department name")
        if "description" in fields:
            changes["description"] = optional_str(fields["description"])
        if "is_active" in fields:
            changes["is_active"] = int(bool(fields["is_active"]))
        self._departments.update(company_id, department_id, fields=changes)
        dept = self._departments.get(company_id, department_id)
        if dept is None:
            raise NotFoundError("Department not found")
        return dept

    def delete_department(self, *, actor: Actor, department_id: str) -> None:
        company_id = actor.require_admin()
        if not self._departments.delete(company_id, department_id):
            raise NotFoundError("Department not found")
