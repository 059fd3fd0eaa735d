from __future__ import annotations

import io
import logging
from typing import Optional, Sequence

from ..common.datetime_utils import parse_iso_date
from ..common.validators import optional_str, require_non_empty
from ..companies.repository import CompanyRepository
from ..core.actor import Actor
from ..core.exceptions import NotFoundError, ValidationError
from ..profiles.repository import ProfileRepository
from .model import CERTIFICATION_FIELDS, BadgeTemplate, Certification
from .qr import qr_png
from .repository import BadgeTemplateRepository, CertificationRepository
from .urls import badge_url

logger = logging.getLogger(__name__)


class BadgeService:
    """Public badge pages, badge QR codes, certifications and badge templates."""

    def __init__(
        self,
        profiles: ProfileRepository,
        companies: CompanyRepository,
        certifications: CertificationRepository,
        templates: BadgeTemplateRepository,
        *,
        public_base_url: str,
    ):
        self._profiles = profiles
        self._companies = companies
        self._certifications = certifications
        self._templates = templates
        self._public_base_url = public_base_url

    def generate_badge(self, *, profile_id: Optional[str], company_id: Optional[str] = None) -> dict:
        """Everything a printed/public badge needs for one employee."""
        if not profile_id:
            raise ValidationError("profile_id is required")

        profile = self._profiles.get(profile_id)
        if not profile:
            raise NotFoundError("Profile not found")

        company_id = company_id or profile.company_id
        if not company_id:
            raise NotFoundError("Company not found for this profile")
        company = self._companies.get(company_id)
        if not company:
            raise NotFoundError("Company not found")

        certifications = self._certifications.list_for_profile(profile.id)
        template = self._templates.get_active(company.id)
        logger.info("Badge generated for profile %s", profile.id)

        return {
            "profile": {
                "id": profile.id,
                "display_name": profile.display_name,
                "first_name": profile.first_name,
                "last_name": profile.last_name,
                "avatar_url": profile.avatar_url,
                "employee_id": profile.employee_id,
                "department": {"name": profile.department_name} if profile.department_name else None,
                "company": {
                    "id": company.id,
                    "company_name": company.company_name,
                    "company_logo_url": company.company_logo_url,
                    "website": company.website,
                    "phone": company.phone,
                },
            },
            "certifications": list(certifications),
            "badgeTemplate": template.template_config if template else None,
            "badge_url": badge_url(self._public_base_url, profile.id),
        }

    def verify_badge(self, *, profile_id: str, company_id: str) -> dict:
        """Validity check for a scanned badge; unknown or inactive employees are not errors."""
        if not profile_id or not company_id:
            raise ValidationError("profile_id and company_id are required")

        profile = self._profiles.get_in_company(company_id, profile_id)
        if not profile:
            return {"valid": False, "error": "Employee not found"}
        if not profile.is_active:
            return {"valid": False, "error": "Employee is not active"}

        company = self._companies.get(company_id)
        return {
            "valid": True,
            "employee": {
                "name": profile.name,
                "employee_id": profile.employee_id,
                "department": profile.department_name,
                "status": profile.status.value,
            },
            "company": company.company_name if company else None,
        }

    def badge_qr(self, profile_id: str) -> io.BytesIO:
        profile = self._profiles.get(profile_id)
        if not profile:
            raise NotFoundError("Profile not found")
        return qr_png(badge_url(self._public_base_url, profile.id))

    # -------- certifications --------
    @staticmethod
    def _certification_fields(fields: dict) -> dict:
        clean: dict = {}
        for key in CERTIFICATION_FIELDS:
            if key not in fields:
                continue
            if key in ("issue_date", "expiry_date"):
                clean[key] = parse_iso_date(fields[key]) if fields[key] else None
            else:
                clean[key] = optional_str(fields[key])
        if clean.get("issue_date") and clean.get("expiry_date") and clean["expiry_date"] < clean["issue_date"]:
            raise ValidationError("Expiry date cannot be before issue date")
        return clean

    def list_certifications(self, *, actor: Actor, profile_id: str) -> Sequence[Certification]:
        company_id = actor.require_company()
        if not self._profiles.get_in_company(company_id, profile_id):
            raise NotFoundError("Employee not found")
        return self._certifications.list_for_profile(profile_id)

    def add_certification(self, *, actor: Actor, profile_id: str, fields: dict) -> Certification:
        company_id = actor.require_admin()
        if not self._profiles.get_in_company(company_id, profile_id):
            raise NotFoundError("Employee not found")
        clean = self._certification_fields(fields)
        clean["cert_name"] = require_non_empty(fields.get("cert_name"), "Certification name")
        clean.setdefault("status", "active")
        certification_id = self._certifications.create(company_id=company_id, profile_id=profile_id, fields=clean)
        return self._certification(company_id, certification_id)

    def update_certification(self, *, actor: Actor, certification_id: str, fields: dict) -> Certification:
        company_id = actor.require_admin()
        self._certification(company_id, certification_id)
        clean = self._certification_fields(fields)
        if "cert_name" in fields:
            clean["cert_name"] = require_non_empty(fields["cert_name"], "Certification name")
        self._certifications.update(company_id, certification_id, fields=clean)
        return self._certification(company_id, certification_id)

    def delete_certification(self, *, actor: Actor, certification_id: str) -> None:
        company_id = actor.require_admin()
        if not self._certifications.delete(company_id, certification_id):
            raise NotFoundError("Certification not found")

    def _certification(self, company_id: str, certification_id: str) -> Certification:
        certification = self._certifications.get(company_id, certification_id)
        if certification is None:
            raise NotFoundError("Certification not found")
        return certification

    # -------- templates --------
    def list_templates(self, *, actor: Actor) -> Sequence[BadgeTemplate]:
        return self._templates.list_for_company(actor.require_admin())

    def create_template(self, *, actor: Actor, name: str, template_config: Optional[dict] = None) -> BadgeTemplate:
        company_id = actor.require_admin()
        if template_config is not None and not isinstance(template_config, dict):
            raise ValidationError("template_config must be an object")
        template_id = self._templates.create(
            company_id=company_id, name=require_non_empty(name, "Template name"), template_config=template_config
        )
        return self._template(company_id, template_id)

    def update_template(self, *, actor: Actor, template_id: str, fields: dict) -> BadgeTemplate:
        company_id = actor.require_admin()
        self._template(company_id, template_id)
        changes: dict = {}
        if "name" in fields:
            changes["name"] = require_non_empty(fields["name"], "Template name")
        if "template_config" in fields:
            if fields["template_config"] is not None and not isinstance(fields["template_config"], dict):
                raise ValidationError("template_config must be an object")
            changes["template_config"] = fields["template_config"]
        self._templates.update(company_id, template_id, fields=changes)
        if fields.get("is_active"):
            self._templates.activate(company_id, template_id)
        return self._template(company_id, template_id)

    def activate_template(self, *, actor: Actor, template_id: str) -> BadgeTemplate:
        company_id = actor.require_admin()
        self._template(company_id, template_id)
        self._templates.activate(company_id, template_id)
        return self._template(company_id, template_id)

    def delete_template(self, *, actor: Actor, template_id: str) -> None:
        company_id = actor.require_admin()
        if not self._templates.delete(company_id, template_id):
            raise NotFoundError("Badge template not found")

    def _template(self, company_id: str, template_id: str) -> BadgeTemplate:
        template = self._templates.get(company_id, template_id)
        if template is None:
            raise NotFoundError("Badge template not found")
        return template
