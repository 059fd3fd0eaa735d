from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import BadgeTemplate, Certification


class CertificationRepository(Protocol):
    def list_for_profile(self, profile_id: str) -> Sequence[Certification]:
        """Newest issue date first."""
        raise NotImplementedError

    def get(self, company_id: str, certification_id: str) -> Optional[Certification]:
        raise NotImplementedError

    def create(self, *, company_id: str, profile_id: str, fields: dict) -> str:
        raise NotImplementedError

    def update(self, company_id: str, certification_id: str, *, fields: dict) -> bool:
        raise NotImplementedError

    def delete(self, company_id: str, certification_id: str) -> bool:
        raise NotImplementedError


class BadgeTemplateRepository(Protocol):
    def list_for_company(self, company_id: str) -> Sequence[BadgeTemplate]:
        raise NotImplementedError

    def get(self, company_id: str, template_id: str) -> Optional[BadgeTemplate]:
        raise NotImplementedError

    def get_active(self, company_id: str) -> Optional[BadgeTemplate]:
        raise NotImplementedError

    def create(self, *, company_id: str, name: str, template_config: Optional[dict]) -> str:
        raise NotImplementedError

    def update(self, company_id: str, template_id: str, *, fields: dict) -> bool:
        raise NotImplementedError

    def activate(self, company_id: str, template_id: str) -> bool:
        """Make this the only active template of the company."""
        raise NotImplementedError

    def delete(self, company_id: str, template_id: str) -> bool:
        raise NotImplementedError
