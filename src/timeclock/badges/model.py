from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class Certification:
    id: str
    company_id: str
    profile_id: str
    cert_name: str
    cert_code: Optional[str] = None
    cert_number: Optional[str] = None
    certifier_name: Optional[str] = None
    issue_date: Optional[date] = None
    expiry_date: Optional[date] = None
    status: str = "active"


@dataclass(frozen=True)
class BadgeTemplate:
    id: str
    company_id: str
    name: str
    template_config: Optional[dict] = None
    is_active: bool = False


CERTIFICATION_FIELDS = (
    "cert_name",
    "cert_code",
    "cert_number",
    "certifier_name",
    "issue_date",
    "expiry_date",
    "status",
)
