from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Company:
    id: str
    company_name: str
    timezone: str
    industry: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    street_address: Optional[str] = None
    city: Optional[str] = None
    state_province: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    company_logo_url: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class CompanyFeatures:
    company_id: str
    geolocation: bool = True
    employee_pin: bool = False
    photo_capture: bool = True
    face_verification: bool = False


@dataclass(frozen=True)
class Department:
    id: str
    company_id: str
    name: str
    description: Optional[str] = None
    is_active: bool = True


COMPANY_FIELDS = (
    "company_name",
    "industry",
    "website",
    "phone",
    "street_address",
    "city",
    "state_province",
    "postal_code",
    "country",
    "company_logo_url",
    "timezone",
)

FEATURE_FIELDS = ("geolocation", "employee_pin", "photo_capture", "face_verification")
