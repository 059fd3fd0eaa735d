from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class Client:
    id: str
    company_id: str
    company_name: str
    contact_person_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    notes: Optional[str] = None
    is_active: bool = True


@dataclass(frozen=True)
class Project:
    id: str
    company_id: str
    name: str
    client_id: Optional[str] = None
    department_id: Optional[str] = None
    description: Optional[str] = None
    status: str = "active"
    hourly_rate: Optional[Decimal] = None
    estimated_hours: Optional[Decimal] = None
    is_active: bool = True
    # joined, read-only
    client_name: Optional[str] = None


CLIENT_FIELDS = ("company_name", "contact_person_name", "email", "phone", "city", "country", "notes", "is_active")
PROJECT_FIELDS = (
    "name",
    "client_id",
    "department_id",
    "description",
    "status",
    "hourly_rate",
    "estimated_hours",
    "is_active",
)
