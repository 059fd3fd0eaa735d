from __future__ import annotations

from dataclasses import replace

import pytest

from timeclock.companies.model import Company, CompanyFeatures, Department
from timeclock.companies.service import CompanyService
from timeclock.core.actor import Actor
from timeclock.core.enums import Role
from timeclock.core.exceptions import AuthorizationError, ValidationError
from timeclock.profiles.model import Profile

NEW_USER = Actor(account_id="acc1", profile_id="p1", company_id=None, role=None)
ADMIN = Actor(account_id="acc1", profile_id="p1", company_id="c1", role=Role.ADMIN)
EMPLOYEE = Actor(account_id="acc2", profile_id="p2", company_id="c1", role=Role.EMPLOYEE)


class FakeCompanies:
    def __init__(self):
        self.companies = {}
        self.features = {}

    def get(self, company_id):
        return self.companies.get(company_id)

    def create(self, *, fields):
        company_id = f"c{len(self.companies) + 1}"
        fields = {"timezone": "America/Los_Angeles", **{k: v for k, v in fields.items() if v is not None}}
        self.companies[company_id] = Company(id=company_id, **fields)
        return company_id

    def update(self, company_id, *, fields):
        self.companies[company_id] = replace(self.companies[company_id], **fields)
        return True

    def get_features(self, company_id):
        return self.features.get(company_id)

    def save_features(self, features):
        self.features[features.company_id] = features


class FakeDepartments:
    def __init__(self):
        self.departments = {}

    def get(self, company_id, department_id):
        d = self.departments.get(department_id)
        return d if d and d.company_id == company_id else None

    def get_by_name(self, company_id, name):
        return next(
            (d for d in self.departments.values() if d.company_id == company_id and d.name.lower() == name.lower()),
            None,
        )

    def create(self, *, company_id, name, description):
        department_id = f"d{len(self.departments) + 1}"
        self.departments[department_id] = Department(
            id=department_id, company_id=company_id, name=name, description=description
        )
        return department_id


class FakeProfiles:
    def __init__(self, *profiles):
        self.profiles = {p.id: p for p in profiles}

    def get_by_user_id(self, user_id):
        return next((p for p in self.profiles.values() if p.user_id == user_id), None)

    def update(self, profile_id, *, fields):
        self.profiles[profile_id] = replace(self.profiles[profile_id], **fields)


class FakeRoles:
    def __init__(self):
        self.assigned = []

    def assign(self, *, profile_id, user_id, role):
        self.assigned.append((profile_id, user_id, role))


def _profile(**kw):
    defaults = dict(id="p1", company_id=None, user_id="acc1", first_name="Ana", last_name=None, display_name=None)
    defaults.update(kw)
    return Profile(**defaults)


def _service(*profiles):
    companies = FakeCompanies()
    roles = FakeRoles()
    profile_repo = FakeProfiles(*profiles)
    return CompanyService(companies, FakeDepartments(), profile_repo, roles), companies, profile_repo, roles


def test_create_company_makes_creator_admin():
    service, companies, profiles, roles = _service(_profile())

    company = service.create_company(
        actor=NEW_USER, email="ana@acme.test", fields={"company_name": " Acme ", "timezone": "America/Chicago"}
    )

    assert company.company_name == "Acme"
    assert company.timezone == "America/Chicago"
    assert profiles.profiles["p1"].company_id == company.id
    assert roles.assigned == [("p1", "acc1", Role.ADMIN)]
    assert companies.features[company.id] == CompanyFeatures(company_id=company.id)


def test_create_company_rejects_unknown_timezone():
    service, _, _, _ = _service(_profile())
    with pytest.raises(ValidationError, match="Unknown timezone"):
        service.create_company(actor=NEW_USER, email=None, fields={"company_name": "Acme", "timezone": "Mars/Base"})


def test_create_company_rejects_second_company():
    service, _, _, _ = _service(_profile(company_id="c9"))
    with pytest.raises(ValidationError):
        service.create_company(actor=NEW_USER, email=None, fields={"company_name": "Acme"})


def test_update_features_merges_flags():
    service, _, _, _ = _service()

    features = service.update_features(actor=ADMIN, fields={"face_verification": 1, "unknown": True})

    assert features.face_verification is True
    assert features.geolocation is True
    assert service.get_features("c1") == features


def test_update_features_requires_admin():
    service, _, _, _ = _service()
    with pytest.raises(AuthorizationError):
        service.update_features(actor=EMPLOYEE, fields={"employee_pin": True})


def test_create_department_rejects_duplicates():
    service, _, _, _ = _service()
    service.create_department(actor=ADMIN, name="Framing")

    with pytest.raises(ValidationError, match="already exists"):
        service.create_department(actor=ADMIN, name="framing")
