from __future__ import annotations

from decimal import Decimal

import pytest

from timeclock.core.actor import Actor
from timeclock.core.enums import Role
from timeclock.core.exceptions import NotFoundError, ValidationError
from timeclock.projects.model import Client, Project
from timeclock.projects.service import ProjectService

ADMIN = Actor(account_id="a1", profile_id="pa", company_id="c1", role=Role.ADMIN)


class FakeClients:
    def __init__(self, *clients):
        self.clients = {c.id: c for c in clients}

    def get(self, company_id, client_id):
        c = self.clients.get(client_id)
        return c if c and c.company_id == company_id else None

    def get_by_name(self, company_id, name):
        return next(
            (c for c in self.clients.values() if c.company_id == company_id and c.company_name.lower() == name.lower()),
            None,
        )

    def create(self, *, company_id, fields):
        client_id = f"cl{len(self.clients) + 1}"
        self.clients[client_id] = Client(id=client_id, company_id=company_id, **fields)
        return client_id


class FakeProjects:
    def __init__(self):
        self.projects = {}

    def get(self, company_id, project_id):
        p = self.projects.get(project_id)
        return p if p and p.company_id == company_id else None

    def create(self, *, company_id, fields):
        project_id = f"pr{len(self.projects) + 1}"
        self.projects[project_id] = Project(id=project_id, company_id=company_id, **fields)
        return project_id

    def delete(self, company_id, project_id):
        return self.projects.pop(project_id, None) is not None


class FakeDepartments:
    def get(self, company_id, department_id):
        return None


def _service():
    clients = FakeClients(Client(id="cl1", company_id="c1", company_name="Harbor Homes"))
    projects = FakeProjects()
    return ProjectService(clients, projects, FakeDepartments()), clients, projects


def test_create_project_parses_rates():
    service, _, _ = _service()

    project = service.create_project(
        actor=ADMIN, fields={"name": " Dock 4 ", "client_id": "cl1", "hourly_rate": "85.50", "estimated_hours": ""}
    )

    assert project.name == "Dock 4"
    assert project.hourly_rate == Decimal("85.50")
    assert project.estimated_hours is None


def test_create_project_validation():
    service, _, _ = _service()
    with pytest.raises(ValidationError):
        service.create_project(actor=ADMIN, fields={"name": ""})
    with pytest.raises(ValidationError, match="Client not found"):
        service.create_project(actor=ADMIN, fields={"name": "X", "client_id": "cl9"})
    with pytest.raises(ValidationError, match="hourly_rate must be a number"):
        service.create_project(actor=ADMIN, fields={"name": "X", "hourly_rate": "lots"})


def test_delete_missing_project():
    service, _, _ = _service()
    with pytest.raises(NotFoundError):
        service.delete_project(actor=ADMIN, project_id="nope")


def test_import_projects_csv():
    service, _, projects = _service()
    content = (
        "Name,Description,Client,Hourly_Rate\n"
        "Dock 4,Pier work,harbor homes,90\n"
        ",orphan,,\n"
        "Roof,,Unknown Co,abc\n"
        "Fence,,,\n"
    )

    result = service.import_projects_csv(actor=ADMIN, content=content)

    assert result.imported == 2
    assert result.failed == 2
    assert result.errors[0] == "Row 3: Missing name"
    assert result.errors[1].startswith("Row 4:")
    dock = next(p for p in projects.projects.values() if p.name == "Dock 4")
    assert dock.client_id == "cl1"
    assert dock.hourly_rate == Decimal("90")


def test_import_clients_csv():
    service, clients, _ = _service()
    content = "company_name,email,city\nAcme Steel,ops@acme.test,Austin\n,missing@acme.test,\n"

    result = service.import_clients_csv(actor=ADMIN, content=content)

    assert (result.imported, result.failed) == (1, 1)
    assert result.errors == ["Row 3: Missing company_name"]
    assert clients.get_by_name("c1", "acme steel").city == "Austin"


def test_import_empty_csv():
    service, _, _ = _service()
    with pytest.raises(ValidationError):
        service.import_projects_csv(actor=ADMIN, content="")
