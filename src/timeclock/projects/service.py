from __future__ import annotations

import io
import logging
from decimal import Decimal, InvalidOperation
from typing import Optional, Sequence

import pandas as pd

from ..common.validators import optional_str, require_non_empty
from ..companies.repository import DepartmentRepository
from ..core.actor import Actor
from ..core.exceptions import NotFoundError, ValidationError
from ..profiles.model import ImportResult
from .model import CLIENT_FIELDS, PROJECT_FIELDS, Client, Project
from .repository import ClientRepository, ProjectRepository

logger = logging.getLogger(__name__)


def _decimal(value, field_name: str) -> Optional[Decimal]:
    if value is None or str(value).strip() == "":
        return None
    try:
        return Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{field_name} must be a number")


def _read_csv(content: str) -> pd.DataFrame:
    try:
        df = pd.read_csv(io.StringIO(content.lstrip("\ufeff")), dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError:
        raise ValidationError("CSV file is empty")
    df.columns = [str(c).strip().lower() for c in df.columns]
    return df


class ProjectService:
    """Clients and projects (jobs) of a company, including CSV imports."""

    def __init__(self, clients: ClientRepository, projects: ProjectRepository, departments: DepartmentRepository):
        self._clients = clients
        self._projects = projects
        self._departments = departments

    # -------- clients --------
    def list_clients(self, *, actor: Actor, include_inactive: bool = False) -> Sequence[Client]:
        return self._clients.list_for_company(actor.require_company(), include_inactive=include_inactive)

    def _client_fields(self, fields: dict) -> dict:
        clean = {k: optional_str(fields[k]) for k in CLIENT_FIELDS if k in fields and k != "is_active"}
        if "is_active" in fields:
            clean["is_active"] = int(bool(fields["is_active"]))
        return clean

    def create_client(self, *, actor: Actor, fields: dict) -> Client:
        company_id = actor.require_admin()
        clean = self._client_fields(fields)
        clean["company_name"] = require_non_empty(fields.get("company_name"), "Client company name")
        client_id = self._clients.create(company_id=company_id, fields=clean)
        return self._client(company_id, client_id)

    def update_client(self, *, actor: Actor, client_id: str, fields: dict) -> Client:
        company_id = actor.require_admin()
        self._client(company_id, client_id)
        clean = self._client_fields(fields)
        if "company_name" in fields:
            clean["company_name"] = require_non_empty(fields["company_name"], "Client company name")
        self._clients.update(company_id, client_id, fields=clean)
        return self._client(company_id, client_id)

    def delete_client(self, *, actor: Actor, client_id: str) -> None:
        company_id = actor.require_admin()
        if not self._clients.delete(company_id, client_id):
            raise NotFoundError("Client not found")

    def _client(self, company_id: str, client_id: str) -> Client:
        client = self._clients.get(company_id, client_id)
        if client is None:
            raise NotFoundError("Client not found")
        return client

    def import_clients_csv(self, *, actor: Actor, content: str) -> ImportResult:
        company_id = actor.require_admin()
        df = _read_csv(content)
        result = ImportResult()
        for idx, row in enumerate(df.to_dict(orient="records")):
            row_no = idx + 2
            name = (row.get("company_name") or "").strip()
            if not name:
                result.failed += 1
                result.errors.append(f"Row {row_no}: Missing company_name")
                continue
            fields = self._client_fields({k: v for k, v in row.items() if k in CLIENT_FIELDS and k != "is_active"})
            fields["company_name"] = name
            try:
                self._clients.create(company_id=company_id, fields=fields)
                result.imported += 1
            except Exception as e:
                logger.error("Client import error on row %s: %s", row_no, e)
                result.failed += 1
                result.errors.append(f"Row {row_no}: {e}")
        logger.info("Imported %d client(s), %d failed", result.imported, result.failed)
        return result

    # -------- projects --------
    def list_projects(self, *, actor: Actor, include_inactive: bool = False) -> Sequence[Project]:
        return self._projects.list_for_company(actor.require_company(), include_inactive=include_inactive)

    def get_project(self, *, actor: Actor, project_id: str) -> Project:
        return self._project(actor.require_company(), project_id)

    def _project_fields(self, company_id: str, fields: dict) -> dict:
        clean: dict = {}
        for key in PROJECT_FIELDS:
            if key not in fields:
                continue
            value = fields[key]
            if key in ("hourly_rate", "estimated_hours"):
                clean[key] = _decimal(value, key)
            elif key == "is_active":
                clean[key] = int(bool(value))
            else:
                clean[key] = optional_str(value)
        if clean.get("client_id") and not self._clients.get(company_id, clean["client_id"]):
            raise ValidationError("Client not found")
        if clean.get("department_id") and not self._departments.get(company_id, clean["department_id"]):
            raise ValidationError("Department not found")
        return clean

    def create_project(self, *, actor: Actor, fields: dict) -> Project:
        company_id = actor.require_admin()
        clean = self._project_fields(company_id, fields)
        clean["name"] = require_non_empty(fields.get("name"), "Project name")
        project_id = self._projects.create(company_id=company_id, fields=clean)
        return self._project(company_id, project_id)

    def update_project(self, *, actor: Actor, project_id: str, fields: dict) -> Project:
        company_id = actor.require_admin()
        self._project(company_id, project_id)
        clean = self._project_fields(company_id, fields)
        if "name" in fields:
            clean["name"] = require_non_empty(fields["name"], "Project name")
        self._projects.update(company_id, project_id, fields=clean)
        return self._project(company_id, project_id)

    def delete_project(self, *, actor: Actor, project_id: str) -> None:
        company_id = actor.require_admin()
        if not self._projects.delete(company_id, project_id):
            raise NotFoundError("Project not found")

    def _project(self, company_id: str, project_id: str) -> Project:
        project = self._projects.get(company_id, project_id)
        if project is None:
            raise NotFoundError("Project not found")
        return project

    def import_projects_csv(self, *, actor: Actor, content: str) -> ImportResult:
        company_id = actor.require_admin()
        df = _read_csv(content)
        result = ImportResult()
        for idx, row in enumerate(df.to_dict(orient="records")):
            row_no = idx + 2
            name = (row.get("name") or "").strip()
            if not name:
                result.failed += 1
                result.errors.append(f"Row {row_no}: Missing name")
                continue

            fields: dict = {"name": name, "description": optional_str(row.get("description"))}
            client_name = (row.get("client") or row.get("client_name") or "").strip()
            if client_name:
                client = self._clients.get_by_name(company_id, client_name)
                fields["client_id"] = client.id if client else None
            try:
                fields["hourly_rate"] = _decimal(row.get("hourly_rate"), "hourly_rate")
                fields["estimated_hours"] = _decimal(row.get("estimated_hours"), "estimated_hours")
                self._projects.create(company_id=company_id, fields=fields)
                result.imported += 1
            except Exception as e:
                logger.error("Project import error on row %s: %s", row_no, e)
                result.failed += 1
                result.errors.append(f"Row {row_no}: {e}")
        logger.info("Imported %d project(s), %d failed", result.imported, result.failed)
        return result
