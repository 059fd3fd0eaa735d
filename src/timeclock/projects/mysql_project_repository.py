from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, new_id, update_clause
from .model import CLIENT_FIELDS, PROJECT_FIELDS, Client, Project
from .repository import ClientRepository, ProjectRepository

_PROJECT_SELECT = """
    SELECT pr.*, c.company_name AS client_name
    FROM projects pr
    LEFT JOIN clients c ON c.id = pr.client_id
"""


def _to_client(r: dict) -> Client:
    return Client(
        id=r["id"],
        company_id=r["company_id"],
        company_name=r["company_name"],
        contact_person_name=r.get("contact_person_name"),
        email=r.get("email"),
        phone=r.get("phone"),
        city=r.get("city"),
        country=r.get("country"),
        notes=r.get("notes"),
        is_active=as_bool(r.get("is_active")),
    )


def _to_project(r: dict) -> Project:
    return Project(
        id=r["id"],
        company_id=r["company_id"],
        name=r["name"],
        client_id=r.get("client_id"),
        department_id=r.get("department_id"),
        description=r.get("description"),
        status=r.get("status") or "active",
        hourly_rate=r.get("hourly_rate"),
        estimated_hours=r.get("estimated_hours"),
        is_active=as_bool(r.get("is_active")),
        client_name=r.get("client_name"),
    )


def _insert(cur, table: str, record_id: str, company_id: str, fields: dict, allowed: Sequence[str]) -> None:
    cols = [c for c in allowed if c in fields]
    cur.execute(
        f"""
        INSERT INTO {table} (id, company_id{"".join(", " + c for c in cols)})
        VALUES (%s, %s{", %s" * len(cols)})
        """,
        tuple([record_id, company_id] + [fields[c] for c in cols]),
    )


class MySQLClientRepository(ClientRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_company(self, company_id: str, *, include_inactive: bool = False) -> Sequence[Client]:
        sql = "SELECT * FROM clients WHERE company_id=%s"
        if not include_inactive:
            sql += " AND is_active=1"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY company_name", (company_id,))
            return [_to_client(r) for r in fetchall(cur)]

    def get(self, company_id: str, client_id: str) -> Optional[Client]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM clients WHERE company_id=%s AND id=%s", (company_id, client_id))
            r = fetchone(cur)
            return _to_client(r) if r else None

    def get_by_name(self, company_id: str, company_name: str) -> Optional[Client]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT * FROM clients WHERE company_id=%s AND LOWER(company_name)=LOWER(%s) LIMIT 1",
                (company_id, company_name),
            )
            r = fetchone(cur)
            return _to_client(r) if r else None

    def create(self, *, company_id: str, fields: dict) -> str:
        client_id = new_id()
        with db_cursor(self._conn_factory) as (_, cur):
            _insert(cur, "clients", client_id, company_id, fields, CLIENT_FIELDS)
        return client_id

    def update(self, company_id: str, client_id: str, *, fields: dict) -> bool:
        assignments, params = update_clause(fields, CLIENT_FIELDS)
        if not assignments:
            return False
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE clients SET {assignments} WHERE company_id=%s AND id=%s",
                tuple(params + [company_id, client_id]),
            )
            return cur.rowcount > 0

    def delete(self, company_id: str, client_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM clients WHERE company_id=%s AND id=%s", (company_id, client_id))
            return cur.rowcount > 0


class MySQLProjectRepository(ProjectRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_company(self, company_id: str, *, include_inactive: bool = False) -> Sequence[Project]:
        sql = f"{_PROJECT_SELECT} WHERE pr.company_id=%s"
        if not include_inactive:
            sql += " AND pr.is_active=1"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY pr.name", (company_id,))
            return [_to_project(r) for r in fetchall(cur)]

    def get(self, company_id: str, project_id: str) -> Optional[Project]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_PROJECT_SELECT} WHERE pr.company_id=%s AND pr.id=%s", (company_id, project_id))
            r = fetchone(cur)
            return _to_project(r) if r else None

    def create(self, *, company_id: str, fields: dict) -> str:
        project_id = new_id()
        with db_cursor(self._conn_factory) as (_, cur):
            _insert(cur, "projects", project_id, company_id, fields, PROJECT_FIELDS)
        return project_id

    def update(self, company_id: str, project_id: str, *, fields: dict) -> bool:
        assignments, params = update_clause(fields, PROJECT_FIELDS)
        if not assignments:
            return False
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE projects SET {assignments} WHERE company_id=%s AND id=%s",
                tuple(params + [company_id, project_id]),
            )
            return cur.rowcount > 0

    def delete(self, company_id: str, project_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM projects WHERE company_id=%s AND id=%s", (company_id, project_id))
            return cur.rowcount > 0
