from __future__ import annotations

from typing import Optional, Sequence

from ..core.constants import DEFAULT_TIMEZONE
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, new_id, update_clause
from .model import COMPANY_FIELDS, FEATURE_FIELDS, Company, CompanyFeatures, Department
from .repository import CompanyRepository, DepartmentRepository


def _to_company(r: dict) -> Company:
    return Company(
        id=r["id"],
        company_name=r["company_name"],
        timezone=r.get("timezone") or DEFAULT_TIMEZONE,
        industry=r.get("industry"),
        website=r.get("website"),
        phone=r.get("phone"),
        street_address=r.get("street_address"),
        city=r.get("city"),
        state_province=r.get("state_province"),
        postal_code=r.get("postal_code"),
        country=r.get("country"),
        company_logo_url=r.get("company_logo_url"),
        created_at=r.get("created_at"),
    )


def _to_department(r: dict) -> Department:
    return Department(
        id=r["id"],
        company_id=r["company_id"],
        name=r["name"],
        description=r.get("description"),
        is_active=as_bool(r.get("is_active")),
    )


class MySQLCompanyRepository(CompanyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, company_id: str) -> Optional[Company]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM companies WHERE id=%s", (company_id,))
            r = fetchone(cur)
            return _to_company(r) if r else None

    def create(self, *, fields: dict) -> str:
        company_id = new_id()
        cols = ["id"] + [c for c in COMPANY_FIELDS if fields.get(c) is not None]
        params = [company_id] + [fields[c] for c in cols[1:]]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO companies ({', '.join(cols)}) VALUES ({', '.join(['%s'] * len(cols))})",
                tuple(params),
            )
        return company_id

    def update(self, company_id: str, *, fields: dict) -> bool:
        assignments, params = update_clause(fields, COMPANY_FIELDS)
        if not assignments:
            return False
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE companies SET {assignments} WHERE id=%s", tuple(params + [company_id]))
            return cur.rowcount > 0

    def get_features(self, company_id: str) -> Optional[CompanyFeatures]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM company_features WHERE company_id=%s", (company_id,))
            r = fetchone(cur)
            if not r:
                return None
            return CompanyFeatures(company_id=r["company_id"], **{f: as_bool(r.get(f)) for f in FEATURE_FIELDS})

    def save_features(self, features: CompanyFeatures) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO company_features (company_id, geolocation, employee_pin, photo_capture, face_verification)
                VALUES (%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    geolocation=VALUES(geolocation),
                    employee_pin=VALUES(employee_pin),
                    photo_capture=VALUES(photo_capture),
                    face_verification=VALUES(face_verification)
                """,
                (
                    features.company_id,
                    int(features.geolocation),
                    int(features.employee_pin),
                    int(features.photo_capture),
                    int(features.face_verification),
                ),
            )


class MySQLDepartmentRepository(DepartmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_company(self, company_id: str, *, include_inactive: bool = False) -> Sequence[Department]:
        sql = "SELECT * FROM departments WHERE company_id=%s"
        if not include_inactive:
            sql += " AND is_active=1"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY name", (company_id,))
            return [_to_department(r) for r in fetchall(cur)]

    def get(self, company_id: str, department_id: str) -> Optional[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM departments WHERE company_id=%s AND id=%s", (company_id, department_id))
            r = fetchone(cur)
            return _to_department(r) if r else None

    def get_by_name(self, company_id: str, name: str) -> Optional[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT * FROM departments WHERE company_id=%s AND LOWER(name)=LOWER(%s)",
                (company_id, name),
            )
            r = fetchone(cur)
            return _to_department(r) if r else None

    def create(self, *, company_id: str, name: str, description: Optional[str]) -> str:
        department_id = new_id()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO departments (id, company_id, name, description) VALUES (%s,%s,%s,%s)",
                (department_id, company_id, name, description),
            )
        return department_id

    def update(self, company_id: str, department_id: str, *, fields: dict) -> bool:
        assignments, params = update_clause(fields, ("name", "description", "is_active"))
        if not assignments:
            return False
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE departments SET {assignments} WHERE company_id=%s AND id=%s",
                tuple(params + [company_id, department_id]),
            )
            return cur.rowcount > 0

    def delete(self, company_id: str, department_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM departments WHERE company_id=%s AND id=%s", (company_id, department_id))
            return cur.rowcount > 0
