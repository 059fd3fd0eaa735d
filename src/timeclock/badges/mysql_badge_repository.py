from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, dump_json, fetchall, fetchone, load_json, new_id, update_clause
from .model import CERTIFICATION_FIELDS, BadgeTemplate, Certification
from .repository import BadgeTemplateRepository, CertificationRepository


def _to_certification(r: dict) -> Certification:
    return Certification(
        id=r["id"],
        company_id=r["company_id"],
        profile_id=r["profile_id"],
        cert_name=r["cert_name"],
        cert_code=r.get("cert_code"),
        cert_number=r.get("cert_number"),
        certifier_name=r.get("certifier_name"),
        issue_date=r.get("issue_date"),
        expiry_date=r.get("expiry_date"),
        status=r.get("status") or "active",
    )


def _to_template(r: dict) -> BadgeTemplate:
    return BadgeTemplate(
        id=r["id"],
        company_id=r["company_id"],
        name=r["name"],
        template_config=load_json(r.get("template_config")),
        is_active=as_bool(r.get("is_active")),
    )


class MySQLCertificationRepository(CertificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_profile(self, profile_id: str) -> Sequence[Certification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT * FROM certifications WHERE profile_id=%s ORDER BY issue_date IS NULL, issue_date DESC",
                (profile_id,),
            )
            return [_to_certification(r) for r in fetchall(cur)]

    def get(self, company_id: str, certification_id: str) -> Optional[Certification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT * FROM certifications WHERE company_id=%s AND id=%s",
                (company_id, certification_id),
            )
            r = fetchone(cur)
            return _to_certification(r) if r else None

    def create(self, *, company_id: str, profile_id: str, fields: dict) -> str:
        certification_id = new_id()
        cols = [c for c in CERTIFICATION_FIELDS if c in fields]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT INTO certifications (id, company_id, profile_id, {", ".join(cols)})
                VALUES (%s, %s, %s, {", ".join(["%s"] * len(cols))})
                """,
                tuple([certification_id, company_id, profile_id] + [fields[c] for c in cols]),
            )
        return certification_id

    def update(self, company_id: str, certification_id: str, *, fields: dict) -> bool:
        assignments, params = update_clause(fields, CERTIFICATION_FIELDS)
        if not assignments:
            return False
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE certifications SET {assignments} WHERE company_id=%s AND id=%s",
                tuple(params + [company_id, certification_id]),
            )
            return cur.rowcount > 0

    def delete(self, company_id: str, certification_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM certifications WHERE company_id=%s AND id=%s", (company_id, certification_id))
            return cur.rowcount > 0


class MySQLBadgeTemplateRepository(BadgeTemplateRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_company(self, company_id: str) -> Sequence[BadgeTemplate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM badge_templates WHERE company_id=%s ORDER BY created_at", (company_id,))
            return [_to_template(r) for r in fetchall(cur)]

    def get(self, company_id: str, template_id: str) -> Optional[BadgeTemplate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM badge_templates WHERE company_id=%s AND id=%s", (company_id, template_id))
            r = fetchone(cur)
            return _to_template(r) if r else None

    def get_active(self, company_id: str) -> Optional[BadgeTemplate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT * FROM badge_templates WHERE company_id=%s AND is_active=1 ORDER BY created_at DESC LIMIT 1",
                (company_id,),
            )
            r = fetchone(cur)
            return _to_template(r) if r else None

    def create(self, *, company_id: str, name: str, template_config: Optional[dict]) -> str:
        template_id = new_id()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO badge_templates (id, company_id, name, template_config) VALUES (%s,%s,%s,%s)",
                (template_id, company_id, name, dump_json(template_config)),
            )
        return template_id

    def update(self, company_id: str, template_id: str, *, fields: dict) -> bool:
        assignments, params = update_clause(fields, ("name", "template_config"))
        if not assignments:
            return False
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE badge_templates SET {assignments} WHERE company_id=%s AND id=%s",
                tuple(params + [company_id, template_id]),
            )
            return cur.rowcount > 0

    def activate(self, company_id: str, template_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE badge_templates SET is_active=0 WHERE company_id=%s", (company_id,))
            cur.execute(
                "UPDATE badge_templates SET is_active=1 WHERE company_id=%s AND id=%s",
                (company_id, template_id),
            )
            return cur.rowcount > 0

    def delete(self, company_id: str, template_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM badge_templates WHERE company_id=%s AND id=%s", (company_id, template_id))
            return cur.rowcount > 0
