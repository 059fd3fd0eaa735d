from __future__ import annotations

from typing import Optional, Sequence

from ..common.datetime_utils import utc_now
from ..core.enums import EnrollmentStatus, ProfileStatus, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json, new_id, update_clause
from .model import EDITABLE_FIELDS, Profile, ProfileFilters
from .repository import ProfileRepository

_SELECT = """
    SELECT p.*, d.name AS department_name,
           (SELECT ur.role FROM user_roles ur WHERE ur.profile_id = p.id LIMIT 1) AS role
    FROM profiles p
    LEFT JOIN departments d ON d.id = p.department_id
"""

_INSERT_FIELDS = (
    "company_id",
    "user_id",
    "first_name",
    "last_name",
    "display_name",
    "email",
    "phone",
    "employee_id",
    "department_id",
    "pin_hash",
    "pin_lookup",
    "status",
    "avatar_url",
    "date_of_hire",
)


def _to_profile(r: dict) -> Profile:
    return Profile(
        id=r["id"],
        company_id=r.get("company_id"),
        user_id=r.get("user_id"),
        first_name=r.get("first_name"),
        last_name=r.get("last_name"),
        display_name=r.get("display_name"),
        email=r.get("email"),
        phone=r.get("phone"),
        employee_id=r.get("employee_id"),
        department_id=r.get("department_id"),
        department_name=r.get("department_name"),
        pin_hash=r.get("pin_hash"),
        pin_lookup=r.get("pin_lookup"),
        status=ProfileStatus(r.get("status") or "active"),
        avatar_url=r.get("avatar_url"),
        face_embedding=load_json(r.get("face_embedding")),
        face_enrollment_status=EnrollmentStatus(r.get("face_enrollment_status") or "not_enrolled"),
        face_embedding_updated_at=r.get("face_embedding_updated_at"),
        date_of_hire=r.get("date_of_hire"),
        role=Role(r["role"]) if r.get("role") else None,
        created_at=r.get("created_at"),
    )


class MySQLProfileRepository(ProfileRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _one(self, where: str, params: tuple) -> Optional[Profile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE {where} LIMIT 1", params)
            r = fetchone(cur)
            return _to_profile(r) if r else None

    def get(self, profile_id: str) -> Optional[Profile]:
        return self._one("p.id=%s", (profile_id,))

    def get_in_company(self, company_id: str, profile_id: str) -> Optional[Profile]:
        return self._one("p.company_id=%s AND p.id=%s", (company_id, profile_id))

    def get_by_user_id(self, user_id: str) -> Optional[Profile]:
        return self._one("p.user_id=%s", (user_id,))

    def find_by_identifier(self, company_id: str, identifier: str) -> Optional[Profile]:
        return self._one(
            "p.company_id=%s AND (p.employee_id=%s OR LOWER(p.email)=LOWER(%s) OR p.id=%s)",
            (company_id, identifier, identifier, identifier),
        )

    def list_for_company(self, company_id: str, filters: Optional[ProfileFilters] = None) -> Sequence[Profile]:
        filters = filters or ProfileFilters()
        clauses = ["p.company_id=%s"]
        params: list[object] = [company_id]

        if filters.status is not None:
            clauses.append("p.status=%s")
            params.append(filters.status.value)
        if filters.department_id:
            clauses.append("p.department_id=%s")
            params.append(filters.department_id)
        if filters.search:
            like = f"%{filters.search.strip()}%"
            clauses.append(
                "(p.first_name LIKE %s OR p.last_name LIKE %s OR p.display_name LIKE %s"
                " OR p.email LIKE %s OR p.employee_id LIKE %s)"
            )
            params.extend([like] * 5)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE {' AND '.join(clauses)} ORDER BY p.last_name, p.first_name",
                tuple(params),
            )
            return [_to_profile(r) for r in fetchall(cur)]

    def find_by_pin_lookup(self, company_id: str, pin_lookup: str) -> Sequence[Profile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE p.company_id=%s AND p.pin_lookup=%s", (company_id, pin_lookup))
            return [_to_profile(r) for r in fetchall(cur)]

    def list_admin_emails(self, company_id: str) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT DISTINCT p.email
                FROM profiles p
                JOIN user_roles ur ON ur.profile_id = p.id
                WHERE p.company_id=%s AND ur.role='admin' AND p.email IS NOT NULL AND p.email <> ''
                """,
                (company_id,),
            )
            return [r["email"] for r in fetchall(cur)]

    def create(self, *, fields: dict) -> str:
        profile_id = new_id()
        cols = ["id"] + [c for c in _INSERT_FIELDS if fields.get(c) is not None]
        params = [profile_id] + [
            fields[c].value if isinstance(fields[c], ProfileStatus) else fields[c] for c in cols[1:]
        ]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO profiles ({', '.join(cols)}) VALUES ({', '.join(['%s'] * len(cols))})",
                tuple(params),
            )
        return profile_id

    def update(self, profile_id: str, *, fields: dict) -> bool:
        assignments, params = update_clause(fields, EDITABLE_FIELDS + ("company_id", "user_id"))
        if not assignments:
            return False
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE profiles SET {assignments} WHERE id=%s", tuple(params + [profile_id]))
            return cur.rowcount > 0

    def set_status(self, profile_id: str, status: ProfileStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE profiles SET status=%s WHERE id=%s", (status.value, profile_id))
            return cur.rowcount > 0

    def set_pin(self, profile_id: str, pin_hash: Optional[str], pin_lookup: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE profiles SET pin_hash=%s, pin_lookup=%s WHERE id=%s", (pin_hash, pin_lookup, profile_id)
            )
            return cur.rowcount > 0

    def set_face_enrollment(
        self,
        profile_id: str,
        *,
        status: EnrollmentStatus,
        embedding: Optional[list],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE profiles
                SET face_enrollment_status=%s, face_embedding=%s, face_embedding_updated_at=%s
                WHERE id=%s
                """,
                (status.value, dump_json(embedding), utc_now(), profile_id),
            )
            return cur.rowcount > 0
