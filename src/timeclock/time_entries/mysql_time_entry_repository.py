from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import AdjustmentType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, in_clause, new_id, update_clause
from .model import EntryFilters, Location, NewTimeEntry, TimeAdjustment, TimeEntry
from .repository import AdjustmentRepository, TimeEntryRepository

_SELECT = """
    SELECT te.*,
           COALESCE(NULLIF(p.display_name, ''), TRIM(CONCAT(COALESCE(p.first_name, ''), ' ', COALESCE(p.last_name, '')))) AS employee_name,
           p.employee_id AS employee_code,
           p.department_id AS department_id,
           pr.name AS project_name
    FROM time_entries te
    LEFT JOIN profiles p ON p.id = te.profile_id
    LEFT JOIN projects pr ON pr.id = te.project_id
"""

_EDITABLE = ("start_time", "end_time", "duration_minutes", "project_id", "description")


def _float(value) -> Optional[float]:
    return float(value) if value is not None else None


def _to_entry(r: dict) -> TimeEntry:
    return TimeEntry(
        id=r["id"],
        company_id=r["company_id"],
        profile_id=r["profile_id"],
        user_id=r.get("user_id"),
        start_time=r["start_time"],
        end_time=r.get("end_time"),
        duration_minutes=r.get("duration_minutes"),
        is_break=as_bool(r.get("is_break")),
        project_id=r.get("project_id"),
        description=r.get("description"),
        clock_in_photo_url=r.get("clock_in_photo_url"),
        clock_out_photo_url=r.get("clock_out_photo_url"),
        clock_in_latitude=_float(r.get("clock_in_latitude")),
        clock_in_longitude=_float(r.get("clock_in_longitude")),
        clock_in_address=r.get("clock_in_address"),
        clock_out_latitude=_float(r.get("clock_out_latitude")),
        clock_out_longitude=_float(r.get("clock_out_longitude")),
        clock_out_address=r.get("clock_out_address"),
        employee_name=r.get("employee_name") or None,
        employee_id=r.get("employee_code"),
        department_id=r.get("department_id"),
        project_name=r.get("project_name"),
    )


class MySQLTimeEntryRepository(TimeEntryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, entry_id: str) -> Optional[TimeEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE te.id=%s", (entry_id,))
            r = fetchone(cur)
            return _to_entry(r) if r else None

    def find_open(
        self,
        company_id: str,
        *,
        profile_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Optional[TimeEntry]:
        if profile_id:
            who, param = "te.profile_id=%s", profile_id
        elif user_id:
            who, param = "te.user_id=%s", user_id
        else:
            return None
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                {_SELECT}
                WHERE te.company_id=%s AND {who} AND te.end_time IS NULL AND te.is_break=0
                ORDER BY te.start_time DESC
                LIMIT 1
                """,
                (company_id, param),
            )
            r = fetchone(cur)
            return _to_entry(r) if r else None

    def create(self, entry: NewTimeEntry) -> str:
        entry_id = new_id()
        loc = entry.location
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO time_entries(
                    id, company_id, profile_id, user_id, project_id, start_time, end_time,
                    duration_minutes, is_break, description, clock_in_photo_url,
                    clock_in_latitude, clock_in_longitude, clock_in_address
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    entry_id,
                    entry.company_id,
                    entry.profile_id,
                    entry.user_id,
                    entry.project_id,
                    entry.start_time,
                    entry.end_time,
                    entry.duration_minutes,
                    int(entry.is_break),
                    entry.description,
                    entry.photo_url,
                    loc.latitude,
                    loc.longitude,
                    loc.address,
                ),
            )
        return entry_id

    def close(
        self,
        entry_id: str,
        *,
        end_time: datetime,
        duration_minutes: int,
        photo_url: Optional[str] = None,
        location: Optional[Location] = None,
        description: Optional[str] = None,
    ) -> bool:
        loc = location or Location()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE time_entries
                SET end_time=%s, duration_minutes=%s,
                    clock_out_photo_url=COALESCE(%s, clock_out_photo_url),
                    clock_out_latitude=COALESCE(%s, clock_out_latitude),
                    clock_out_longitude=COALESCE(%s, clock_out_longitude),
                    clock_out_address=COALESCE(%s, clock_out_address),
                    description=COALESCE(%s, description)
                WHERE id=%s
                """,
                (end_time, int(duration_minutes), photo_url, loc.latitude, loc.longitude, loc.address, description, entry_id),
            )
            return cur.rowcount > 0

    def update(self, entry_id: str, *, fields: dict) -> bool:
        assignments, params = update_clause(fields, _EDITABLE)
        if not assignments:
            return False
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE time_entries SET {assignments} WHERE id=%s", tuple(params + [entry_id]))
            return cur.rowcount > 0

    def delete(self, company_id: str, entry_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM task_activities WHERE time_entry_id=%s AND company_id=%s", (entry_id, company_id))
            cur.execute("DELETE FROM time_entries WHERE id=%s AND company_id=%s", (entry_id, company_id))
            return cur.rowcount > 0

    def list_open(self, company_id: str) -> Sequence[TimeEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE te.company_id=%s AND te.end_time IS NULL ORDER BY te.start_time",
                (company_id,),
            )
            return [_to_entry(r) for r in fetchall(cur)]

    def list_open_started_before(self, cutoff: datetime) -> Sequence[TimeEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE te.end_time IS NULL AND te.start_time < %s ORDER BY te.company_id, te.start_time",
                (cutoff,),
            )
            return [_to_entry(r) for r in fetchall(cur)]

    def list_range(
        self,
        company_id: str,
        start: datetime,
        end: datetime,
        filters: Optional[EntryFilters] = None,
    ) -> Sequence[TimeEntry]:
        filters = filters or EntryFilters()
        clauses = ["te.company_id=%s", "te.start_time >= %s", "te.start_time < %s"]
        params: list[object] = [company_id, start, end]

        if filters.profile_id:
            clauses.append("te.profile_id=%s")
            params.append(filters.profile_id)
        if filters.project_ids:
            clauses.append(f"te.project_id IN ({in_clause(filters.project_ids)})")
            params.extend(filters.project_ids)
        if filters.department_ids:
            clauses.append(f"p.department_id IN ({in_clause(filters.department_ids)})")
            params.extend(filters.department_ids)
        if not filters.include_breaks:
            clauses.append("te.is_break=0")
        if filters.closed_only:
            clauses.append("te.end_time IS NOT NULL")

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE {' AND '.join(clauses)} ORDER BY te.start_time", tuple(params))
            return [_to_entry(r) for r in fetchall(cur)]

    def list_with_photos(self, company_id: str) -> Sequence[TimeEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                {_SELECT}
                WHERE te.company_id=%s
                  AND (te.clock_in_photo_url IS NOT NULL OR te.clock_out_photo_url IS NOT NULL)
                ORDER BY te.start_time
                """,
                (company_id,),
            )
            return [_to_entry(r) for r in fetchall(cur)]


class MySQLAdjustmentRepository(AdjustmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        company_id: str,
        time_entry_id: str,
        admin_user_id: Optional[str],
        affected_user_id: Optional[str],
        old_end_time: Optional[datetime],
        new_end_time: Optional[datetime],
        action_type: AdjustmentType,
        reason: Optional[str],
    ) -> str:
        adjustment_id = new_id()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO admin_time_adjustments(
                    id, company_id, time_entry_id, admin_user_id, affected_user_id,
                    old_end_time, new_end_time, action_type, reason
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    adjustment_id,
                    company_id,
                    time_entry_id,
                    admin_user_id,
                    affected_user_id,
                    old_end_time,
                    new_end_time,
                    action_type.value,
                    reason,
                ),
            )
        return adjustment_id

    def list_for_company(
        self,
        company_id: str,
        *,
        time_entry_id: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[TimeAdjustment]:
        clauses = ["company_id=%s"]
        params: list[object] = [company_id]
        if time_entry_id:
            clauses.append("time_entry_id=%s")
            params.append(time_entry_id)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT * FROM admin_time_adjustments
                WHERE {' AND '.join(clauses)}
                ORDER BY created_at DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [
                TimeAdjustment(
                    id=r["id"],
                    company_id=r["company_id"],
                    time_entry_id=r["time_entry_id"],
                    admin_user_id=r.get("admin_user_id"),
                    affected_user_id=r.get("affected_user_id"),
                    old_end_time=r.get("old_end_time"),
                    new_end_time=r.get("new_end_time"),
                    action_type=AdjustmentType(r["action_type"]),
                    reason=r.get("reason"),
                    created_at=r.get("created_at"),
                )
                for r in fetchall(cur)
            ]
