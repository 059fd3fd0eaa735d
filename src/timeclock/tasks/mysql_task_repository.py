from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import TaskAction
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, in_clause, new_id, update_clause
from .model import TaskActivity, TaskType
from .repository import TaskActivityRepository, TaskTypeRepository

_ACTIVITY_SELECT = """
    SELECT ta.*,
           COALESCE(NULLIF(p.display_name, ''), TRIM(CONCAT(COALESCE(p.first_name, ''), ' ', COALESCE(p.last_name, '')))) AS employee_name,
           tt.name AS task_name, tt.code AS task_code, pr.name AS project_name
    FROM task_activities ta
    LEFT JOIN profiles p ON p.id = ta.profile_id
    LEFT JOIN task_types tt ON tt.id = ta.task_type_id
    LEFT JOIN projects pr ON pr.id = ta.project_id
"""


def _to_task_type(r: dict) -> TaskType:
    return TaskType(
        id=r["id"],
        company_id=r["company_id"],
        name=r["name"],
        code=r["code"],
        is_active=as_bool(r.get("is_active")),
    )


def _to_activity(r: dict) -> TaskActivity:
    return TaskActivity(
        id=r["id"],
        company_id=r["company_id"],
        user_id=r.get("user_id"),
        profile_id=r["profile_id"],
        task_id=r["task_id"],
        task_type_id=r["task_type_id"],
        time_entry_id=r["time_entry_id"],
        action_type=TaskAction(r["action_type"]),
        timestamp=r["timestamp"],
        project_id=r.get("project_id"),
        employee_name=r.get("employee_name") or None,
        task_name=r.get("task_name"),
        task_code=r.get("task_code"),
        project_name=r.get("project_name"),
    )


class MySQLTaskTypeRepository(TaskTypeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_company(self, company_id: str, *, include_inactive: bool = False) -> Sequence[TaskType]:
        sql = "SELECT * FROM task_types WHERE company_id=%s"
        if not include_inactive:
            sql += " AND is_active=1"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY code", (company_id,))
            return [_to_task_type(r) for r in fetchall(cur)]

    def get(self, company_id: str, task_type_id: str) -> Optional[TaskType]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM task_types WHERE company_id=%s AND id=%s", (company_id, task_type_id))
            r = fetchone(cur)
            return _to_task_type(r) if r else None

    def get_active_by_code(self, company_id: str, code: str) -> Optional[TaskType]:
        return self.find_active_by_codes(company_id, [code])

    def find_active_by_codes(self, company_id: str, codes: Sequence[str]) -> Optional[TaskType]:
        codes = list(codes)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT * FROM task_types
                WHERE company_id=%s AND is_active=1 AND code IN ({in_clause(codes)})
                ORDER BY FIELD(code, {in_clause(codes)})
                LIMIT 1
                """,
                tuple([company_id] + codes + codes),
            )
            r = fetchone(cur)
            return _to_task_type(r) if r else None

    def create(self, *, company_id: str, name: str, code: str) -> str:
        task_type_id = new_id()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO task_types (id, company_id, name, code) VALUES (%s,%s,%s,%s)",
                (task_type_id, company_id, name, code),
            )
        return task_type_id

    def update(self, company_id: str, task_type_id: str, *, fields: dict) -> bool:
        assignments, params = update_clause(fields, ("name", "code", "is_active"))
        if not assignments:
            return False
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE task_types SET {assignments} WHERE company_id=%s AND id=%s",
                tuple(params + [company_id, task_type_id]),
            )
            return cur.rowcount > 0

    def delete(self, company_id: str, task_type_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM task_types WHERE company_id=%s AND id=%s", (company_id, task_type_id))
            return cur.rowcount > 0


class MySQLTaskActivityRepository(TaskActivityRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        company_id: str,
        user_id: Optional[str],
        profile_id: str,
        task_id: str,
        task_type_id: str,
        project_id: Optional[str],
        time_entry_id: str,
        action_type: TaskAction,
        timestamp: datetime,
    ) -> str:
        activity_id = new_id()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO task_activities(
                    id, company_id, user_id, profile_id, task_id, task_type_id,
                    project_id, time_entry_id, action_type, timestamp
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    activity_id,
                    company_id,
                    user_id,
                    profile_id,
                    task_id,
                    task_type_id,
                    project_id,
                    time_entry_id,
                    action_type.value,
                    timestamp,
                ),
            )
        return activity_id

    def get(self, activity_id: str) -> Optional[TaskActivity]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_ACTIVITY_SELECT} WHERE ta.id=%s", (activity_id,))
            r = fetchone(cur)
            return _to_activity(r) if r else None

    def list_for_entry(self, time_entry_id: str) -> Sequence[TaskActivity]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_ACTIVITY_SELECT} WHERE ta.time_entry_id=%s ORDER BY ta.timestamp", (time_entry_id,))
            return [_to_activity(r) for r in fetchall(cur)]

    def list_recent(self, company_id: str, *, limit: int = 50) -> Sequence[TaskActivity]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_ACTIVITY_SELECT} WHERE ta.company_id=%s ORDER BY ta.timestamp DESC LIMIT %s",
                (company_id, int(limit)),
            )
            return [_to_activity(r) for r in fetchall(cur)]
