from __future__ import annotations

from datetime import time
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, new_id, normalize_mysql_time
from .model import EmployeeSchedule
from .repository import ScheduleRepository


def _to_schedule(r: dict) -> EmployeeSchedule:
    return EmployeeSchedule(
        id=r["id"],
        company_id=r["company_id"],
        profile_id=r["profile_id"],
        day_of_week=int(r["day_of_week"]),
        start_time=normalize_mysql_time(r.get("start_time")),
        end_time=normalize_mysql_time(r.get("end_time")),
        is_day_off=as_bool(r.get("is_day_off")),
    )


class MySQLScheduleRepository(ScheduleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_profile(self, profile_id: str) -> Sequence[EmployeeSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT * FROM employee_schedules WHERE profile_id=%s ORDER BY day_of_week",
                (profile_id,),
            )
            return [_to_schedule(r) for r in fetchall(cur)]

    def list_for_day(self, company_id: str, day_of_week: int) -> Sequence[EmployeeSchedule]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT * FROM employee_schedules WHERE company_id=%s AND day_of_week=%s",
                (company_id, int(day_of_week)),
            )
            return [_to_schedule(r) for r in fetchall(cur)]

    def upsert(
        self,
        *,
        company_id: str,
        profile_id: str,
        day_of_week: int,
        start_time: Optional[time],
        end_time: Optional[time],
        is_day_off: bool,
    ) -> str:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO employee_schedules(id, company_id, profile_id, day_of_week, start_time, end_time, is_day_off)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE start_time=VALUES(start_time), end_time=VALUES(end_time),
                                        is_day_off=VALUES(is_day_off)
                """,
                (new_id(), company_id, profile_id, int(day_of_week), start_time, end_time, int(bool(is_day_off))),
            )

            # ids are generated here, so re-read to get the surviving row on update
            cur.execute(
                "SELECT id FROM employee_schedules WHERE profile_id=%s AND day_of_week=%s",
                (profile_id, int(day_of_week)),
            )
            r = fetchone(cur)
            return r["id"] if r else ""

    def delete(self, company_id: str, schedule_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM employee_schedules WHERE company_id=%s AND id=%s", (company_id, schedule_id))
            return cur.rowcount > 0
