from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError

from ..core.enums import ExecutionStatus, ReportType, ScheduleFrequency
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, dump_json, fetchall, fetchone, load_json, new_id, update_clause
from .model import ReportConfig, ReportExecution, ReportRecipient, ScheduledReport
from .repository import ExecutionRepository, RecipientRepository, ScheduledReportRepository

_REPORT_FIELDS = (
    "name",
    "report_type",
    "schedule_frequency",
    "schedule_time",
    "schedule_day_of_week",
    "schedule_day_of_month",
    "report_config",
    "is_active",
)

_SELECT = """
    SELECT sr.*, c.company_name, c.timezone
    FROM scheduled_reports sr
    JOIN companies c ON c.id = sr.company_id
"""


def _to_report(r: dict) -> ScheduledReport:
    return ScheduledReport(
        id=r["id"],
        company_id=r["company_id"],
        name=r["name"],
        report_type=ReportType(r["report_type"]),
        schedule_frequency=ScheduleFrequency(r["schedule_frequency"]),
        schedule_time=r["schedule_time"],
        schedule_day_of_week=r.get("schedule_day_of_week"),
        schedule_day_of_month=r.get("schedule_day_of_month"),
        report_config=ReportConfig.from_dict(load_json(r.get("report_config"), {})),
        is_active=as_bool(r.get("is_active")),
        created_by=r.get("created_by"),
        created_at=r.get("created_at"),
        company_name=r.get("company_name"),
        timezone=r.get("timezone"),
    )


def _db_value(key: str, value):
    if key in ("report_type", "schedule_frequency") and hasattr(value, "value"):
        return value.value
    if key == "report_config":
        return dump_json(value.as_dict() if isinstance(value, ReportConfig) else value)
    if key == "is_active":
        return int(bool(value))
    return value


class MySQLScheduledReportRepository(ScheduledReportRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_company(self, company_id: str) -> Sequence[ScheduledReport]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE sr.company_id=%s ORDER BY sr.created_at DESC", (company_id,))
            return [_to_report(r) for r in fetchall(cur)]

    def list_active(self) -> Sequence[ScheduledReport]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE sr.is_active=1 ORDER BY sr.created_at")
            return [_to_report(r) for r in fetchall(cur)]

    def get(self, company_id: str, report_id: str) -> Optional[ScheduledReport]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE sr.company_id=%s AND sr.id=%s", (company_id, report_id))
            r = fetchone(cur)
            return _to_report(r) if r else None

    def create(self, *, company_id: str, created_by: Optional[str], fields: dict) -> str:
        report_id = new_id()
        values = {k: _db_value(k, fields[k]) for k in _REPORT_FIELDS if k in fields}
        cols = list(values)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT INTO scheduled_reports (id, company_id, created_by, {", ".join(cols)})
                VALUES (%s, %s, %s, {", ".join(["%s"] * len(cols))})
                """,
                tuple([report_id, company_id, created_by] + list(values.values())),
            )
        return report_id

    def update(self, company_id: str, report_id: str, *, fields: dict) -> bool:
        values = {k: _db_value(k, v) for k, v in fields.items()}
        assignments, params = update_clause(values, _REPORT_FIELDS)
        if not assignments:
            return False
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE scheduled_reports SET {assignments} WHERE company_id=%s AND id=%s",
                tuple(params + [company_id, report_id]),
            )
            return cur.rowcount > 0

    def delete(self, company_id: str, report_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM scheduled_reports WHERE company_id=%s AND id=%s", (company_id, report_id))
            return cur.rowcount > 0


class MySQLRecipientRepository(RecipientRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_report(self, report_id: str) -> Sequence[ReportRecipient]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT * FROM report_recipients WHERE scheduled_report_id=%s ORDER BY created_at",
                (report_id,),
            )
            return [
                ReportRecipient(
                    id=r["id"],
                    scheduled_report_id=r["scheduled_report_id"],
                    email=r["email"],
                    created_at=r.get("created_at"),
                )
                for r in fetchall(cur)
            ]

    def add(self, report_id: str, email: str) -> Optional[str]:
        recipient_id = new_id()
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO report_recipients (id, scheduled_report_id, email) VALUES (%s,%s,%s)",
                    (recipient_id, report_id, email),
                )
        except IntegrityError as e:
            if e.errno == errorcode.ER_DUP_ENTRY:
                return None
            raise
        return recipient_id

    def remove(self, report_id: str, recipient_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM report_recipients WHERE scheduled_report_id=%s AND id=%s",
                (report_id, recipient_id),
            )
            return cur.rowcount > 0


class MySQLExecutionRepository(ExecutionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        report_id: str,
        executed_at: datetime,
        recipients_count: int,
        status: ExecutionStatus,
        error_message: Optional[str] = None,
    ) -> str:
        execution_id = new_id()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO report_executions(
                    id, scheduled_report_id, executed_at, recipients_count, status, error_message
                )
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (execution_id, report_id, executed_at, int(recipients_count), status.value, error_message),
            )
        return execution_id

    def has_run_since(self, report_id: str, since: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS x FROM report_executions WHERE scheduled_report_id=%s AND executed_at >= %s LIMIT 1",
                (report_id, since),
            )
            return fetchone(cur) is not None

    def list_for_company(
        self,
        company_id: str,
        *,
        report_id: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[ReportExecution]:
        clauses = ["sr.company_id=%s"]
        params: list[object] = [company_id]
        if report_id:
            clauses.append("e.scheduled_report_id=%s")
            params.append(report_id)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT e.*, sr.name AS report_name
                FROM report_executions e
                JOIN scheduled_reports sr ON sr.id = e.scheduled_report_id
                WHERE {" AND ".join(clauses)}
                ORDER BY e.executed_at DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [
                ReportExecution(
                    id=r["id"],
                    scheduled_report_id=r["scheduled_report_id"],
                    executed_at=r["executed_at"],
                    recipients_count=int(r["recipients_count"] or 0),
                    status=ExecutionStatus(r["status"]),
                    error_message=r.get("error_message"),
                    report_name=r.get("report_name"),
                )
                for r in fetchall(cur)
            ]
