from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import RequestStatus, TimeOffType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, new_id
from .model import TimeOffRequest
from .repository import TimeOffRepository

_SELECT = """
    SELECT r.*,
           COALESCE(NULLIF(p.display_name, ''), TRIM(CONCAT(COALESCE(p.first_name, ''), ' ', COALESCE(p.last_name, '')))) AS employee_name
    FROM time_off_requests r
    JOIN profiles p ON p.id = r.profile_id
"""


def _to_request(r: dict) -> TimeOffRequest:
    return TimeOffRequest(
        id=r["id"],
        company_id=r["company_id"],
        profile_id=r["profile_id"],
        type=TimeOffType(r["type"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        reason=r["reason"],
        status=RequestStatus(r["status"]),
        hours_requested=r.get("hours_requested"),
        reviewed_by=r.get("reviewed_by"),
        reviewed_at=r.get("reviewed_at"),
        created_at=r.get("created_at"),
        employee_name=r.get("employee_name") or None,
    )


class MySQLTimeOffRepository(TimeOffRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        company_id: str,
        profile_id: str,
        type: TimeOffType,
        start_date: date,
        end_date: date,
        hours_requested: Optional[Decimal],
        reason: str,
    ) -> str:
        request_id = new_id()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO time_off_requests(
                    id, company_id, profile_id, type, start_date, end_date, hours_requested, reason, status
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    request_id,
                    company_id,
                    profile_id,
                    type.value,
                    start_date,
                    end_date,
                    hours_requested,
                    reason,
                    RequestStatus.PENDING.value,
                ),
            )
        return request_id

    def get(self, company_id: str, request_id: str) -> Optional[TimeOffRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE r.company_id=%s AND r.id=%s", (company_id, request_id))
            r = fetchone(cur)
            return _to_request(r) if r else None

    def list_for_company(
        self,
        company_id: str,
        *,
        status: Optional[RequestStatus] = None,
        profile_id: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[TimeOffRequest]:
        clauses = ["r.company_id=%s"]
        params: list[object] = [company_id]

        if status is not None:
            clauses.append("r.status=%s")
            params.append(status.value)
        if profile_id is not None:
            clauses.append("r.profile_id=%s")
            params.append(profile_id)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE {where} ORDER BY r.created_at DESC LIMIT %s",
                tuple(params + [int(limit)]),
            )
            return [_to_request(r) for r in fetchall(cur)]

    def decide(self, request_id: str, *, status: RequestStatus, reviewed_by: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE time_off_requests
                SET status=%s, reviewed_by=%s, reviewed_at=UTC_TIMESTAMP()
                WHERE id=%s AND status=%s
                """,
                (status.value, reviewed_by, request_id, RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0
