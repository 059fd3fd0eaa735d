from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import ReviewStatus, VerificationStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, new_id
from .model import FaceVerification, VerificationOutcome
from .repository import FaceVerificationRepository

_SELECT = """
    SELECT fv.*,
           COALESCE(NULLIF(p.display_name, ''), TRIM(CONCAT(COALESCE(p.first_name, ''), ' ', COALESCE(p.last_name, '')))) AS employee_name
    FROM face_verifications fv
    LEFT JOIN profiles p ON p.id = fv.profile_id
"""


def _to_verification(r: dict) -> FaceVerification:
    return FaceVerification(
        id=r["id"],
        company_id=r["company_id"],
        time_entry_id=r["time_entry_id"],
        profile_id=r["profile_id"],
        status=VerificationStatus(r["status"]),
        clock_photo_url=r.get("clock_photo_url"),
        profile_photo_url=r.get("profile_photo_url"),
        match_distance=float(r["match_distance"]) if r.get("match_distance") is not None else None,
        match_reason=r.get("match_reason"),
        error_message=r.get("error_message"),
        verification_version=r.get("verification_version"),
        reviewed_by=r.get("reviewed_by"),
        review_status=ReviewStatus(r["review_status"]) if r.get("review_status") else None,
        reviewed_at=r.get("reviewed_at"),
        created_at=r.get("created_at"),
        employee_name=r.get("employee_name") or None,
    )


class MySQLFaceVerificationRepository(FaceVerificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        company_id: str,
        time_entry_id: str,
        profile_id: str,
        clock_photo_url: Optional[str],
        profile_photo_url: Optional[str],
        outcome: VerificationOutcome,
        verification_version: str,
    ) -> str:
        verification_id = new_id()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO face_verifications(
                    id, company_id, time_entry_id, profile_id, clock_photo_url, profile_photo_url,
                    status, match_distance, match_reason, error_message, verification_version
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    verification_id,
                    company_id,
                    time_entry_id,
                    profile_id,
                    clock_photo_url,
                    profile_photo_url,
                    outcome.status.value,
                    outcome.match_distance,
                    outcome.match_reason,
                    outcome.error_message,
                    verification_version,
                ),
            )
        return verification_id

    def get(self, company_id: str, verification_id: str) -> Optional[FaceVerification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE fv.company_id=%s AND fv.id=%s", (company_id, verification_id))
            r = fetchone(cur)
            return _to_verification(r) if r else None

    def latest_for_entry(self, time_entry_id: str) -> Optional[FaceVerification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE fv.time_entry_id=%s ORDER BY fv.created_at DESC LIMIT 1",
                (time_entry_id,),
            )
            r = fetchone(cur)
            return _to_verification(r) if r else None

    def list_for_company(
        self,
        company_id: str,
        *,
        status: Optional[VerificationStatus] = None,
        limit: int = 200,
    ) -> Sequence[FaceVerification]:
        sql = f"{_SELECT} WHERE fv.company_id=%s"
        params: list = [company_id]
        if status is not None:
            sql += " AND fv.status=%s"
            params.append(status.value)
        sql += " ORDER BY fv.created_at DESC LIMIT %s"
        params.append(int(limit))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_verification(r) for r in fetchall(cur)]

    def mark_reviewed(self, verification_id: str, *, reviewed_by: str, review_status: ReviewStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE face_verifications
                SET reviewed_by=%s, review_status=%s, reviewed_at=UTC_TIMESTAMP()
                WHERE id=%s
                """,
                (reviewed_by, review_status.value, verification_id),
            )
            return cur.rowcount > 0
