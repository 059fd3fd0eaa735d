from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import RequestStatus, TimeOffType
from .model import TimeOffRequest


class TimeOffRepository(Protocol):
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
        raise NotImplementedError

    def get(self, company_id: str, request_id: str) -> Optional[TimeOffRequest]:
        raise NotImplementedError

    def list_for_company(
        self,
        company_id: str,
        *,
        status: Optional[RequestStatus] = None,
        profile_id: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[TimeOffRequest]:
        raise NotImplementedError

    def decide(self, request_id: str, *, status: RequestStatus, reviewed_by: str) -> bool:
        """Only pending requests change; returns False otherwise."""
        raise NotImplementedError
