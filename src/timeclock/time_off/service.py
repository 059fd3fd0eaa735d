from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..common.validators import optional_float, require_non_empty
from ..core.actor import Actor
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import RequestStatus, TimeOffType
from ..core.exceptions import NotFoundError, ValidationError
from .model import TimeOffRequest
from .repository import TimeOffRepository


class TimeOffService:
    def __init__(self, requests: TimeOffRepository):
        self._requests = requests

    def submit(
        self,
        *,
        actor: Actor,
        type: str,
        start_date: date,
        end_date: date,
        reason: str,
        hours_requested=None,
    ) -> TimeOffRequest:
        company_id = actor.require_company()
        if not actor.profile_id:
            raise ValidationError("Profile not found for user")

        try:
            off_type = TimeOffType(type or TimeOffType.VACATION.value)
        except ValueError:
            raise ValidationError("Invalid time off type")

        if end_date < start_date:
            raise ValidationError("End date must be on or after start date")

        reason = require_non_empty(reason, "Reason")
        hours = optional_float(hours_requested, "hours_requested")
        if hours is not None and hours <= 0:
            raise ValidationError("hours_requested must be positive")

        request_id = self._requests.create(
            company_id=company_id,
            profile_id=actor.profile_id,
            type=off_type,
            start_date=start_date,
            end_date=end_date,
            hours_requested=hours,
            reason=reason,
        )
        return self._get(company_id, request_id)

    def approve(self, *, actor: Actor, request_id: str) -> TimeOffRequest:
        return self._decide(actor, request_id, RequestStatus.APPROVED)

    def reject(self, *, actor: Actor, request_id: str) -> TimeOffRequest:
        return self._decide(actor, request_id, RequestStatus.REJECTED)

    def _decide(self, actor: Actor, request_id: str, status: RequestStatus) -> TimeOffRequest:
        company_id = actor.require_admin()
        req = self._get(company_id, request_id)
        if req.status != RequestStatus.PENDING:
            raise ValidationError("Request has already been processed")
        if not self._requests.decide(req.id, status=status, reviewed_by=actor.account_id):
            raise ValidationError("Request has already been processed")
        return self._get(company_id, request_id)

    def list_mine(self, *, actor: Actor) -> Sequence[TimeOffRequest]:
        company_id = actor.require_company()
        if not actor.profile_id:
            return []
        return self._requests.list_for_company(company_id, profile_id=actor.profile_id, limit=DEFAULT_HISTORY_LIMIT)

    def list_pending(self, *, actor: Actor) -> Sequence[TimeOffRequest]:
        return self._requests.list_for_company(
            actor.require_admin(), status=RequestStatus.PENDING, limit=DEFAULT_HISTORY_LIMIT
        )

    def list_for_profile(self, *, actor: Actor, profile_id: Optional[str]) -> Sequence[TimeOffRequest]:
        return self._requests.list_for_company(actor.require_admin(), profile_id=profile_id, limit=DEFAULT_HISTORY_LIMIT)

    def _get(self, company_id: str, request_id: str) -> TimeOffRequest:
        req = self._requests.get(company_id, request_id)
        if req is None:
            raise NotFoundError("Time off request not found")
        return req
