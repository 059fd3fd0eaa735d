from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

import pytest

from timeclock.core.actor import Actor
from timeclock.core.enums import RequestStatus, Role, TimeOffType
from timeclock.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from timeclock.time_off.model import TimeOffRequest
from timeclock.time_off.service import TimeOffService

ADMIN = Actor(account_id="a1", profile_id="pa", company_id="c1", role=Role.ADMIN)
EMPLOYEE = Actor(account_id="a2", profile_id="p1", company_id="c1", role=Role.EMPLOYEE)


class FakeTimeOffRepo:
    def __init__(self):
        self._next_id = 1
        self._rows: dict[str, TimeOffRequest] = {}

    def create(self, *, company_id, profile_id, type, start_date, end_date, hours_requested, reason):
        request_id = f"r{self._next_id}"
        self._next_id += 1
        self._rows[request_id] = TimeOffRequest(
            id=request_id,
            company_id=company_id,
            profile_id=profile_id,
            type=type,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
            status=RequestStatus.PENDING,
            hours_requested=hours_requested,
            created_at=datetime(2026, 10, 1, 10, 0, 0),
        )
        return request_id

    def get(self, company_id, request_id):
        req = self._rows.get(request_id)
        return req if req and req.company_id == company_id else None

    def list_for_company(self, company_id, *, status=None, profile_id=None, limit=200):
        return [
            r
            for r in self._rows.values()
            if r.company_id == company_id
            and (status is None or r.status == status)
            and (profile_id is None or r.profile_id == profile_id)
        ][:limit]

    def decide(self, request_id, *, status, reviewed_by):
        req = self._rows.get(request_id)
        if not req or req.status != RequestStatus.PENDING:
            return False
        self._rows[request_id] = replace(
            req, status=status, reviewed_by=reviewed_by, reviewed_at=datetime(2026, 10, 1, 11, 0, 0)
        )
        return True


def _submit(service, **kw):
    args = dict(
        actor=EMPLOYEE,
        type="vacation",
        start_date=date(2026, 11, 2),
        end_date=date(2026, 11, 6),
        reason="Family trip",
    )
    args.update(kw)
    return service.submit(**args)


def test_submit_creates_pending_request():
    service = TimeOffService(FakeTimeOffRepo())

    req = _submit(service, hours_requested="40")

    assert req.status == RequestStatus.PENDING
    assert req.type == TimeOffType.VACATION
    assert req.profile_id == "p1"
    assert req.hours_requested == 40.0


def test_submit_defaults_type_to_vacation():
    req = _submit(TimeOffService(FakeTimeOffRepo()), type=None)
    assert req.type == TimeOffType.VACATION


@pytest.mark.parametrize(
    "overrides",
    [
        {"type": "sabbatical"},
        {"end_date": date(2026, 11, 1)},
        {"reason": "  "},
        {"hours_requested": "-4"},
        {"hours_requested": "lots"},
    ],
)
def test_submit_validation(overrides):
    with pytest.raises(ValidationError):
        _submit(TimeOffService(FakeTimeOffRepo()), **overrides)


def test_approve_then_second_decision_is_rejected():
    service = TimeOffService(FakeTimeOffRepo())
    req = _submit(service)

    approved = service.approve(actor=ADMIN, request_id=req.id)

    assert approved.status == RequestStatus.APPROVED
    assert approved.reviewed_by == "a1"
    with pytest.raises(ValidationError):
        service.reject(actor=ADMIN, request_id=req.id)


def test_only_admin_decides():
    service = TimeOffService(FakeTimeOffRepo())
    req = _submit(service)
    with pytest.raises(AuthorizationError):
        service.approve(actor=EMPLOYEE, request_id=req.id)


def test_decide_unknown_request():
    with pytest.raises(NotFoundError):
        TimeOffService(FakeTimeOffRepo()).reject(actor=ADMIN, request_id="r99")


def test_lists():
    service = TimeOffService(FakeTimeOffRepo())
    first = _submit(service)
    _submit(service, type="sick")
    service.reject(actor=ADMIN, request_id=first.id)

    assert len(service.list_mine(actor=EMPLOYEE)) == 2
    assert [r.type for r in service.list_pending(actor=ADMIN)] == [TimeOffType.SICK]
    assert service.list_for_profile(actor=ADMIN, profile_id="someone-else") == []
