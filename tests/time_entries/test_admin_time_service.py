from __future__ import annotations

from dataclasses import replace
from datetime import datetime

import pytest

from timeclock.companies.model import Company
from timeclock.core.actor import Actor
from timeclock.core.enums import AdjustmentType, Role
from timeclock.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from timeclock.time_entries.model import TimeEntry
from timeclock.time_entries.service import AdminTimeService

NOW = datetime(2026, 10, 19, 16, 30, 45)
ADMIN = Actor(account_id="admin-1", profile_id="pa", company_id="c1", role=Role.ADMIN)
EMPLOYEE = Actor(account_id="emp-1", profile_id="p1", company_id="c1", role=Role.EMPLOYEE)


class FakeEntries:
    def __init__(self, entries=()):
        self.entries = {e.id: e for e in entries}

    def get(self, entry_id):
        return self.entries.get(entry_id)

    def update(self, entry_id, *, fields):
        self.entries[entry_id] = replace(self.entries[entry_id], **fields)
        return True

    def close(self, entry_id, *, end_time, duration_minutes, photo_url=None, location=None, description=None):
        self.entries[entry_id] = replace(
            self.entries[entry_id], end_time=end_time, duration_minutes=duration_minutes, description=description
        )
        return True

    def list_open_started_before(self, cutoff):
        return [e for e in self.entries.values() if e.is_open and e.start_time < cutoff]

    def delete(self, company_id, entry_id):
        return self.entries.pop(entry_id, None) is not None


class FakeAdjustments:
    def __init__(self, fail=False):
        self.rows = []
        self.fail = fail

    def create(self, **kw):
        if self.fail:
            raise RuntimeError("audit table missing")
        self.rows.append(kw)
        return str(len(self.rows))


class FakeCompanies:
    def get(self, company_id):
        return Company(id=company_id, company_name=f"Company {company_id}", timezone="America/Los_Angeles")


class FakeProfiles:
    def __init__(self, admin_emails):
        self._emails = admin_emails

    def list_admin_emails(self, company_id):
        return self._emails.get(company_id, [])


class FakeMailer:
    enabled = True

    def __init__(self):
        self.sent = []

    def send(self, *, to, subject, html, attachments=None):
        self.sent.append({"to": list(to), "subject": subject, "html": html})


def _entry(entry_id="e1", *, company_id="c1", start=datetime(2026, 10, 19, 8, 0), end=None, **kw):
    return TimeEntry(
        id=entry_id,
        company_id=company_id,
        profile_id="p1",
        user_id="u1",
        start_time=start,
        end_time=end,
        employee_name="Erin Employee",
        employee_id="E-001",
        **kw,
    )


def _service(entries, adjustments=None, admin_emails=None, mailer=None):
    return AdminTimeService(
        FakeEntries(entries),
        adjustments or FakeAdjustments(),
        FakeCompanies(),
        FakeProfiles(admin_emails or {}),
        mailer or FakeMailer(),
        now=lambda: NOW,
    )


def test_retroactive_clockout_rounds_and_audits():
    adjustments = FakeAdjustments()
    svc = _service([_entry()], adjustments)

    entry = svc.retroactive_clockout(
        actor=ADMIN, time_entry_id="e1", new_end_time="2026-10-19T16:00:40Z", reason="forgot"
    )

    assert entry.end_time == datetime(2026, 10, 19, 16, 0, 40)
    assert entry.duration_minutes == 481
    row = adjustments.rows[0]
    assert row["action_type"] == AdjustmentType.RETROACTIVE_CLOCKOUT
    assert row["admin_user_id"] == "admin-1"
    assert row["old_end_time"] is None
    assert row["reason"] == "forgot"


def test_retroactive_clockout_before_start_rejected():
    svc = _service([_entry()])
    with pytest.raises(ValidationError):
        svc.retroactive_clockout(actor=ADMIN, time_entry_id="e1", new_end_time="2026-10-19T07:00:00Z")


def test_retroactive_clockout_requires_admin():
    with pytest.raises(AuthorizationError):
        _service([_entry()]).retroactive_clockout(actor=EMPLOYEE, time_entry_id="e1", new_end_time="2026-10-19T16:00:00Z")


def test_retroactive_clockout_other_company_is_404():
    svc = _service([_entry(company_id="c2")])
    with pytest.raises(NotFoundError):
        svc.retroactive_clockout(actor=ADMIN, time_entry_id="e1", new_end_time="2026-10-19T16:00:00Z")


def test_audit_failure_does_not_undo_the_change():
    svc = _service([_entry()], FakeAdjustments(fail=True))
    entry = svc.retroactive_clockout(actor=ADMIN, time_entry_id="e1", new_end_time="2026-10-19T16:00:00Z")
    assert entry.duration_minutes == 480


def test_edit_entry_recomputes_duration_and_writes_manual_edit():
    adjustments = FakeAdjustments()
    svc = _service([_entry(end=datetime(2026, 10, 19, 16, 0), duration_minutes=480)], adjustments)

    entry = svc.edit_entry(actor=ADMIN, time_entry_id="e1", start_time="2026-10-19T09:00:00Z", description="fixed")

    assert entry.duration_minutes == 420
    assert entry.description == "fixed"
    assert adjustments.rows[0]["action_type"] == AdjustmentType.MANUAL_EDIT


def test_auto_close_nothing_to_do():
    result = _service([_entry(start=NOW)]).auto_close_overtime_shifts()
    assert result["closed"] == 0
    assert result["closed_entry_ids"] == []
    assert result["emails_sent"] == 0


def test_auto_close_closes_at_local_end_of_day_and_notifies_admins():
    adjustments = FakeAdjustments()
    mailer = FakeMailer()
    entries = [
        _entry("old", start=datetime(2026, 10, 19, 2, 0)),
        _entry("fresh", start=datetime(2026, 10, 19, 10, 0)),
    ]
    svc = _service(entries, adjustments, {"c1": ["boss@acme.test"]}, mailer)

    result = svc.auto_close_overtime_shifts()

    assert result == {"success": True, "closed": 1, "closed_entry_ids": ["old"], "emails_sent": 1}
    closed = svc._entries.get("old")
    # 23:59:59 PDT on Oct 19
    assert closed.end_time == datetime(2026, 10, 20, 6, 59, 59)
    assert closed.duration_minutes == 1739
    assert closed.description == "[Auto-closed: Shift exceeded 12 hours]"
    assert adjustments.rows[0]["action_type"] == AdjustmentType.AUTO_CLOSE_OVERTIME
    assert adjustments.rows[0]["admin_user_id"] is None
    assert mailer.sent[0]["to"] == ["boss@acme.test"]
    assert "Erin Employee" in mailer.sent[0]["html"]
    assert "1 employee(s) exceeded 12-hour" in mailer.sent[0]["subject"]


def test_auto_close_without_admin_emails_sends_nothing():
    mailer = FakeMailer()
    result = _service([_entry(start=datetime(2026, 10, 18, 0, 0))], mailer=mailer).auto_close_overtime_shifts()
    assert result["closed"] == 1
    assert result["emails_sent"] == 0
    assert mailer.sent == []
