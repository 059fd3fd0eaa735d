from __future__ import annotations

from dataclasses import replace
from datetime import datetime

import pytest

from timeclock.companies.model import Company
from timeclock.core.actor import Actor
from timeclock.core.enums import ExecutionStatus, ReportType, Role, ScheduleFrequency
from timeclock.core.exceptions import ValidationError
from timeclock.scheduled_reports.model import ReportConfig, ReportExecution, ReportRecipient, ScheduledReport
from timeclock.scheduled_reports.service import ScheduledReportService
from timeclock.time_entries.model import TimeEntry

TZ = "America/Los_Angeles"
NOW = datetime(2026, 10, 19, 16, 30)
ADMIN = Actor(account_id="a1", profile_id="p-admin", company_id="c1", role=Role.ADMIN)


class FakeReports:
    def __init__(self, reports):
        self.reports = {r.id: r for r in reports}

    def list_for_company(self, company_id):
        return [r for r in self.reports.values() if r.company_id == company_id]

    def list_active(self):
        return [r for r in self.reports.values() if r.is_active]

    def get(self, company_id, report_id):
        r = self.reports.get(report_id)
        return r if r and r.company_id == company_id else None

    def create(self, *, company_id, created_by, fields):
        report_id = f"r{len(self.reports) + 1}"
        self.reports[report_id] = ScheduledReport(id=report_id, company_id=company_id, created_by=created_by, **fields)
        return report_id

    def update(self, company_id, report_id, *, fields):
        self.reports[report_id] = replace(self.reports[report_id], **fields)
        return True

    def delete(self, company_id, report_id):
        return self.reports.pop(report_id, None) is not None


class FakeRecipients:
    def __init__(self, emails=None):
        self.rows = [ReportRecipient(id=f"rc{i}", scheduled_report_id=rid, email=e) for i, (rid, e) in enumerate(emails or [])]

    def list_for_report(self, report_id):
        return [r for r in self.rows if r.scheduled_report_id == report_id]

    def add(self, report_id, email):
        if any(r.scheduled_report_id == report_id and r.email == email for r in self.rows):
            return None
        row = ReportRecipient(id=f"rc{len(self.rows)}", scheduled_report_id=report_id, email=email)
        self.rows.append(row)
        return row.id

    def remove(self, report_id, recipient_id):
        before = len(self.rows)
        self.rows = [r for r in self.rows if r.id != recipient_id]
        return len(self.rows) < before


class FakeExecutions:
    def __init__(self, already_ran=()):
        self.created = []
        self.already_ran = set(already_ran)

    def create(self, *, report_id, executed_at, recipients_count, status, error_message=None):
        self.created.append(
            ReportExecution(
                id=str(len(self.created)),
                scheduled_report_id=report_id,
                executed_at=executed_at,
                recipients_count=recipients_count,
                status=status,
                error_message=error_message,
            )
        )
        return str(len(self.created))

    def has_run_since(self, report_id, since):
        return report_id in self.already_ran

    def list_for_company(self, company_id, *, report_id=None, limit=200):
        return [e for e in self.created if report_id is None or e.scheduled_report_id == report_id]


class FakeEntries:
    def __init__(self, entries):
        self.entries = entries
        self.calls = []

    def list_range(self, company_id, start, end, filters=None):
        self.calls.append((company_id, start, end, filters))
        return self.entries


class FakeCompanies:
    def get(self, company_id):
        return Company(id=company_id, company_name="Acme", timezone=TZ)


class FakeMailer:
    enabled = True

    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    def send(self, *, to, subject, html, attachments=None):
        if self.fail:
            raise RuntimeError("smtp down")
        self.sent.append({"to": list(to), "subject": subject, "html": html})


def _report(report_id="r1", **kw):
    base = dict(
        id=report_id,
        company_id="c1",
        name="Crew hours",
        report_type=ReportType.EMPLOYEE_TIMECARD,
        schedule_frequency=ScheduleFrequency.DAILY,
        schedule_time="09:00",
        company_name="Acme",
        timezone=TZ,
    )
    base.update(kw)
    return ScheduledReport(**base)


ENTRY = TimeEntry(
    id="e1",
    company_id="c1",
    profile_id="p1",
    user_id=None,
    start_time=datetime(2026, 10, 18, 15, 0),
    end_time=datetime(2026, 10, 18, 23, 0),
    duration_minutes=480,
    employee_name="Erin Employee",
)


def _service(reports, recipients=None, executions=None, mailer=None, entries=None):
    return ScheduledReportService(
        FakeReports(reports),
        recipients or FakeRecipients(),
        executions or FakeExecutions(),
        entries or FakeEntries([ENTRY]),
        FakeCompanies(),
        mailer or FakeMailer(),
        now=lambda: NOW,
    )


def test_due_report_is_sent_and_logged_as_success():
    mailer = FakeMailer()
    executions = FakeExecutions()
    svc = _service([_report()], FakeRecipients([("r1", "boss@acme.test")]), executions, mailer)

    result = svc.process_scheduled_reports(NOW)

    assert result["processed"] == 1
    assert result["results"][0]["status"] == "success"
    assert mailer.sent[0]["to"] == ["boss@acme.test"]
    assert mailer.sent[0]["subject"] == "Employee Timecard: Crew hours - 2026-10-18"
    assert "Erin Employee" in mailer.sent[0]["html"]
    assert "8h 0m" in mailer.sent[0]["html"]
    assert executions.created[0].status == ExecutionStatus.SUCCESS
    assert executions.created[0].recipients_count == 1


def test_report_without_recipients_logs_no_recipients():
    executions = FakeExecutions()
    svc = _service([_report()], executions=executions)

    result = svc.process_scheduled_reports(NOW)

    assert result["results"] == [{"report_id": "r1", "status": "no_recipients"}]
    assert executions.created[0].status == ExecutionStatus.NO_RECIPIENTS
    assert executions.created[0].error_message == "No recipients configured"


def test_report_already_run_today_is_skipped():
    svc = _service([_report()], FakeRecipients([("r1", "boss@acme.test")]), FakeExecutions(already_ran={"r1"}))
    assert svc.process_scheduled_reports(NOW) == {"processed": 0, "results": []}


def test_report_not_due_this_hour_is_skipped():
    svc = _service([_report(schedule_time="07:00")], FakeRecipients([("r1", "boss@acme.test")]))
    assert svc.process_scheduled_reports(NOW)["processed"] == 0


def test_mail_failure_is_logged_as_failed():
    executions = FakeExecutions()
    svc = _service([_report()], FakeRecipients([("r1", "boss@acme.test")]), executions, FakeMailer(fail=True))

    result = svc.process_scheduled_reports(NOW)

    assert result["results"][0]["status"] == "failed"
    assert executions.created[0].status == ExecutionStatus.FAILED
    assert executions.created[0].error_message == "smtp down"


class FlakyRecipients(FakeRecipients):
    def list_for_report(self, report_id):
        if report_id == "r1":
            raise RuntimeError("db hiccup")
        return super().list_for_report(report_id)


def test_repository_failure_for_one_report_does_not_stop_the_batch():
    mailer = FakeMailer()
    executions = FakeExecutions()
    recipients = FlakyRecipients([("r1", "boss@acme.test"), ("r2", "crew@acme.test")])
    svc = _service([_report("r1"), _report("r2")], recipients, executions, mailer)

    result = svc.process_scheduled_reports(NOW)

    assert result["processed"] == 2
    assert result["results"][0] == {"report_id": "r1", "status": "failed", "error": "db hiccup"}
    assert result["results"][1]["status"] == "success"
    assert [m["to"] for m in mailer.sent] == [["crew@acme.test"]]
    assert [(e.scheduled_report_id, e.status) for e in executions.created] == [
        ("r1", ExecutionStatus.FAILED),
        ("r2", ExecutionStatus.SUCCESS),
    ]
    assert executions.created[0].error_message == "db hiccup"


class BrokenExecutions(FakeExecutions):
    def has_run_since(self, report_id, since):
        raise RuntimeError("executions table missing")

    def create(self, **kwargs):
        raise RuntimeError("executions table missing")


def test_execution_log_failure_is_reported_not_raised():
    svc = _service([_report()], FakeRecipients([("r1", "boss@acme.test")]), BrokenExecutions())

    result = svc.process_scheduled_reports(NOW)

    assert result == {
        "processed": 1,
        "results": [{"report_id": "r1", "status": "failed", "error": "executions table missing"}],
    }


def test_department_scope_filters_entries():
    entries = FakeEntries([])
    config = ReportConfig(scope="department", department_ids=("d1",), project_ids=("pr1",))
    svc = _service([_report(report_config=config)], FakeRecipients([("r1", "boss@acme.test")]), entries=entries)

    svc.process_scheduled_reports(NOW)

    _, start, end, filters = entries.calls[0]
    assert (start, end) == (datetime(2026, 10, 18, 7, 0), datetime(2026, 10, 19, 7, 0))
    assert filters.department_ids == ("d1",)
    assert filters.project_ids == ("pr1",)


def test_all_scope_ignores_department_ids():
    entries = FakeEntries([])
    config = ReportConfig(scope="all", department_ids=("d1",))
    svc = _service([_report(report_config=config)], FakeRecipients([("r1", "boss@acme.test")]), entries=entries)

    svc.process_scheduled_reports(NOW)

    assert entries.calls[0][3].department_ids == ()


def test_payroll_report_renders_payroll_table():
    mailer = FakeMailer()
    report = _report(report_type=ReportType.WEEKLY_PAYROLL)
    svc = _service([report], FakeRecipients([("r1", "boss@acme.test")]), mailer=mailer)

    svc.process_scheduled_reports(NOW)

    assert "Total Payable Hours" in mailer.sent[0]["html"]
    assert mailer.sent[0]["subject"].startswith("Weekly Payroll: ")


def test_test_report_falls_back_to_first_recipient():
    mailer = FakeMailer()
    svc = _service([_report()], FakeRecipients([("r1", "first@acme.test"), ("r1", "second@acme.test")]), mailer=mailer)

    result = svc.send_test_report(actor=ADMIN, report_id="r1")

    assert result["sent_to"] == "first@acme.test"
    assert mailer.sent[0]["subject"].startswith("[TEST] ")


def test_test_report_requires_some_recipient():
    svc = _service([_report()])
    with pytest.raises(ValidationError, match="No recipient email provided"):
        svc.send_test_report(actor=ADMIN, report_id="r1")


def test_test_report_requires_report_or_fields():
    svc = _service([])
    with pytest.raises(ValidationError, match="report_id is required"):
        svc.send_test_report(actor=ADMIN)


def test_preview_only_does_not_send():
    mailer = FakeMailer()
    svc = _service([_report()], mailer=mailer)

    result = svc.send_test_report(actor=ADMIN, report_id="r1", preview_only=True)

    assert "Crew hours" in result["html"]
    assert mailer.sent == []


def test_create_weekly_report_requires_day_of_week():
    svc = _service([])
    data = {"name": "W", "report_type": "employee_timecard", "schedule_frequency": "weekly", "schedule_time": "08:00"}

    with pytest.raises(ValidationError, match="schedule_day_of_week"):
        svc.create_report(actor=ADMIN, data=data)

    report = svc.create_report(actor=ADMIN, data={**data, "schedule_day_of_week": 1})
    assert report.schedule_day_of_week == 1
    assert report.created_by == "a1"


def test_invalid_schedule_time_rejected():
    svc = _service([])
    data = {"name": "D", "report_type": "employee_timecard", "schedule_frequency": "daily", "schedule_time": "25:99"}
    with pytest.raises(ValidationError):
        svc.create_report(actor=ADMIN, data=data)


def test_add_recipient_sends_welcome_and_tolerates_mail_failure():
    recipients = FakeRecipients()
    svc = _service([_report()], recipients, mailer=FakeMailer(fail=True))

    recipient = svc.add_recipient(actor=ADMIN, report_id="r1", email="New@Acme.test")

    assert recipient.email == "new@acme.test"
    with pytest.raises(ValidationError, match="already"):
        svc.add_recipient(actor=ADMIN, report_id="r1", email="new@acme.test")


def test_welcome_mail_mentions_report():
    mailer = FakeMailer()
    svc = _service([_report()], mailer=mailer)

    svc.add_recipient(actor=ADMIN, report_id="r1", email="new@acme.test")

    assert "Crew hours" in mailer.sent[0]["html"]
    assert mailer.sent[0]["to"] == ["new@acme.test"]
