from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import parse_hhmm, utc_now
from ..common.validators import optional_str, require_email, require_non_empty
from ..companies.repository import CompanyRepository
from ..core.actor import Actor
from ..core.constants import DEFAULT_TIMEZONE
from ..core.enums import ExecutionStatus, ReportType, ScheduleFrequency
from ..core.exceptions import NotFoundError, ValidationError
from ..notifications.mailer import Mailer
from ..notifications.templates import render
from ..reports.calculator.base import PayrollCalculator
from ..reports.calculator.standard_calculator import StandardPayrollCalculator
from ..time_entries.model import EntryFilters
from ..time_entries.repository import TimeEntryRepository
from .model import REPORT_TYPE_NAMES, ReportConfig, ReportExecution, ReportRecipient, ScheduledReport
from .renderer import render_report
from .repository import ExecutionRepository, RecipientRepository, ScheduledReportRepository
from .schedule import date_range, is_due, utc_midnight

logger = logging.getLogger(__name__)


class ScheduledReportService:
    """Recurring report emails: configuration, recipients, and the hourly run."""

    def __init__(
        self,
        reports: ScheduledReportRepository,
        recipients: RecipientRepository,
        executions: ExecutionRepository,
        entries: TimeEntryRepository,
        companies: CompanyRepository,
        mailer: Mailer,
        *,
        calculator: Optional[PayrollCalculator] = None,
        now: Callable[[], datetime] = utc_now,
    ):
        self._reports = reports
        self._recipients = recipients
        self._executions = executions
        self._entries = entries
        self._companies = companies
        self._mailer = mailer
        self._calculator = calculator or StandardPayrollCalculator()
        self._now = now

    # -------- configuration --------
    def list_reports(self, *, actor: Actor) -> Sequence[ScheduledReport]:
        return self._reports.list_for_company(actor.require_admin())

    def get_report(self, *, actor: Actor, report_id: str) -> ScheduledReport:
        return self._get(actor.require_admin(), report_id)

    def create_report(self, *, actor: Actor, data: dict) -> ScheduledReport:
        company_id = actor.require_admin()
        fields = self._clean(data, partial=False)
        report_id = self._reports.create(company_id=company_id, created_by=actor.account_id, fields=fields)
        logger.info("Scheduled report %s created for company %s", report_id, company_id)
        return self._get(company_id, report_id)

    def update_report(self, *, actor: Actor, report_id: str, data: dict) -> ScheduledReport:
        company_id = actor.require_admin()
        current = self._get(company_id, report_id)
        fields = self._clean(data, partial=True, current=current)
        if fields:
            self._reports.update(company_id, report_id, fields=fields)
        return self._get(company_id, report_id)

    def delete_report(self, *, actor: Actor, report_id: str) -> None:
        company_id = actor.require_admin()
        if not self._reports.delete(company_id, report_id):
            raise NotFoundError("Scheduled report not found")

    def _get(self, company_id: str, report_id: str) -> ScheduledReport:
        report = self._reports.get(company_id, report_id)
        if not report:
            raise NotFoundError("Scheduled report not found")
        return report

    @staticmethod
    def _clean(data: dict, *, partial: bool, current: Optional[ScheduledReport] = None) -> dict:
        fields: dict = {}

        if not partial or "name" in data:
            fields["name"] = require_non_empty(data.get("name"), "Name")

        if not partial or "report_type" in data:
            try:
                fields["report_type"] = ReportType(data.get("report_type"))
            except ValueError:
                raise ValidationError("Invalid report type")

        if not partial or "schedule_frequency" in data:
            try:
                fields["schedule_frequency"] = ScheduleFrequency(data.get("schedule_frequency"))
            except ValueError:
                raise ValidationError("Invalid schedule frequency")

        if not partial or "schedule_time" in data:
            parsed = parse_hhmm(data.get("schedule_time") or "")
            if parsed is None:
                raise ValidationError("schedule_time is required")
            fields["schedule_time"] = parsed.strftime("%H:%M")

        if "schedule_day_of_week" in data:
            fields["schedule_day_of_week"] = _optional_int(data.get("schedule_day_of_week"), "schedule_day_of_week", 0, 6)
        if "schedule_day_of_month" in data:
            fields["schedule_day_of_month"] = _optional_int(
                data.get("schedule_day_of_month"), "schedule_day_of_month", 1, 31
            )

        if not partial or "report_config" in data:
            config = ReportConfig.from_dict(data.get("report_config"))
            if config.scope not in ("all", "department"):
                raise ValidationError("Invalid report scope")
            fields["report_config"] = config

        if "is_active" in data:
            fields["is_active"] = bool(data.get("is_active"))

        frequency = fields.get("schedule_frequency") or (current.schedule_frequency if current else None)
        day_of_week = fields.get("schedule_day_of_week", current.schedule_day_of_week if current else None)
        day_of_month = fields.get("schedule_day_of_month", current.schedule_day_of_month if current else None)
        if frequency == ScheduleFrequency.WEEKLY and day_of_week is None:
            raise ValidationError("schedule_day_of_week is required for weekly reports")
        if frequency == ScheduleFrequency.MONTHLY and day_of_month is None:
            raise ValidationError("schedule_day_of_month is required for monthly reports")

        return fields

    # -------- recipients --------
    def list_recipients(self, *, actor: Actor, report_id: str) -> Sequence[ReportRecipient]:
        self._get(actor.require_admin(), report_id)
        return self._recipients.list_for_report(report_id)

    def add_recipient(self, *, actor: Actor, report_id: str, email: str) -> ReportRecipient:
        company_id = actor.require_admin()
        report = self._get(company_id, report_id)
        email = require_email(email)

        recipient_id = self._recipients.add(report_id, email)
        if recipient_id is None:
            raise ValidationError("Recipient already added")

        self._send_welcome(report, email)
        return next(r for r in self._recipients.list_for_report(report_id) if r.id == recipient_id)

    def remove_recipient(self, *, actor: Actor, report_id: str, recipient_id: str) -> None:
        self._get(actor.require_admin(), report_id)
        if not self._recipients.remove(report_id, recipient_id):
            raise NotFoundError("Recipient not found")

    def _send_welcome(self, report: ScheduledReport, email: str) -> None:
        company_name = report.company_name or "Your company"
        html = render(
            "email/welcome.html",
            report_name=report.name,
            report_type_name=REPORT_TYPE_NAMES.get(report.report_type, report.report_type.value),
            company_name=company_name,
            frequency=report.schedule_frequency.value.capitalize(),
            schedule_time=report.schedule_time,
            timezone=report.timezone or DEFAULT_TIMEZONE,
        )
        try:
            self._mailer.send(to=[email], subject=f"You're subscribed to {report.name}", html=html)
        except Exception:
            logger.exception("Failed to send welcome email to %s for report %s", email, report.id)

    # -------- execution --------
    def process_scheduled_reports(self, now: Optional[datetime] = None) -> dict:
        """Send every report due this hour that has not already run today (UTC)."""
        now = now or self._now()
        since = utc_midnight(now)
        results: list[dict] = []

        for report in self._reports.list_active():
            result = self._execute(report, now, since)
            if result is not None:
                results.append(result)

        logger.info("Processed %d scheduled report(s)", len(results))
        return {"processed": len(results), "results": results}

    def _execute(self, report: ScheduledReport, now: datetime, since: datetime) -> Optional[dict]:
        """Run one report; returns None when it is not due or already ran today."""
        recipients: list[str] = []
        try:
            if not is_due(report, now):
                return None
            if self._executions.has_run_since(report.id, since):
                logger.info("Report %s already executed today, skipping", report.id)
                return None

            recipients = [r.email for r in self._recipients.list_for_report(report.id)]
            if not recipients:
                self._executions.create(
                    report_id=report.id,
                    executed_at=now,
                    recipients_count=0,
                    status=ExecutionStatus.NO_RECIPIENTS,
                    error_message="No recipients configured",
                )
                return {"report_id": report.id, "status": ExecutionStatus.NO_RECIPIENTS.value}

            subject, html = self._build(report, now)
            self._mailer.send(to=recipients, subject=subject, html=html)
            self._executions.create(
                report_id=report.id,
                executed_at=now,
                recipients_count=len(recipients),
                status=ExecutionStatus.SUCCESS,
            )
        except Exception as e:
            logger.exception("Scheduled report %s failed", report.id)
            self._record_failure(report.id, now, len(recipients), e)
            return {"report_id": report.id, "status": ExecutionStatus.FAILED.value, "error": str(e)}

        return {"report_id": report.id, "status": ExecutionStatus.SUCCESS.value, "recipients": len(recipients)}

    def _record_failure(self, report_id: str, now: datetime, recipients_count: int, error: Exception) -> None:
        try:
            self._executions.create(
                report_id=report_id,
                executed_at=now,
                recipients_count=recipients_count,
                status=ExecutionStatus.FAILED,
                error_message=str(error),
            )
        except Exception:
            logger.exception("Could not record failed execution for report %s", report_id)

    def _build(self, report: ScheduledReport, now: datetime) -> tuple[str, str]:
        tz_name = report.timezone
        company_name = report.company_name
        if not tz_name or not company_name:
            company = self._companies.get(report.company_id)
            tz_name = tz_name or (company.timezone if company else DEFAULT_TIMEZONE)
            company_name = company_name or (company.company_name if company else "")

        period, range_start, range_end = date_range(report.schedule_frequency, tz_name, now)
        config = report.report_config
        filters = EntryFilters(
            department_ids=config.department_ids if config.scope == "department" else (),
            project_ids=config.project_ids,
        )
        entries = self._entries.list_range(report.company_id, range_start, range_end, filters)

        html = render_report(
            report.report_type,
            entries,
            company_name=company_name,
            report_name=report.name,
            period=period,
            tz_name=tz_name,
            calculator=self._calculator,
            generated_at=now,
        )
        type_name = REPORT_TYPE_NAMES.get(report.report_type, report.report_type.value)
        subject = f"{type_name}: {report.name or company_name} - {period.start.isoformat()}"
        return subject, html

    def send_test_report(
        self,
        *,
        actor: Actor,
        report_id: Optional[str] = None,
        data: Optional[dict] = None,
        email: Optional[str] = None,
        preview_only: bool = False,
    ) -> dict:
        """Render a saved report (or unsaved fields) now and mail it to one address."""
        company_id = actor.require_admin()
        company = self._companies.get(company_id)

        if report_id:
            report = self._get(company_id, report_id)
        elif data:
            fields = self._clean(data, partial=False)
            report = ScheduledReport(
                id="preview",
                company_id=company_id,
                name=fields["name"],
                report_type=fields["report_type"],
                schedule_frequency=fields["schedule_frequency"],
                schedule_time=fields["schedule_time"],
                schedule_day_of_week=fields.get("schedule_day_of_week"),
                schedule_day_of_month=fields.get("schedule_day_of_month"),
                report_config=fields["report_config"],
                company_name=company.company_name if company else None,
                timezone=company.timezone if company else None,
            )
        else:
            raise ValidationError("report_id is required")

        subject, html = self._build(report, self._now())
        if preview_only:
            return {"subject": subject, "html": html}

        to = optional_str(email)
        if not to and report_id:
            recipients = self._recipients.list_for_report(report_id)
            to = recipients[0].email if recipients else None
        if not to:
            raise ValidationError("No recipient email provided and no recipients configured for this report")

        self._mailer.send(to=[require_email(to)], subject=f"[TEST] {subject}", html=html)
        logger.info("Test report %s sent to %s", report.id, to)
        return {"success": True, "sent_to": to, "subject": subject}

    def list_executions(
        self,
        *,
        actor: Actor,
        report_id: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[ReportExecution]:
        return self._executions.list_for_company(actor.require_admin(), report_id=report_id, limit=limit)


def _optional_int(value, field_name: str, low: int, high: int) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not low <= number <= high:
        raise ValidationError(f"{field_name} must be between {low} and {high}")
    return number
