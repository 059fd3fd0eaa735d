from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import ExecutionStatus
from .model import ReportExecution, ReportRecipient, ScheduledReport


class ScheduledReportRepository(Protocol):
    def list_for_company(self, company_id: str) -> Sequence[ScheduledReport]:
        raise NotImplementedError

    def list_active(self) -> Sequence[ScheduledReport]:
        """Active reports of every company, joined with company name and timezone."""
        raise NotImplementedError

    def get(self, company_id: str, report_id: str) -> Optional[ScheduledReport]:
        raise NotImplementedError

    def create(self, *, company_id: str, created_by: Optional[str], fields: dict) -> str:
        raise NotImplementedError

    def update(self, company_id: str, report_id: str, *, fields: dict) -> bool:
        raise NotImplementedError

    def delete(self, company_id: str, report_id: str) -> bool:
        raise NotImplementedError


class RecipientRepository(Protocol):
    def list_for_report(self, report_id: str) -> Sequence[ReportRecipient]:
        raise NotImplementedError

    def add(self, report_id: str, email: str) -> Optional[str]:
        """Returns the new id, or None when the email is already a recipient."""
        raise NotImplementedError

    def remove(self, report_id: str, recipient_id: str) -> bool:
        raise NotImplementedError


class ExecutionRepository(Protocol):
    def create(
        self,
        *,
        report_id: str,
        executed_at: datetime,
        recipients_count: int,
        status: ExecutionStatus,
        error_message: Optional[str] = None,
    ) -> str:
        raise NotImplementedError

    def has_run_since(self, report_id: str, since: datetime) -> bool:
        raise NotImplementedError

    def list_for_company(
        self,
        company_id: str,
        *,
        report_id: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[ReportExecution]:
        raise NotImplementedError
