from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import format_duration, to_local
from ..core.enums import ReportType
from ..notifications.templates import render
from ..reports.aggregation import NO_PROJECT, employee_label, group_entries, payroll_rows
from ..reports.calculator.base import PayrollCalculator
from ..reports.model import ReportPeriod
from ..time_entries.model import TimeEntry

_DATE_FMT = "%a, %b %d, %Y"
_TIME_FMT = "%I:%M %p"


def _row(e: TimeEntry, tz_name: Optional[str], calculator: PayrollCalculator) -> dict:
    start = to_local(e.start_time, tz_name)
    return {
        "employee": employee_label(e),
        "project": e.project_name or NO_PROJECT,
        "date": start.strftime(_DATE_FMT),
        "clock_in": start.strftime(_TIME_FMT),
        "clock_out": to_local(e.end_time, tz_name).strftime(_TIME_FMT) if e.end_time else "Open",
        "duration": format_duration(calculator.worked_minutes(e)),
    }


def render_report(
    report_type: ReportType,
    entries: Sequence[TimeEntry],
    *,
    company_name: str,
    report_name: Optional[str],
    period: ReportPeriod,
    tz_name: Optional[str],
    calculator: PayrollCalculator,
    generated_at: datetime,
) -> str:
    """HTML body of a scheduled report email."""
    common = {
        "company_name": company_name,
        "period": period.label(_DATE_FMT),
        "generated_at": to_local(generated_at, tz_name).strftime("%b %d, %Y %I:%M %p %Z"),
    }

    if report_type in (ReportType.WEEKLY_PAYROLL, ReportType.MONTHLY_PROJECT_BILLING):
        rows = payroll_rows(entries, calculator, tz_name)
        return render(
            "reports/payroll.html",
            rows=[r.formatted() for r in rows],
            report_name=report_name or "Weekly Payroll Report",
            accent_from="#8b5cf6",
            accent_to="#6d28d9",
            period_label="Pay Period",
            total_label="Total Payable Hours",
            total=format_duration(sum(r.total_minutes for r in rows)),
            **common,
        )

    if report_type == ReportType.PROJECT_TIMECARD:
        groups = []
        grand_total = 0
        for _, project_entries in group_entries(entries, by="project").items():
            minutes = sum(calculator.worked_minutes(e) for e in project_entries)
            grand_total += minutes
            groups.append(
                {
                    "name": project_entries[0].project_name or NO_PROJECT,
                    "total": format_duration(minutes),
                    "rows": [_row(e, tz_name, calculator) for e in project_entries],
                }
            )
        return render(
            "reports/project_timecard.html",
            groups=groups,
            report_name=report_name or "Project Timecard Report",
            accent_from="#10b981",
            accent_to="#059669",
            period_label="Period",
            total_label="Total Hours",
            total=format_duration(grand_total),
            **common,
        )

    groups = []
    grand_total = 0
    for _, employee_entries in group_entries(entries, by="profile").items():
        grand_total += sum(calculator.worked_minutes(e) for e in employee_entries)
        groups.append(
            {
                "name": employee_label(employee_entries[0]),
                "rows": [_row(e, tz_name, calculator) for e in employee_entries],
            }
        )
    return render(
        "reports/employee_timecard.html",
        groups=groups,
        report_name=report_name or "Employee Timecard Report",
        accent_from="#3b82f6",
        accent_to="#1d4ed8",
        period_label="Period",
        total_label="Total Hours",
        total=format_duration(grand_total),
        **common,
    )
