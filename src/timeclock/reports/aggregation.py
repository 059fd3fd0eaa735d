"""Grouping of time entries shared by live reports and scheduled report emails."""

from __future__ import annotations

from collections import OrderedDict
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import to_local
from ..time_entries.model import TimeEntry
from .calculator.base import PayrollCalculator
from .model import HoursSummary, PayrollRow

NO_PROJECT = "No Project"


def employee_label(entry: TimeEntry) -> str:
    return entry.employee_name or "Unknown"


def hours_by_employee(entries: Iterable[TimeEntry], calculator: PayrollCalculator) -> list[HoursSummary]:
    out: "OrderedDict[str, HoursSummary]" = OrderedDict()
    for e in entries:
        if e.is_break:
            continue
        s = out.get(e.profile_id)
        if s is None:
            s = out[e.profile_id] = HoursSummary(key=e.profile_id, name=employee_label(e), employee_id=e.employee_id)
        s.total_minutes += calculator.worked_minutes(e)
        s.entry_count += 1
        s.profile_ids.add(e.profile_id)
    return sorted(out.values(), key=lambda s: s.total_minutes, reverse=True)


def hours_by_project(entries: Iterable[TimeEntry], calculator: PayrollCalculator) -> list[HoursSummary]:
    out: "OrderedDict[Optional[str], HoursSummary]" = OrderedDict()
    for e in entries:
        if e.is_break:
            continue
        s = out.get(e.project_id)
        if s is None:
            s = out[e.project_id] = HoursSummary(key=e.project_id, name=e.project_name or NO_PROJECT)
        s.total_minutes += calculator.worked_minutes(e)
        s.entry_count += 1
        s.profile_ids.add(e.profile_id)
    return sorted(out.values(), key=lambda s: s.total_minutes, reverse=True)


def payroll_rows(
    entries: Sequence[TimeEntry],
    calculator: PayrollCalculator,
    tz_name: Optional[str],
) -> list[PayrollRow]:
    """Per-employee totals with the 40h regular/overtime split; breaks are summed on their own."""
    acc: "OrderedDict[str, dict]" = OrderedDict()
    for e in entries:
        a = acc.setdefault(e.profile_id, {"name": employee_label(e), "total": 0, "breaks": 0, "days": set()})
        if e.is_break:
            a["breaks"] += int(e.duration_minutes or 0)
            continue
        a["total"] += calculator.worked_minutes(e)
        a["days"].add(to_local(e.start_time, tz_name).date())

    rows: list[PayrollRow] = []
    for profile_id, a in acc.items():
        regular, overtime = calculator.split_overtime(a["total"])
        rows.append(
            PayrollRow(
                profile_id=profile_id,
                employee=a["name"],
                days_worked=len(a["days"]),
                regular_minutes=regular,
                overtime_minutes=overtime,
                break_minutes=a["breaks"],
                total_minutes=a["total"],
            )
        )
    rows.sort(key=lambda r: r.employee.lower())
    return rows


def group_entries(entries: Iterable[TimeEntry], *, by: str) -> "OrderedDict[Optional[str], list[TimeEntry]]":
    """Group non-break entries by ``profile`` or ``project``, preserving entry order."""
    groups: "OrderedDict[Optional[str], list[TimeEntry]]" = OrderedDict()
    for e in entries:
        if e.is_break:
            continue
        key = e.profile_id if by == "profile" else e.project_id
        groups.setdefault(key, []).append(e)
    return groups
