"""When a scheduled report is due, and which period it covers.

Both are evaluated in the company's timezone; weekdays are Sunday=0.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from ..common.datetime_utils import day_bounds_utc, to_local
from ..core.enums import ScheduleFrequency
from ..reports.model import ReportPeriod
from ..schedules.model import sunday_based_weekday
from .model import ScheduledReport


def is_due(report: ScheduledReport, now: datetime, tz_name: Optional[str] = None) -> bool:
    local = to_local(now, tz_name or report.timezone)
    if report.schedule_hour != local.hour:
        return False

    if report.schedule_frequency == ScheduleFrequency.DAILY:
        return True
    if report.schedule_frequency == ScheduleFrequency.WEEKLY:
        return report.schedule_day_of_week == sunday_based_weekday(local.date())
    if report.schedule_frequency == ScheduleFrequency.MONTHLY:
        return report.schedule_day_of_month == local.day
    return False


def date_range(frequency, tz_name: Optional[str], now: datetime) -> tuple[ReportPeriod, datetime, datetime]:
    """Previous full period as local dates plus its UTC [start, end) bounds."""
    today = to_local(now, tz_name).date()

    if frequency == ScheduleFrequency.DAILY:
        start = end = today - timedelta(days=1)
    elif frequency == ScheduleFrequency.WEEKLY:
        dow = sunday_based_weekday(today)
        end = today - timedelta(days=dow + 1)
        start = end - timedelta(days=6)
    elif frequency == ScheduleFrequency.MONTHLY:
        end = today.replace(day=1) - timedelta(days=1)
        start = end.replace(day=1)
    else:
        # previous UTC day
        start = end = now.date() - timedelta(days=1)
        utc_start = datetime.combine(start, datetime.min.time())
        return ReportPeriod(start, end), utc_start, utc_start + timedelta(days=1)

    range_start, _ = day_bounds_utc(start, tz_name)
    _, range_end = day_bounds_utc(end, tz_name)
    return ReportPeriod(start, end), range_start, range_end


def utc_midnight(now: datetime) -> datetime:
    return datetime.combine(now.date(), datetime.min.time())
