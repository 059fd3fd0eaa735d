from datetime import date, datetime

from timeclock.core.enums import ReportType, ScheduleFrequency
from timeclock.scheduled_reports.model import ScheduledReport
from timeclock.scheduled_reports.schedule import date_range, is_due, utc_midnight

TZ = "America/Los_Angeles"
# Monday 2026-10-19 09:30 in Los Angeles (PDT)
NOW = datetime(2026, 10, 19, 16, 30)


def _report(frequency, *, time="09:00", dow=None, dom=None):
    return ScheduledReport(
        id="r1",
        company_id="c1",
        name="Weekly",
        report_type=ReportType.EMPLOYEE_TIMECARD,
        schedule_frequency=frequency,
        schedule_time=time,
        schedule_day_of_week=dow,
        schedule_day_of_month=dom,
        timezone=TZ,
    )


def test_daily_report_due_in_matching_local_hour():
    assert is_due(_report(ScheduleFrequency.DAILY), NOW)
    assert not is_due(_report(ScheduleFrequency.DAILY, time="16:00"), NOW)


def test_weekly_report_uses_sunday_based_weekday():
    assert is_due(_report(ScheduleFrequency.WEEKLY, dow=1), NOW)
    assert not is_due(_report(ScheduleFrequency.WEEKLY, dow=0), NOW)


def test_monthly_report_uses_local_day_of_month():
    assert is_due(_report(ScheduleFrequency.MONTHLY, dom=19), NOW)
    assert not is_due(_report(ScheduleFrequency.MONTHLY, dom=20), NOW)


def test_daily_range_is_previous_local_day():
    period, start, end = date_range(ScheduleFrequency.DAILY, TZ, NOW)
    assert (period.start, period.end) == (date(2026, 10, 18), date(2026, 10, 18))
    assert start == datetime(2026, 10, 18, 7, 0)
    assert end == datetime(2026, 10, 19, 7, 0)


def test_weekly_range_is_previous_sunday_to_saturday():
    period, start, end = date_range(ScheduleFrequency.WEEKLY, TZ, NOW)
    assert (period.start, period.end) == (date(2026, 10, 11), date(2026, 10, 17))
    assert start == datetime(2026, 10, 11, 7, 0)
    assert end == datetime(2026, 10, 18, 7, 0)


def test_monthly_range_is_previous_calendar_month():
    period, start, end = date_range(ScheduleFrequency.MONTHLY, TZ, NOW)
    assert (period.start, period.end) == (date(2026, 9, 1), date(2026, 9, 30))
    assert start == datetime(2026, 9, 1, 7, 0)
    assert end == datetime(2026, 10, 1, 7, 0)


def test_unknown_frequency_falls_back_to_previous_utc_day():
    period, start, end = date_range("yearly", TZ, NOW)
    assert period.start == date(2026, 10, 18)
    assert start == datetime(2026, 10, 18)
    assert end == datetime(2026, 10, 19)


def test_utc_midnight():
    assert utc_midnight(NOW) == datetime(2026, 10, 19)
