from datetime import datetime

from timeclock.reports.calculator.standard_calculator import StandardPayrollCalculator
from timeclock.time_entries.model import TimeEntry


def _entry(**kw):
    base = dict(id="e1", company_id="c1", profile_id="p1", user_id="u1", start_time=datetime(2026, 1, 5, 8, 0))
    base.update(kw)
    return TimeEntry(**base)


def test_closed_shift_uses_stored_duration():
    e = _entry(end_time=datetime(2026, 1, 5, 17, 0), duration_minutes=480)
    assert StandardPayrollCalculator().worked_minutes(e) == 480


def test_missing_duration_falls_back_to_floored_span():
    e = _entry(end_time=datetime(2026, 1, 5, 9, 30, 59))
    assert StandardPayrollCalculator().worked_minutes(e) == 90


def test_breaks_and_open_shifts_do_not_count():
    calc = StandardPayrollCalculator()
    assert calc.worked_minutes(_entry(is_break=True, end_time=datetime(2026, 1, 5, 8, 0), duration_minutes=0)) == 0
    assert calc.worked_minutes(_entry()) == 0


def test_overtime_split_at_forty_hours():
    calc = StandardPayrollCalculator()
    assert calc.split_overtime(45 * 60) == (40 * 60, 5 * 60)
    assert calc.split_overtime(30 * 60) == (30 * 60, 0)


def test_custom_regular_limit():
    assert StandardPayrollCalculator(regular_limit_minutes=60).split_overtime(90) == (60, 30)
