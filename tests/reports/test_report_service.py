from __future__ import annotations

import io
from datetime import date, datetime, time

import pandas as pd
import pytest

from timeclock.companies.model import Company
from timeclock.core.actor import Actor
from timeclock.core.enums import ProfileStatus, Role
from timeclock.core.exceptions import AuthorizationError, ValidationError
from timeclock.profiles.model import Profile
from timeclock.reports.service import ReportService
from timeclock.schedules.model import EmployeeSchedule
from timeclock.time_entries.model import TimeEntry

# Monday 09:30 in Los Angeles
NOW = datetime(2026, 10, 19, 16, 30)
ADMIN = Actor(account_id="a1", profile_id="pa", company_id="c1", role=Role.ADMIN)
EMPLOYEE = Actor(account_id="a2", profile_id="p1", company_id="c1", role=Role.EMPLOYEE)


class FakeEntries:
    def __init__(self, *entries):
        self.entries = list(entries)
        self.calls = []

    def list_range(self, company_id, start, end, filters=None):
        self.calls.append((start, end, filters))
        out = [e for e in self.entries if e.company_id == company_id and start <= e.start_time < end]
        if filters is not None:
            if not filters.include_breaks:
                out = [e for e in out if not e.is_break]
            if filters.closed_only:
                out = [e for e in out if e.end_time is not None]
            if filters.profile_id:
                out = [e for e in out if e.profile_id == filters.profile_id]
        return out


class FakeProfiles:
    def __init__(self, *profiles):
        self.profiles = {p.id: p for p in profiles}

    def get_in_company(self, company_id, profile_id):
        p = self.profiles.get(profile_id)
        return p if p and p.company_id == company_id else None


class FakeSchedules:
    def __init__(self, *schedules):
        self.schedules = list(schedules)

    def list_for_day(self, company_id, day_of_week):
        return [s for s in self.schedules if s.company_id == company_id and s.day_of_week == day_of_week]


class FakeCompanies:
    def get(self, company_id):
        return Company(id=company_id, company_name="Acme Builders", timezone="America/Los_Angeles")


def _entry(entry_id, profile_id, name, start, end=None, **kw):
    return TimeEntry(
        id=entry_id,
        company_id="c1",
        profile_id=profile_id,
        user_id=None,
        start_time=start,
        end_time=end,
        employee_name=name,
        **kw,
    )


def _profile(profile_id, name, **kw):
    return Profile(
        id=profile_id,
        company_id="c1",
        user_id=None,
        first_name=name,
        last_name=None,
        display_name=name,
        **kw,
    )


def _service(entries=(), profiles=(), schedules=()):
    return ReportService(
        FakeEntries(*entries),
        FakeProfiles(*profiles),
        FakeSchedules(*schedules),
        FakeCompanies(),
        now=lambda: NOW,
    )


def test_resolve_range_defaults_to_last_seven_local_days():
    service = _service()
    assert service.resolve_range("c1", None, None) == (date(2026, 10, 13), date(2026, 10, 19))
    assert service.resolve_range("c1", date(2026, 10, 1), None) == (date(2026, 10, 1), date(2026, 10, 19))


def test_resolve_range_rejects_inverted_range():
    with pytest.raises(ValidationError):
        _service().resolve_range("c1", date(2026, 10, 19), date(2026, 10, 18))


def test_entries_queried_with_local_day_bounds():
    service = _service()
    service.employee_hours(actor=ADMIN, start=date(2026, 10, 19), end=date(2026, 10, 19))

    start, end, filters = service._entries.calls[0]
    assert (start, end) == (datetime(2026, 10, 19, 7, 0), datetime(2026, 10, 20, 7, 0))
    assert filters.closed_only and not filters.include_breaks


def test_reports_require_admin():
    with pytest.raises(AuthorizationError):
        _service().employee_hours(actor=EMPLOYEE)


def test_daily_timecard():
    entries = [
        _entry("e1", "p1", "Ana", datetime(2026, 10, 19, 14, 0), datetime(2026, 10, 19, 16, 0)),
        _entry("e2", "p1", "Ana", datetime(2026, 10, 19, 16, 0), datetime(2026, 10, 19, 16, 15), is_break=True),
        _entry("e3", "p1", "Ana", datetime(2026, 10, 19, 16, 15)),
        _entry("e4", "p2", "Bo", datetime(2026, 10, 19, 15, 0), datetime(2026, 10, 19, 16, 30)),
    ]

    cards = _service(entries).daily_timecard(actor=ADMIN, day=date(2026, 10, 19))

    assert [c["employee"] for c in cards] == ["Ana", "Bo"]
    ana = cards[0]
    assert ana["first_in"] == "07:00 AM"
    assert ana["is_clocked_in"] is True
    assert ana["breaks"] == 1
    assert ana["total_minutes"] == 120
    assert cards[1]["last_out"] == "09:30 AM"
    assert cards[1]["total"] == "1h 30m"


def test_export_csv_has_header_and_local_times():
    entries = [_entry("e1", "p1", "Ana", datetime(2026, 10, 19, 14, 0), datetime(2026, 10, 19, 16, 30))]

    data = _service(entries).export_csv(actor=ADMIN, start=date(2026, 10, 19), end=date(2026, 10, 19))

    lines = data.decode("utf-8-sig").strip().splitlines()
    assert lines[0].startswith('"Employee","Employee ID","Project","Date"')
    assert '"07:00 AM","09:30 AM","2h 30m","2.5","Shift"' in lines[1]


def test_export_excel_round_trips_rows():
    entries = [_entry("e1", "p1", "Ana", datetime(2026, 10, 19, 14, 0), datetime(2026, 10, 19, 16, 30))]

    data = _service(entries).export_excel(actor=ADMIN, start=date(2026, 10, 19), end=date(2026, 10, 19))

    df = pd.read_excel(io.BytesIO(data), sheet_name="Time Entries")
    assert list(df["Employee"]) == ["Ana"]
    assert list(df["Hours"]) == [2.5]


def test_unclocked_users():
    monday = 1
    schedules = [
        EmployeeSchedule("s1", "c1", "p1", monday, time(7, 0), time(15, 0)),
        EmployeeSchedule("s2", "c1", "p2", monday, time(6, 0), time(14, 0)),
        EmployeeSchedule("s3", "c1", "p3", monday, is_day_off=True),
        EmployeeSchedule("s4", "c1", "p4", monday, time(8, 0), time(16, 0)),
        EmployeeSchedule("s5", "c1", "p5", 2, time(8, 0), time(16, 0)),
    ]
    profiles = [
        _profile("p1", "Ana"),
        _profile("p2", "Bo"),
        _profile("p3", "Cy"),
        _profile("p4", "Di", status=ProfileStatus.INACTIVE),
        _profile("p5", "Ed"),
    ]
    entries = [_entry("e1", "p1", "Ana", datetime(2026, 10, 19, 14, 0))]

    rows = _service(entries, profiles, schedules).unclocked_users(actor=ADMIN)

    assert [r["employee"] for r in rows] == ["Bo"]
    assert rows[0]["scheduled_start"] == time(6, 0)


def test_unclocked_users_without_schedules():
    assert _service().unclocked_users(actor=ADMIN, day=date(2026, 10, 19)) == []
