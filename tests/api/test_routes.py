from __future__ import annotations

import base64
import io
from dataclasses import replace
from datetime import date, datetime

import pytest
from PIL import Image
from werkzeug.security import generate_password_hash

from timeclock.accounts.model import Account
from timeclock.accounts.pins import PinHasher
from timeclock.accounts.service import AuthService, PinAuthService
from timeclock.common.http import client_ip
from timeclock.common.rate_limit import RateLimiter
from timeclock.companies.model import CompanyFeatures
from timeclock.container import Container
from timeclock.core.enums import Role
from timeclock.core.exceptions import ValidationError
from timeclock.main import create_app
from timeclock.profiles.model import Profile
from timeclock.storage.photo_store import PhotoStore
from timeclock.storage.service import PhotoService
from timeclock.time_entries.model import TimeEntry
from timeclock.time_entries.service import TimeclockService

CRON_SECRET = "test-cron-secret"
PINS = PinHasher("test-secret")
NOW = datetime(2026, 10, 19, 16, 30)


def _hash(secret):
    return generate_password_hash(secret, method="pbkdf2:sha256:1000")


class FakeAccounts:
    def __init__(self, *accounts):
        self.accounts = {a.id: a for a in accounts}

    def get(self, account_id):
        return self.accounts.get(account_id)

    def get_by_email(self, email):
        return next((a for a in self.accounts.values() if a.email == email), None)


class FakeProfiles:
    def __init__(self, *profiles):
        self.profiles = {p.id: p for p in profiles}

    def get_by_user_id(self, user_id):
        return next((p for p in self.profiles.values() if p.user_id == user_id), None)

    def get_in_company(self, company_id, profile_id):
        p = self.profiles.get(profile_id)
        return p if p and p.company_id == company_id else None

    def find_by_pin_lookup(self, company_id, pin_lookup):
        return [p for p in self.profiles.values() if p.company_id == company_id and p.pin_lookup == pin_lookup]


class FakeEntries:
    def __init__(self):
        self.entries = {}

    def get(self, entry_id):
        return self.entries.get(entry_id)

    def find_open(self, company_id, *, profile_id=None, user_id=None):
        for e in self.entries.values():
            if e.company_id == company_id and e.is_open and profile_id in (None, e.profile_id):
                if user_id in (None, e.user_id):
                    return e
        return None

    def create(self, new):
        entry_id = f"e{len(self.entries) + 1}"
        self.entries[entry_id] = TimeEntry(
            id=entry_id,
            company_id=new.company_id,
            profile_id=new.profile_id,
            user_id=new.user_id,
            start_time=new.start_time,
            end_time=new.end_time,
            is_break=new.is_break,
            clock_in_photo_url=new.photo_url,
        )
        return entry_id

    def close(self, entry_id, *, end_time, duration_minutes, photo_url=None, location=None, description=None):
        self.entries[entry_id] = replace(
            self.entries[entry_id], end_time=end_time, duration_minutes=duration_minutes, clock_out_photo_url=photo_url
        )
        return True


class StubAdminTime:
    def auto_close_overtime_shifts(self):
        return {"closed": 2, "closed_entry_ids": ["e1", "e2"], "emails_sent": 1}


class StubScheduledReports:
    def process_scheduled_reports(self):
        return {"processed": 0, "results": []}


class StubReports:
    def __init__(self):
        self.calls = []

    def employee_hours(self, *, actor, start=None, end=None):
        self.calls.append((actor, start, end))
        if start and end and end < start:
            raise ValidationError("End date must be on or after start date")
        return [{"employee": "Ana", "total_minutes": 90}]


class StubCompanies:
    def get_features(self, company_id):
        return CompanyFeatures(company_id=company_id, employee_pin=True)


def _container(storage_dir):
    admin = Profile(
        id="pa",
        company_id="c1",
        user_id="acc1",
        first_name="Ada",
        last_name="Admin",
        display_name=None,
        role=Role.ADMIN,
    )
    worker = Profile(
        id="p1",
        company_id="c1",
        user_id=None,
        first_name="Ana",
        last_name="Lopez",
        display_name="Ana Lopez",
        pin_hash=_hash("4321"),
        pin_lookup=PINS.lookup("c1", "4321"),
    )
    profiles = FakeProfiles(admin, worker)
    accounts = FakeAccounts(Account(id="acc1", email="admin@acme.test", password_hash=_hash("secret1")))
    entries = FakeEntries()
    photo_service = PhotoService(
        PhotoStore(str(storage_dir), "test-secret", public_base_url="https://time.example.com"), entries, now=lambda: NOW
    )
    return Container(
        conn=None,
        mailer=None,
        photo_store=None,
        auth_service=AuthService(accounts, None, profiles),
        pin_auth_service=PinAuthService(profiles, RateLimiter(max_attempts=5, window_seconds=900), PINS),
        company_service=StubCompanies(),
        profile_service=None,
        timeclock_service=TimeclockService(entries, profiles, photos=photo_service, now=lambda: NOW),
        admin_time_service=StubAdminTime(),
        task_service=None,
        face_service=None,
        badge_service=None,
        project_service=None,
        schedule_service=None,
        time_off_service=None,
        report_service=StubReports(),
        scheduled_report_service=StubScheduledReports(),
        photo_service=photo_service,
    )


@pytest.fixture
def container(tmp_path):
    return _container(tmp_path)


@pytest.fixture
def app(container):
    return create_app(container=container, settings_module="timeclock.config.testing")


@pytest.fixture
def client(app):
    return app.test_client()


def _sign_in(client, role="admin"):
    with client.session_transaction() as sess:
        sess["account_id"] = "acc1"
        sess["profile_id"] = "pa"
        sess["company_id"] = "c1"
        sess["role"] = role


def test_health(client):
    assert client.get("/api/health").get_json() == {"status": "ok"}


def test_login_sets_session(client):
    resp = client.post("/api/auth/login", json={"email": "admin@acme.test", "password": "secret1"})

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert body["user"]["role"] == "admin"
    assert client.get("/api/auth/me").get_json()["user"]["company_id"] == "c1"


def test_login_failure_is_json_401(client):
    resp = client.post("/api/auth/login", json={"email": "admin@acme.test", "password": "nope"})

    assert resp.status_code == 401
    assert resp.get_json() == {"success": False, "error": "Invalid email or password"}


def test_me_requires_login(client):
    assert client.get("/api/auth/me").status_code == 401


def test_pin_auth_success_and_rate_limit(client):
    ok_resp = client.post("/api/functions/authenticate-pin", json={"company_id": "c1", "pin": "4321"})
    assert ok_resp.status_code == 200
    assert ok_resp.get_json()["profile"]["display_name"] == "Ana Lopez"
    assert "pin_hash" not in ok_resp.get_json()["profile"]
    assert ok_resp.headers["X-RateLimit-Remaining"] == "4"

    statuses = [
        client.post("/api/functions/authenticate-pin", json={"company_id": "c1", "pin": "0000"}).status_code
        for _ in range(6)
    ]
    assert statuses == [401, 401, 401, 401, 401, 429]

    blocked = client.post("/api/functions/authenticate-pin", json={"company_id": "c1", "pin": "4321"})
    assert blocked.status_code == 429
    assert blocked.headers["X-RateLimit-Remaining"] == "0"
    assert "X-RateLimit-Reset" in blocked.headers


def test_pin_auth_missing_fields(client):
    resp = client.post("/api/functions/authenticate-pin", json={"company_id": "c1"})
    assert resp.status_code == 400
    assert resp.get_json()["success"] is False


def test_kiosk_features_are_public(client):
    body = client.get("/api/kiosk/c1/features").get_json()
    assert body["features"]["employee_pin"] is True


def test_admin_routes_reject_employees(client):
    assert client.get("/api/reports/employee-hours").status_code == 401
    _sign_in(client, role="employee")
    resp = client.get("/api/reports/employee-hours")
    assert resp.status_code == 403
    assert resp.get_json()["error"] == "Admin access required"


def test_admin_report_passes_dates(client, container):
    _sign_in(client)

    resp = client.get("/api/reports/employee-hours?start=2026-10-01&end=2026-10-07")

    assert resp.status_code == 200
    assert resp.get_json()["rows"][0]["employee"] == "Ana"
    actor, start, end = container.report_service.calls[0]
    assert actor.role == Role.ADMIN
    assert (start, end) == (date(2026, 10, 1), date(2026, 10, 7))


def test_bad_date_argument_is_400(client):
    _sign_in(client)
    resp = client.get("/api/reports/employee-hours?start=10/01/2026")
    assert resp.status_code == 400


@pytest.mark.parametrize(
    "path", ["/api/functions/auto-close-overtime-shifts", "/api/functions/process-scheduled-reports"]
)
def test_cron_routes_require_secret(client, path):
    assert client.post(path).status_code == 401
    assert client.post(path, headers={"Authorization": "Bearer wrong"}).status_code == 401
    assert client.post(path, headers={"Authorization": f"Bearer {CRON_SECRET}"}).status_code == 200
    assert client.post(path, headers={"X-Cron-Secret": CRON_SECRET}).status_code == 200


def test_auto_close_payload(client):
    resp = client.post("/api/functions/auto-close-overtime-shifts", headers={"X-Cron-Secret": CRON_SECRET})
    assert resp.get_json() == {"success": True, "closed": 2, "closed_entry_ids": ["e1", "e2"], "emails_sent": 1}


def _photo_data_url():
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color=(20, 120, 200)).save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


def _stored_photos(tmp_path):
    return sorted(p.relative_to(tmp_path).as_posix() for p in tmp_path.rglob("*.jpg"))


def test_clock_in_out_stores_photo_and_returns_entry(client, tmp_path):
    resp = client.post(
        "/api/functions/clock-in-out",
        json={"action": "clock_in", "company_id": "c1", "profile_id": "p1", "photo_url": _photo_data_url()},
    )

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert body["message"] == "Clocked in successfully"
    entry = body["time_entry"]
    assert entry["profile_id"] == "p1"
    assert entry["user_id"] == "p1"
    assert entry["end_time"] is None
    assert entry["clock_in_photo_url"] == "c1/p1/1792427400000.jpg"
    assert _stored_photos(tmp_path) == ["timeclock-photos/c1/p1/1792427400000.jpg"]

    out = client.post("/api/functions/clock-in-out", json={"action": "clock_out", "company_id": "c1", "profile_id": "p1"})
    assert out.status_code == 200
    assert out.get_json()["message"] == "Clocked out successfully"
    assert out.get_json()["time_entry"]["duration_minutes"] == 0


@pytest.mark.parametrize(
    "payload, status, error",
    [
        ({"action": "clock_in", "company_id": "ghost-co", "profile_id": "ghost-p"}, 404, "not in this company"),
        ({"action": "clock_in", "company_id": "c1", "profile_id": "ghost-p"}, 404, "not in this company"),
        ({"action": "clock_out", "company_id": "c1", "profile_id": "p1"}, 404, "No active time entry"),
        ({"action": "teleport", "company_id": "c1", "profile_id": "p1"}, 400, "Invalid action"),
        ({"company_id": "c1", "profile_id": "p1"}, 400, "required"),
    ],
)
def test_rejected_clock_actions_leave_no_photo_behind(client, tmp_path, payload, status, error):
    resp = client.post("/api/functions/clock-in-out", json={**payload, "photo_url": _photo_data_url()})

    assert resp.status_code == status
    assert resp.get_json()["success"] is False
    assert error in resp.get_json()["error"]
    assert _stored_photos(tmp_path) == []


def test_second_clock_in_is_rejected_without_storing_photo(client, tmp_path):
    first = {"action": "clock_in", "company_id": "c1", "profile_id": "p1"}
    assert client.post("/api/functions/clock-in-out", json=first).status_code == 200

    resp = client.post("/api/functions/clock-in-out", json={**first, "photo_url": _photo_data_url()})

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Already clocked in. Please clock out first."
    assert _stored_photos(tmp_path) == []


def test_check_clock_status_payload(client):
    idle = client.post("/api/functions/check-clock-status", json={"company_id": "c1", "profile_id": "p1"}).get_json()
    assert idle == {
        "success": True,
        "is_clocked_in": False,
        "clocked_in": False,
        "active_entry": None,
        "time_entry": None,
    }

    client.post("/api/functions/clock-in-out", json={"action": "clock_in", "company_id": "c1", "profile_id": "p1"})
    busy = client.post("/api/functions/check-clock-status", json={"company_id": "c1", "profile_id": "p1"}).get_json()

    assert busy["is_clocked_in"] is True
    assert busy["clocked_in"] is True
    assert busy["active_entry"]["id"] == "e1"
    assert busy["time_entry"] == busy["active_entry"]


def test_check_clock_status_requires_ids(client):
    resp = client.post("/api/functions/check-clock-status", json={"company_id": "c1"})
    assert resp.status_code == 400


@pytest.mark.parametrize(
    "headers, expected",
    [
        ({"X-Forwarded-For": "203.0.113.7, 10.0.0.1", "X-Real-IP": "10.0.0.2"}, "203.0.113.7"),
        ({"X-Real-IP": "198.51.100.4", "CF-Connecting-IP": "192.0.2.9"}, "198.51.100.4"),
        ({"CF-Connecting-IP": "192.0.2.9"}, "192.0.2.9"),
        ({}, "unknown"),
    ],
)
def test_client_ip_resolution_order(app, headers, expected):
    with app.test_request_context("/", headers=headers):
        assert client_ip() == expected


def test_pin_rate_limit_is_keyed_on_forwarded_ip(client):
    for _ in range(5):
        client.post(
            "/api/functions/authenticate-pin",
            json={"company_id": "c1", "pin": "0000"},
            headers={"X-Forwarded-For": "203.0.113.7"},
        )

    blocked = client.post(
        "/api/functions/authenticate-pin",
        json={"company_id": "c1", "pin": "4321"},
        headers={"X-Forwarded-For": "203.0.113.7"},
    )
    other = client.post(
        "/api/functions/authenticate-pin",
        json={"company_id": "c1", "pin": "4321"},
        headers={"X-Forwarded-For": "203.0.113.8"},
    )

    assert blocked.status_code == 429
    assert other.status_code == 200
