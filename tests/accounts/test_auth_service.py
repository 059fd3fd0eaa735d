from __future__ import annotations

from dataclasses import replace

import pytest
from werkzeug.security import generate_password_hash

from timeclock.accounts.model import Account
from timeclock.accounts.pins import PinHasher
from timeclock.accounts.service import AuthService, PinAuthService
from timeclock.common.rate_limit import RateLimiter
from timeclock.core.actor import Actor
from timeclock.core.enums import ProfileStatus, Role
from timeclock.core.exceptions import AuthenticationError, RateLimitError, ValidationError
from timeclock.profiles.model import Profile

PINS = PinHasher("test-secret")


def _hash(secret):
    return generate_password_hash(secret, method="pbkdf2:sha256:1000")


class FakeAccounts:
    def __init__(self, *accounts):
        self.accounts = {a.id: a for a in accounts}

    def get(self, account_id):
        return self.accounts.get(account_id)

    def get_by_email(self, email):
        return next((a for a in self.accounts.values() if a.email == email.lower()), None)

    def create(self, *, email, password_hash):
        account_id = f"acc{len(self.accounts) + 1}"
        self.accounts[account_id] = Account(id=account_id, email=email, password_hash=password_hash)
        return account_id

    def update_password(self, account_id, password_hash):
        self.accounts[account_id] = replace(self.accounts[account_id], password_hash=password_hash)


class FakeRoles:
    def __init__(self):
        self.assigned = []

    def assign(self, *, profile_id, user_id, role):
        self.assigned.append((profile_id, user_id, role))


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

    def create(self, *, fields):
        profile_id = f"p{len(self.profiles) + 1}"
        self.profiles[profile_id] = Profile(
            id=profile_id,
            company_id=fields.get("company_id"),
            user_id=fields.get("user_id"),
            first_name=fields.get("first_name"),
            last_name=fields.get("last_name"),
            display_name=fields.get("display_name"),
            email=fields.get("email"),
        )
        return profile_id

    def update(self, profile_id, *, fields):
        self.profiles[profile_id] = replace(self.profiles[profile_id], **fields)


def _profile(**kw):
    defaults = dict(
        id="p1",
        company_id="c1",
        user_id="acc1",
        first_name="Ana",
        last_name="Lopez",
        display_name=None,
        role=Role.ADMIN,
    )
    defaults.update(kw)
    return Profile(**defaults)


ADMIN = Actor(account_id="acc1", profile_id="p1", company_id="c1", role=Role.ADMIN)


def _auth(*profiles):
    accounts = FakeAccounts(Account(id="acc1", email="admin@acme.test", password_hash=_hash("secret1")))
    return AuthService(accounts, FakeRoles(), FakeProfiles(*profiles)), accounts


def test_authenticate_returns_session_user():
    service, _ = _auth(_profile())

    user = service.authenticate("admin@acme.test", "secret1")

    assert user.account_id == "acc1"
    assert user.company_id == "c1"
    assert user.role == Role.ADMIN
    assert user.display_name == "Ana Lopez"


def test_authenticate_rejects_wrong_password():
    service, _ = _auth(_profile())
    with pytest.raises(AuthenticationError):
        service.authenticate("admin@acme.test", "nope")
    with pytest.raises(AuthenticationError):
        service.authenticate("nobody@acme.test", "secret1")


def test_signup_creates_companyless_profile():
    service, _ = _auth()

    user = service.signup(email="New@Acme.test", password="hunter22", first_name="Bo", last_name="Kim")

    assert user.email == "new@acme.test"
    assert user.company_id is None
    assert user.display_name == "Bo Kim"


def test_signup_rejects_short_password_and_duplicates():
    service, _ = _auth()
    with pytest.raises(ValidationError):
        service.signup(email="x@acme.test", password="123", first_name="", last_name="")
    with pytest.raises(ValidationError):
        service.signup(email="admin@acme.test", password="hunter22", first_name="", last_name="")


def test_change_password():
    service, accounts = _auth(_profile())

    service.change_password(actor=ADMIN, current_password="secret1", new_password="secret2")

    assert service.authenticate("admin@acme.test", "secret2").account_id == "acc1"
    with pytest.raises(AuthenticationError):
        service.change_password(actor=ADMIN, current_password="wrong", new_password="secret3")


def test_change_password_with_placeholder_hash_is_rejected():
    service, accounts = _auth(_profile())
    accounts.accounts["acc1"] = replace(accounts.accounts["acc1"], password_hash="!disabled")

    with pytest.raises(AuthenticationError, match="Current password is incorrect"):
        service.change_password(actor=ADMIN, current_password="secret1", new_password="secret2")


def test_create_auth_account_links_profile_and_role():
    worker = _profile(id="p2", user_id=None, role=None, first_name="Bo")
    accounts = FakeAccounts()
    roles = FakeRoles()
    profiles = FakeProfiles(worker)
    service = AuthService(accounts, roles, profiles)

    account_id = service.create_auth_account(
        actor=ADMIN, profile_id="p2", email="bo@acme.test", password="hunter22", role="foreman"
    )

    assert profiles.profiles["p2"].user_id == account_id
    assert roles.assigned == [("p2", account_id, Role.FOREMAN)]


def test_create_auth_account_rejects_linked_profile():
    service, _ = _auth(_profile(id="p2", user_id="acc9"))
    with pytest.raises(ValidationError):
        service.create_auth_account(actor=ADMIN, profile_id="p2", email="bo@acme.test", password="hunter22")


class FakeClock:
    def __init__(self, now=1_000.0):
        self.now = now

    def __call__(self):
        return self.now


def _pin_holder(profile_id="p2", pin="4321", **kw):
    return _profile(
        id=profile_id, user_id=None, role=None, pin_hash=_hash(pin), pin_lookup=PINS.lookup("c1", pin), **kw
    )


def _pin_service(clock=None, *profiles):
    limiter = RateLimiter(max_attempts=5, window_seconds=900, clock=clock or FakeClock())
    return PinAuthService(FakeProfiles(*(profiles or (_pin_holder(),))), limiter, PINS), limiter


def test_pin_auth_matches_profile_and_resets_counter():
    service, limiter = _pin_service()
    with pytest.raises(AuthenticationError):
        service.authenticate(company_id="c1", pin="0000", client_ip="10.0.0.1")

    result = service.authenticate(company_id="c1", pin="4321", client_ip="10.0.0.1")

    assert result.profile.id == "p2"
    assert len(limiter) == 0


def test_pin_auth_failure_carries_rate_limit_headers():
    service, _ = _pin_service()
    with pytest.raises(AuthenticationError) as exc:
        service.authenticate(company_id="c1", pin="0000", client_ip="10.0.0.1")
    assert exc.value.headers["X-RateLimit-Remaining"] == "4"


def test_pin_auth_sixth_attempt_is_rate_limited():
    clock = FakeClock()
    service, _ = _pin_service(clock)
    for _ in range(5):
        with pytest.raises(AuthenticationError):
            service.authenticate(company_id="c1", pin="0000", client_ip="10.0.0.1")

    with pytest.raises(RateLimitError) as exc:
        service.authenticate(company_id="c1", pin="4321", client_ip="10.0.0.1")
    assert exc.value.status_code == 429
    assert exc.value.headers["X-RateLimit-Remaining"] == "0"

    # other kiosks are unaffected
    assert service.authenticate(company_id="c1", pin="4321", client_ip="10.0.0.2").profile.id == "p2"

    clock.now += 901
    assert service.authenticate(company_id="c1", pin="4321", client_ip="10.0.0.1").profile.id == "p2"


def test_pin_auth_requires_company_and_pin():
    service, _ = _pin_service()
    with pytest.raises(ValidationError):
        service.authenticate(company_id="", pin="4321", client_ip="10.0.0.1")


def test_pin_auth_ignores_inactive_pin_holder():
    service, _ = _pin_service(None, _pin_holder(status=ProfileStatus.INACTIVE))
    with pytest.raises(AuthenticationError, match="Invalid PIN"):
        service.authenticate(company_id="c1", pin="4321", client_ip="10.0.0.1")


def test_pin_auth_verifies_the_slow_hash_of_the_matched_row():
    # digest matches but the stored hash belongs to another PIN
    tampered = replace(_pin_holder(), pin_hash=_hash("9999"))
    service, _ = _pin_service(None, tampered)
    with pytest.raises(AuthenticationError):
        service.authenticate(company_id="c1", pin="4321", client_ip="10.0.0.1")


def test_pin_lookup_is_scoped_to_company():
    other_company = replace(_pin_holder(), company_id="c2", pin_lookup=PINS.lookup("c2", "4321"))
    service, _ = _pin_service(None, other_company)
    with pytest.raises(AuthenticationError):
        service.authenticate(company_id="c1", pin="4321", client_ip="10.0.0.1")
