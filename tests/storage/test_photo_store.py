from __future__ import annotations

import base64
import io
import os
from datetime import datetime

import pytest
from PIL import Image

from timeclock.core.actor import Actor
from timeclock.core.enums import Role
from timeclock.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from timeclock.storage.photo_store import PhotoStore, decode_data_url, normalize_path
from timeclock.storage.service import PhotoService
from timeclock.time_entries.model import TimeEntry

TAKEN_AT = datetime(2026, 10, 19, 16, 0)
ADMIN = Actor(account_id="a1", profile_id="pa", company_id="c1", role=Role.ADMIN)


def _png_data_url():
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color=(200, 10, 10)).save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


def _store(tmp_path):
    return PhotoStore(str(tmp_path), "test-secret", public_base_url="https://time.example.com/")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("timeclock-photos/c1/p1/1.jpg", "c1/p1/1.jpg"),
        ("/c1/p1/1.jpg", "c1/p1/1.jpg"),
        ("  c1/p1/1.jpg ", "c1/p1/1.jpg"),
        ("", ""),
    ],
)
def test_normalize_path(raw, expected):
    assert normalize_path(raw) == expected


def test_decode_data_url_accepts_bare_base64():
    assert decode_data_url("aGVsbG8=") == b"hello"
    assert decode_data_url("data:text/plain;base64,aGVsbG8=") == b"hello"


def test_save_writes_jpeg_under_company_and_profile(tmp_path):
    store = _store(tmp_path)

    rel = store.save(company_id="c1", profile_id="p1", image=decode_data_url(_png_data_url()), taken_at=TAKEN_AT)

    assert rel == "c1/p1/1792425600000.jpg"
    full = tmp_path / "timeclock-photos" / "c1" / "p1" / "1792425600000.jpg"
    assert full.is_file()
    assert Image.open(full).format == "JPEG"
    assert store.exists(rel)
    assert store.exists(f"timeclock-photos/{rel}")


def test_save_rejects_non_images(tmp_path):
    with pytest.raises(ValidationError):
        _store(tmp_path).save(company_id="c1", profile_id="p1", image=b"not an image", taken_at=TAKEN_AT)


def test_signed_url_resolves_to_file(tmp_path):
    store = _store(tmp_path)
    rel = store.save(company_id="c1", profile_id="p1", image=decode_data_url(_png_data_url()), taken_at=TAKEN_AT)

    url = store.signed_url(rel)

    assert url.startswith("https://time.example.com/api/photos/")
    token = url.rsplit("/", 1)[1]
    assert store.resolve(token) == os.path.join(str(tmp_path), "timeclock-photos", "c1", "p1", "1792425600000.jpg")


def test_signed_url_passes_through_external_urls(tmp_path):
    store = _store(tmp_path)
    assert store.signed_url(None) is None
    assert store.signed_url("https://cdn.example.com/a.jpg") == "https://cdn.example.com/a.jpg"


def test_resolve_rejects_bad_tokens(tmp_path):
    store = _store(tmp_path)
    token = store.sign("c1/p1/1.jpg")

    with pytest.raises(NotFoundError):
        store.resolve(token)
    with pytest.raises(ValidationError, match="expired"):
        store.resolve(token, max_age=-1)
    with pytest.raises(ValidationError, match="Invalid"):
        store.resolve(token + "x")

    other = PhotoStore(str(tmp_path), "another-secret")
    with pytest.raises(ValidationError):
        other.resolve(token)


def test_resolve_blocks_path_traversal(tmp_path):
    store = _store(tmp_path)
    with pytest.raises(ValidationError):
        store.resolve(store.sign("../../etc/passwd"))


class FakeEntries:
    def __init__(self, *entries):
        self.entries = list(entries)

    def list_with_photos(self, company_id):
        return [e for e in self.entries if e.company_id == company_id]


def _entry(entry_id, clock_in_photo=None, clock_out_photo=None):
    return TimeEntry(
        id=entry_id,
        company_id="c1",
        profile_id="p1",
        user_id="u1",
        start_time=TAKEN_AT,
        clock_in_photo_url=clock_in_photo,
        clock_out_photo_url=clock_out_photo,
    )


def test_store_clock_photo(tmp_path):
    service = PhotoService(_store(tmp_path), FakeEntries(), now=lambda: TAKEN_AT)

    assert service.store_clock_photo(company_id="c1", profile_id="p1", photo=None) is None
    assert service.store_clock_photo(company_id="c1", profile_id="p1", photo="https://cdn/x.jpg") == "https://cdn/x.jpg"
    assert service.store_clock_photo(company_id="c1", profile_id="p1", photo=_png_data_url()) == "c1/p1/1792425600000.jpg"


def test_migrate_timeclock_photos_counts_missing(tmp_path):
    store = _store(tmp_path)
    saved = store.save(company_id="c1", profile_id="p1", image=decode_data_url(_png_data_url()), taken_at=TAKEN_AT)
    entries = FakeEntries(
        _entry("e1", clock_in_photo=saved, clock_out_photo="c1/p1/gone.jpg"),
        _entry("e2", clock_in_photo="https://cdn/legacy.jpg"),
    )
    service = PhotoService(store, entries)

    assert service.migrate_timeclock_photos(actor=ADMIN) == {"entries_with_photos": 2, "photos": 2, "missing": 1}


def test_migrate_timeclock_photos_other_company(tmp_path):
    service = PhotoService(_store(tmp_path), FakeEntries())
    with pytest.raises(AuthorizationError):
        service.migrate_timeclock_photos(actor=ADMIN, company_id="c2")
