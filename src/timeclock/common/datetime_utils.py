from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..core.constants import DEFAULT_TIMEZONE
from ..core.exceptions import ValidationError


def utc_now() -> datetime:
    """Current UTC time as a naive datetime (the storage convention).

    Note: Wrapped so tests can patch/mock easier.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid date (YYYY-MM-DD): {value!r}")


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into a naive UTC datetime.

    Offsets (including a trailing ``Z``) are converted to UTC; naive input is
    taken as UTC already.
    """
    raw = (value or "").strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        raise ValidationError(f"Invalid timestamp: {value!r}")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_hhmm(value: str) -> Optional[time]:
    v = (value or "").strip()
    if not v:
        return None
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(v, fmt).time()
        except ValueError:
            continue
    raise ValidationError("Invalid time (HH:MM)")


def isoformat_utc(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc).isoformat().replace("+00:00", "Z")


def get_zone(name: Optional[str]) -> ZoneInfo:
    try:
        return ZoneInfo(name or DEFAULT_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo(DEFAULT_TIMEZONE)


def to_local(value: datetime, tz_name: Optional[str]) -> datetime:
    """Convert a naive UTC datetime into an aware datetime in ``tz_name``."""
    return value.replace(tzinfo=timezone.utc).astimezone(get_zone(tz_name))


def local_to_utc(value: datetime) -> datetime:
    """Convert an aware local datetime back to naive UTC."""
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def end_of_local_day(now_utc: datetime, tz_name: Optional[str]) -> datetime:
    """23:59:59 of the current day in ``tz_name``, returned as naive UTC."""
    local = to_local(now_utc, tz_name)
    eod = local.replace(hour=23, minute=59, second=59, microsecond=0)
    return local_to_utc(eod)


def floor_minutes(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() // 60)


def round_minutes(start: datetime, end: datetime) -> int:
    return int(round((end - start).total_seconds() / 60))


def format_duration(minutes: Optional[int]) -> str:
    if not minutes:
        return "0h 0m"
    minutes = int(minutes)
    return f"{minutes // 60}h {minutes % 60}m"


def day_bounds_utc(day: date, tz_name: Optional[str]) -> tuple[datetime, datetime]:
    """UTC [start, end) covering one local calendar day."""
    zone = get_zone(tz_name)
    start_local = datetime.combine(day, time.min, tzinfo=zone)
    end_local = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)
    return local_to_utc(start_local), local_to_utc(end_local)
