from __future__ import annotations

import re
from typing import Any, Iterable, Mapping, Optional

from ..core.exceptions import ValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_min_length(value: Optional[str], field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_fields(payload: Mapping[str, Any], fields: Iterable[str], *, message: Optional[str] = None) -> None:
    """Raise when any of ``fields`` is missing or falsy in ``payload``."""
    fields = list(fields)
    missing = [f for f in fields if not payload.get(f)]
    if missing:
        raise ValidationError(message or f"Missing required fields: {', '.join(fields)}")


def require_email(value: Optional[str], field_name: str = "Email") -> str:
    email = require_non_empty(value, field_name).lower()
    if not _EMAIL_RE.match(email):
        raise ValidationError(f"{field_name} is not valid")
    return email


def optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    v = str(value).strip()
    return v or None


def optional_float(value: Any, field_name: str) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")


def require_pin(value: Optional[str]) -> str:
    pin = require_non_empty(value, "PIN")
    if not pin.isdigit() or not 4 <= len(pin) <= 8:
        raise ValidationError("PIN must be 4 to 8 digits")
    return pin
