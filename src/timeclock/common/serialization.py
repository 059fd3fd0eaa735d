from __future__ import annotations

import dataclasses
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any

from .datetime_utils import isoformat_utc

# Never leaves the server.
_HIDDEN_FIELDS = {"pin_hash", "pin_lookup", "password_hash", "face_embedding"}


def to_json(value: Any) -> Any:
    """Convert models (dataclasses), enums and temporal values into JSON-safe data."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: to_json(getattr(value, f.name))
            for f in dataclasses.fields(value)
            if f.name not in _HIDDEN_FIELDS
        }
    if isinstance(value, dict):
        return {k: to_json(v) for k, v in value.items() if k not in _HIDDEN_FIELDS}
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return isoformat_utc(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, time):
        return value.strftime("%H:%M")
    if isinstance(value, Decimal):
        return float(value)
    return value
