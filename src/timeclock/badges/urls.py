from __future__ import annotations

import re
from typing import Optional

_UUID_RE = re.compile(r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}")
_BADGE_PATH_RE = re.compile(r"/badge/([^/?#\s]+)")


def badge_url(base_url: str, profile_id: str) -> str:
    return f"{base_url.rstrip('/')}/badge/{profile_id}"


def extract_profile_id(text: Optional[str]) -> Optional[str]:
    """Pull a profile id out of a scanned badge payload.

    Accepts a badge URL (``.../badge/<id>``), a bare UUID, or a URL containing
    one. Returns None for anything else.
    """
    value = (text or "").strip()
    if not value:
        return None
    m = _BADGE_PATH_RE.search(value)
    if m:
        return m.group(1)
    m = _UUID_RE.search(value)
    return m.group(0).lower() if m else None
