from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from ..common.datetime_utils import utc_now
from ..common.validators import optional_str
from ..core.actor import Actor
from ..core.exceptions import AuthorizationError
from ..time_entries.repository import TimeEntryRepository
from .photo_store import PhotoStore, decode_data_url

logger = logging.getLogger(__name__)


class PhotoService:
    def __init__(self, store: PhotoStore, entries: TimeEntryRepository, *, now: Callable[[], datetime] = utc_now):
        self._store = store
        self._entries = entries
        self._now = now

    def store_clock_photo(self, *, company_id: str, profile_id: str, photo: Optional[str]) -> Optional[str]:
        """Persist a data-URL photo and return its stored path; URLs pass through unchanged."""
        photo = optional_str(photo)
        if not photo:
            return None
        if not photo.startswith("data:"):
            return photo
        return self._store.save(
            company_id=company_id,
            profile_id=profile_id,
            image=decode_data_url(photo),
            taken_at=self._now(),
        )

    def signed_url(self, path: Optional[str]) -> Optional[str]:
        return self._store.signed_url(path)

    def migrate_timeclock_photos(self, *, actor: Actor, company_id: Optional[str] = None) -> dict:
        own_company = actor.require_admin()
        company_id = company_id or own_company
        if company_id != own_company:
            raise AuthorizationError("Admin access required")

        entries = self._entries.list_with_photos(company_id)
        photos = 0
        missing = 0
        for e in entries:
            for path in (e.clock_in_photo_url, e.clock_out_photo_url):
                if not path or path.startswith(("http://", "https://")):
                    continue
                photos += 1
                if not self._store.exists(path):
                    missing += 1

        logger.info("Photo migration check for %s: %d entries, %d photos, %d missing", company_id, len(entries), photos, missing)
        return {"entries_with_photos": len(entries), "photos": photos, "missing": missing}
