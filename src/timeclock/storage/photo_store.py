from __future__ import annotations

import base64
import binascii
import io
import logging
import os
from datetime import datetime, timezone
from typing import Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from PIL import Image, UnidentifiedImageError

from ..core.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

BUCKET = "timeclock-photos"
SIGNED_URL_TTL = 3600


def normalize_path(path: str) -> str:
    """Bucket-relative path; a leading ``timeclock-photos/`` is dropped."""
    path = (path or "").strip().lstrip("/")
    prefix = f"{BUCKET}/"
    if path.startswith(prefix):
        path = path[len(prefix):]
    return path


def decode_data_url(data: str) -> bytes:
    """Bytes of a ``data:image/...;base64,`` string (or bare base64)."""
    payload = data.split(",", 1)[1] if "," in data else data
    try:
        return base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError):
        raise ValidationError("Invalid image data")


class PhotoStore:
    """Clock photos on local disk, served through short-lived signed links."""

    def __init__(self, root_dir: str, secret_key: str, *, public_base_url: str = ""):
        self._root = os.path.join(root_dir, BUCKET)
        self._serializer = URLSafeTimedSerializer(secret_key, salt=BUCKET)
        self._base_url = public_base_url.rstrip("/")

    def save(self, *, company_id: str, profile_id: str, image: bytes, taken_at: datetime) -> str:
        try:
            img = Image.open(io.BytesIO(image)).convert("RGB")
        except (UnidentifiedImageError, OSError):
            raise ValidationError("Invalid image data")

        rel = f"{company_id}/{profile_id}/{int(taken_at.replace(tzinfo=timezone.utc).timestamp() * 1000)}.jpg"
        full = self._full_path(rel)
        os.makedirs(os.path.dirname(full), exist_ok=True)
        img.save(full, format="JPEG", quality=85)
        logger.debug("Stored photo %s", rel)
        return rel

    def _full_path(self, rel: str) -> str:
        rel = normalize_path(rel)
        full = os.path.normpath(os.path.join(self._root, rel))
        if not full.startswith(os.path.normpath(self._root) + os.sep):
            raise ValidationError("Invalid photo path")
        return full

    def exists(self, path: str) -> bool:
        return os.path.isfile(self._full_path(path))

    def sign(self, path: str) -> str:
        return self._serializer.dumps(normalize_path(path))

    def signed_url(self, path: Optional[str]) -> Optional[str]:
        if not path:
            return None
        if path.startswith(("http://", "https://", "data:")):
            return path
        return f"{self._base_url}/api/photos/{self.sign(path)}"

    def resolve(self, token: str, *, max_age: int = SIGNED_URL_TTL) -> str:
        """Absolute file path for a signed token; raises when expired or tampered."""
        try:
            rel = self._serializer.loads(token, max_age=max_age)
        except SignatureExpired:
            raise ValidationError("Photo link has expired")
        except BadSignature:
            raise ValidationError("Invalid photo link")

        full = self._full_path(rel)
        if not os.path.isfile(full):
            raise NotFoundError("Photo not found")
        return full
