from __future__ import annotations

import hashlib
import hmac

from werkzeug.security import check_password_hash, generate_password_hash


class PinHasher:
    """Kiosk PIN storage.

    Each PIN is stored twice: a slow Werkzeug hash used to verify it, and a
    keyed digest of ``company_id:pin``. The digest is indexed per company, so
    finding the profile that owns a PIN takes one query and one slow hash.
    """

    def __init__(self, secret_key: str):
        if not secret_key:
            raise ValueError("secret_key is required for PIN lookup digests")
        self._key = secret_key.encode("utf-8")

    def lookup(self, company_id: str, pin: str) -> str:
        message = f"{company_id}:{pin}".encode("utf-8")
        return hmac.new(self._key, message, hashlib.sha256).hexdigest()

    @staticmethod
    def hash(pin: str) -> str:
        return generate_password_hash(pin)

    @staticmethod
    def verify(pin_hash: str | None, pin: str) -> bool:
        if not pin_hash:
            return False
        try:
            return check_password_hash(pin_hash, pin)
        except ValueError:
            # placeholder or corrupted hash
            return False
