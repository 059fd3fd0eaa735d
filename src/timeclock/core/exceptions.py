from __future__ import annotations

import math
from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations.

    ``headers`` are copied onto the HTTP response by the controllers.
    """

    status_code = 400

    def __init__(self, message: str = "", *, headers: Optional[dict] = None):
        super().__init__(message)
        self.headers = dict(headers or {})


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when credentials (password, PIN, session) are missing or invalid."""

    status_code = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403


class NotFoundError(DomainError):
    """Raised when a record does not exist inside the caller's company."""

    status_code = 404


class RateLimitError(DomainError):
    """Raised when a rate-limited key is over its budget."""

    status_code = 429

    def __init__(self, message: str, *, remaining: int = 0, reset_at: Optional[float] = None):
        headers = {"X-RateLimit-Remaining": str(remaining)}
        if reset_at is not None:
            headers["X-RateLimit-Reset"] = str(math.ceil(reset_at))
        super().__init__(message, headers=headers)
        self.remaining = remaining
        self.reset_at = reset_at
