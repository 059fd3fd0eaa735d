from __future__ import annotations

import hmac
import logging
from functools import wraps
from typing import Any, Callable, Optional

from flask import current_app, jsonify, request, session

from ..core.actor import Actor
from ..core.enums import Role
from ..core.exceptions import DomainError

logger = logging.getLogger(__name__)


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def error_response(message: str, status: int = 400):
    return jsonify({"success": False, "error": message}), status


def domain_error_response(exc: DomainError):
    resp = jsonify({"success": False, "error": str(exc)})
    resp.status_code = exc.status_code
    for key, value in exc.headers.items():
        resp.headers[key] = value
    return resp


def handle_errors(view: Callable) -> Callable:
    """Translate domain errors into JSON responses; anything else becomes a 500."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except DomainError as e:
            return domain_error_response(e)
        except Exception as e:
            logger.exception("Unhandled error in %s", view.__name__)
            return error_response(str(e) or "Internal server error", 500)

    return wrapper


def client_ip() -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.headers.get("X-Real-IP") or request.headers.get("CF-Connecting-IP") or "unknown"


def current_user() -> Optional[dict]:
    if "account_id" not in session:
        return None
    return {
        "account_id": session.get("account_id"),
        "profile_id": session.get("profile_id"),
        "company_id": session.get("company_id"),
        "role": session.get("role"),
        "email": session.get("email"),
    }


def current_actor() -> Actor:
    role = session.get("role")
    return Actor(
        account_id=session["account_id"],
        profile_id=session.get("profile_id"),
        company_id=session.get("company_id"),
        role=Role(role) if role else None,
    )


def login_required(view: Callable) -> Callable:
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "account_id" not in session:
            return error_response("Authentication required", 401)
        return view(*args, **kwargs)

    return wrapper


def admin_required(view: Callable) -> Callable:
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "account_id" not in session:
            return error_response("Authentication required", 401)
        if session.get("role") != Role.ADMIN.value:
            return error_response("Admin access required", 403)
        return view(*args, **kwargs)

    return wrapper


def cron_secret_required(view: Callable) -> Callable:
    """Require ``Authorization: Bearer <CRON_SECRET>`` or ``X-Cron-Secret``.

    With no secret configured the request is let through and a warning logged.
    """

    @wraps(view)
    def wrapper(*args, **kwargs):
        expected = current_app.config.get("CRON_SECRET") or ""
        if not expected:
            logger.warning("[SECURITY] CRON_SECRET not configured; %s is unprotected", request.path)
            return view(*args, **kwargs)

        supplied = request.headers.get("X-Cron-Secret", "")
        auth = request.headers.get("Authorization", "")
        if auth.lower().startswith("bearer "):
            supplied = auth[7:].strip()
        if not hmac.compare_digest(supplied.encode(), expected.encode()):
            logger.warning("[SECURITY] Rejected cron call to %s from %s", request.path, client_ip())
            return error_response("Unauthorized", 401)
        return view(*args, **kwargs)

    return wrapper


def ok(payload: Any = None, status: int = 200, **extra):
    body: dict = {"success": True}
    if isinstance(payload, dict):
        body.update(payload)
    elif payload is not None:
        body["data"] = payload
    body.update(extra)
    return jsonify(body), status


def with_headers(result, headers: dict):
    resp, status = result
    for key, value in headers.items():
        resp.headers[key] = value
    return resp, status
