from __future__ import annotations

from flask import Flask, session

from ..common.http import (
    admin_required,
    client_ip,
    current_actor,
    handle_errors,
    json_body,
    login_required,
    ok,
    with_headers,
)
from ..container import Container
from .model import SessionUser


def _store_session(user: SessionUser) -> None:
    session.clear()
    session["account_id"] = user.account_id
    session["email"] = user.email
    session["profile_id"] = user.profile_id
    session["company_id"] = user.company_id
    session["role"] = user.role.value if user.role else None
    session["name"] = user.display_name


def _user_payload(user: SessionUser) -> dict:
    return {
        "account_id": user.account_id,
        "email": user.email,
        "profile_id": user.profile_id,
        "company_id": user.company_id,
        "role": user.role.value if user.role else None,
        "display_name": user.display_name,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    @handle_errors
    def login():
        data = json_body()
        user = container.auth_service.authenticate(data.get("email") or "", data.get("password") or "")
        _store_session(user)
        return ok({"user": _user_payload(user)})

    @app.route("/api/auth/logout", methods=["POST"], endpoint="auth_logout")
    def logout():
        session.clear()
        return ok()

    @app.route("/api/auth/signup", methods=["POST"], endpoint="auth_signup")
    @handle_errors
    def signup():
        data = json_body()
        user = container.auth_service.signup(
            email=data.get("email") or "",
            password=data.get("password") or "",
            first_name=data.get("first_name") or "",
            last_name=data.get("last_name") or "",
        )
        _store_session(user)
        return ok({"user": _user_payload(user)}, 201)

    @app.route("/api/auth/me", methods=["GET"], endpoint="auth_me")
    @login_required
    @handle_errors
    def me():
        # role or company may have changed since login
        user = container.auth_service.refresh(session["account_id"])
        _store_session(user)
        return ok({"user": _user_payload(user)})

    @app.route("/api/auth/password", methods=["POST"], endpoint="auth_change_password")
    @login_required
    @handle_errors
    def change_password():
        data = json_body()
        container.auth_service.change_password(
            actor=current_actor(),
            current_password=data.get("current_password") or "",
            new_password=data.get("new_password") or "",
        )
        return ok()

    @app.route("/api/functions/create-auth-account", methods=["POST"], endpoint="fn_create_auth_account")
    @admin_required
    @handle_errors
    def create_auth_account():
        data = json_body()
        account_id = container.auth_service.create_auth_account(
            actor=current_actor(),
            profile_id=data.get("profile_id") or "",
            email=data.get("email") or "",
            password=data.get("password") or "",
            role=data.get("role"),
        )
        return ok({"user_id": account_id})

    @app.route("/api/functions/authenticate-pin", methods=["POST"], endpoint="fn_authenticate_pin")
    @handle_errors
    def authenticate_pin():
        data = json_body()
        result = container.pin_auth_service.authenticate(
            company_id=data.get("company_id") or "",
            pin=data.get("pin") or "",
            client_ip=client_ip(),
        )
        return with_headers(ok({"profile": result.profile.summary()}), result.limit.headers())
