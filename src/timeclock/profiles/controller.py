from __future__ import annotations

import io

from flask import Flask, request, send_file

from ..common.http import admin_required, client_ip, current_actor, handle_errors, json_body, login_required, ok
from ..common.serialization import to_json
from ..container import Container
from ..core.enums import ProfileStatus
from ..core.exceptions import ValidationError
from .model import ProfileFilters


def uploaded_text() -> str:
    """CSV text from a multipart ``file`` upload or a JSON ``content`` field."""
    upload = request.files.get("file")
    if upload is not None:
        return upload.read().decode("utf-8-sig")
    content = json_body().get("content")
    if not content:
        raise ValidationError("No file uploaded")
    return str(content)


def register(app: Flask, container: Container) -> None:
    svc = container.profile_service

    @app.route("/api/profiles", methods=["GET"], endpoint="profiles_list")
    @login_required
    @handle_errors
    def list_profiles():
        status = request.args.get("status")
        try:
            filters = ProfileFilters(
                status=ProfileStatus(status) if status else None,
                department_id=request.args.get("department_id") or None,
                search=request.args.get("search") or None,
            )
        except ValueError:
            raise ValidationError("Status must be active or inactive")
        return ok({"profiles": to_json(list(svc.list_profiles(actor=current_actor(), filters=filters)))})

    @app.route("/api/profiles/stats", methods=["GET"], endpoint="profiles_stats")
    @login_required
    @handle_errors
    def profile_stats():
        return ok({"stats": svc.stats(actor=current_actor())})

    @app.route("/api/profiles/<profile_id>", methods=["GET"], endpoint="profiles_get")
    @login_required
    @handle_errors
    def get_profile(profile_id: str):
        return ok({"profile": to_json(svc.get_profile(actor=current_actor(), profile_id=profile_id))})

    @app.route("/api/functions/create-user", methods=["POST"], endpoint="fn_create_user")
    @admin_required
    @handle_errors
    def create_user():
        data = json_body()
        profile = svc.create_user(
            actor=current_actor(),
            first_name=data.get("first_name") or "",
            last_name=data.get("last_name") or "",
            email=data.get("email"),
            display_name=data.get("display_name"),
            phone=data.get("phone"),
            department_id=data.get("department_id"),
            employee_id=data.get("employee_id"),
            role=data.get("role"),
            pin=data.get("pin"),
            create_auth_account=bool(data.get("create_auth_account")),
            password=data.get("password"),
        )
        return ok({"profile": to_json(profile)}, 201)

    @app.route("/api/profiles/<profile_id>", methods=["PUT", "PATCH"], endpoint="profiles_update")
    @admin_required
    @handle_errors
    def update_profile(profile_id: str):
        profile = svc.update_profile(actor=current_actor(), profile_id=profile_id, fields=json_body())
        return ok({"profile": to_json(profile)})

    @app.route("/api/profiles/<profile_id>/status", methods=["POST"], endpoint="profiles_status")
    @admin_required
    @handle_errors
    def set_status(profile_id: str):
        profile = svc.set_status(actor=current_actor(), profile_id=profile_id, status=json_body().get("status") or "")
        return ok({"profile": to_json(profile)})

    @app.route("/api/profiles/<profile_id>/pin", methods=["POST"], endpoint="profiles_pin")
    @admin_required
    @handle_errors
    def set_pin(profile_id: str):
        svc.set_pin(actor=current_actor(), profile_id=profile_id, pin=json_body().get("pin"))
        return ok()

    @app.route("/api/profiles/import", methods=["POST"], endpoint="profiles_import")
    @admin_required
    @handle_errors
    def import_profiles():
        result = svc.import_csv(actor=current_actor(), content=uploaded_text())
        return ok(to_json(result))

    @app.route("/api/profiles/export", methods=["GET"], endpoint="profiles_export")
    @login_required
    @handle_errors
    def export_profiles():
        ids = [i for i in (request.args.get("ids") or "").split(",") if i]
        data = svc.export_csv(actor=current_actor(), profile_ids=ids or None)
        return send_file(io.BytesIO(data), mimetype="text/csv", as_attachment=True, download_name="users.csv")

    @app.route("/api/functions/lookup-employee", methods=["POST"], endpoint="fn_lookup_employee")
    @handle_errors
    def lookup_employee():
        data = json_body()
        profile = svc.lookup_employee(
            company_id=data.get("company_id") or "",
            identifier=str(data.get("identifier") or ""),
            client_ip=client_ip(),
        )
        if profile is None:
            return ok({"found": False})
        return ok({"found": True, "profile": profile.summary()})
