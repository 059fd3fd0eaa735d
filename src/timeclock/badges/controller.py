from __future__ import annotations

from flask import Flask, request, send_file
from PIL import UnidentifiedImageError

from ..common.http import admin_required, client_ip, current_actor, handle_errors, json_body, login_required, ok
from ..common.serialization import to_json
from ..container import Container
from ..core.exceptions import ValidationError
from ..storage.photo_store import decode_data_url
from .qr import profile_id_from_image


def register(app: Flask, container: Container) -> None:
    svc = container.badge_service

    @app.route("/api/functions/generate-badge", methods=["POST"], endpoint="fn_generate_badge")
    @handle_errors
    def generate_badge():
        data = json_body()
        badge = svc.generate_badge(
            profile_id=data.get("profile_id") or data.get("profileId"),
            company_id=data.get("company_id"),
        )
        return ok(to_json(badge))

    @app.route("/api/functions/verify-badge", methods=["POST"], endpoint="fn_verify_badge")
    @handle_errors
    def verify_badge():
        data = json_body()
        return ok(svc.verify_badge(profile_id=data.get("profile_id") or "", company_id=data.get("company_id") or ""))

    @app.route("/api/badges/<profile_id>/qr.png", methods=["GET"], endpoint="badge_qr")
    @handle_errors
    def badge_qr(profile_id: str):
        return send_file(svc.badge_qr(profile_id), mimetype="image/png")

    @app.route("/api/functions/scan-badge", methods=["POST"], endpoint="fn_scan_badge")
    @handle_errors
    def scan_badge():
        upload = request.files.get("image")
        data = json_body() if upload is None else request.form
        image = upload.read() if upload is not None else decode_data_url(data.get("image") or "")
        try:
            profile_id = profile_id_from_image(image)
        except (UnidentifiedImageError, OSError):
            raise ValidationError("Invalid image data")
        if not profile_id:
            return ok({"found": False})

        profile = container.profile_service.lookup_employee(
            company_id=data.get("company_id") or "",
            identifier=profile_id,
            client_ip=client_ip(),
        )
        if profile is None:
            return ok({"found": False})
        return ok({"found": True, "profile": profile.summary()})

    # -------- certifications --------
    @app.route("/api/profiles/<profile_id>/certifications", methods=["GET"], endpoint="certifications_list")
    @login_required
    @handle_errors
    def list_certifications(profile_id: str):
        rows = svc.list_certifications(actor=current_actor(), profile_id=profile_id)
        return ok({"certifications": to_json(list(rows))})

    @app.route("/api/profiles/<profile_id>/certifications", methods=["POST"], endpoint="certifications_create")
    @admin_required
    @handle_errors
    def add_certification(profile_id: str):
        cert = svc.add_certification(actor=current_actor(), profile_id=profile_id, fields=json_body())
        return ok({"certification": to_json(cert)}, 201)

    @app.route("/api/certifications/<certification_id>", methods=["PUT", "PATCH"], endpoint="certifications_update")
    @admin_required
    @handle_errors
    def update_certification(certification_id: str):
        cert = svc.update_certification(actor=current_actor(), certification_id=certification_id, fields=json_body())
        return ok({"certification": to_json(cert)})

    @app.route("/api/certifications/<certification_id>", methods=["DELETE"], endpoint="certifications_delete")
    @admin_required
    @handle_errors
    def delete_certification(certification_id: str):
        svc.delete_certification(actor=current_actor(), certification_id=certification_id)
        return ok()

    # -------- templates --------
    @app.route("/api/badge-templates", methods=["GET"], endpoint="badge_templates_list")
    @login_required
    @handle_errors
    def list_templates():
        return ok({"templates": to_json(list(svc.list_templates(actor=current_actor())))})

    @app.route("/api/badge-templates", methods=["POST"], endpoint="badge_templates_create")
    @admin_required
    @handle_errors
    def create_template():
        data = json_body()
        template = svc.create_template(
            actor=current_actor(),
            name=data.get("name") or "",
            template_config=data.get("template_config"),
        )
        return ok({"template": to_json(template)}, 201)

    @app.route("/api/badge-templates/<template_id>", methods=["PUT", "PATCH"], endpoint="badge_templates_update")
    @admin_required
    @handle_errors
    def update_template(template_id: str):
        template = svc.update_template(actor=current_actor(), template_id=template_id, fields=json_body())
        return ok({"template": to_json(template)})

    @app.route("/api/badge-templates/<template_id>/activate", methods=["POST"], endpoint="badge_templates_activate")
    @admin_required
    @handle_errors
    def activate_template(template_id: str):
        return ok({"template": to_json(svc.activate_template(actor=current_actor(), template_id=template_id))})

    @app.route("/api/badge-templates/<template_id>", methods=["DELETE"], endpoint="badge_templates_delete")
    @admin_required
    @handle_errors
    def delete_template(template_id: str):
        svc.delete_template(actor=current_actor(), template_id=template_id)
        return ok()
