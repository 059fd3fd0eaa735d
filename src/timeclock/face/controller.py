from __future__ import annotations

from flask import Flask, request

from ..common.http import admin_required, current_actor, handle_errors, json_body, ok
from ..common.serialization import to_json
from ..container import Container


def register(app: Flask, container: Container) -> None:
    svc = container.face_service

    @app.route("/api/functions/verify-face", methods=["POST"], endpoint="fn_verify_face")
    @handle_errors
    def verify_face():
        data = json_body()
        verification, created = svc.verify_face(
            time_entry_id=data.get("time_entry_id") or "",
            profile_id=data.get("profile_id") or "",
            company_id=data.get("company_id") or "",
            clock_photo_url=data.get("clock_photo_url"),
            profile_photo_url=data.get("profile_photo_url"),
            clock_embedding=data.get("clock_embedding"),
        )
        payload = {"verification": to_json(verification), "status": verification.status.value}
        if not created:
            payload["message"] = "Verification already exists"
        return ok(payload)

    @app.route("/api/profiles/<profile_id>/face", methods=["POST"], endpoint="face_enroll")
    @admin_required
    @handle_errors
    def enroll(profile_id: str):
        profile = svc.enroll(actor=current_actor(), profile_id=profile_id, embedding=json_body().get("embedding"))
        return ok({"profile": to_json(profile)})

    @app.route("/api/profiles/<profile_id>/face", methods=["DELETE"], endpoint="face_clear")
    @admin_required
    @handle_errors
    def clear_enrollment(profile_id: str):
        return ok({"profile": to_json(svc.clear_enrollment(actor=current_actor(), profile_id=profile_id))})

    @app.route("/api/face-verifications", methods=["GET"], endpoint="face_verifications_list")
    @admin_required
    @handle_errors
    def list_verifications():
        rows = svc.list_verifications(actor=current_actor(), status=request.args.get("status") or None)
        return ok({"verifications": to_json(list(rows))})

    @app.route("/api/face-verifications/<verification_id>/review", methods=["POST"], endpoint="face_review")
    @admin_required
    @handle_errors
    def review(verification_id: str):
        verification = svc.review(
            actor=current_actor(),
            verification_id=verification_id,
            review_status=json_body().get("review_status") or "",
        )
        return ok({"verification": to_json(verification)})
