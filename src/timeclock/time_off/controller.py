from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import admin_required, current_actor, handle_errors, json_body, login_required, ok
from ..common.serialization import to_json
from ..common.validators import require_fields
from ..container import Container


def register(app: Flask, container: Container) -> None:
    svc = container.time_off_service

    @app.route("/api/time-off", methods=["GET"], endpoint="time_off_mine")
    @login_required
    @handle_errors
    def my_requests():
        return ok({"requests": to_json(list(svc.list_mine(actor=current_actor())))})

    @app.route("/api/time-off", methods=["POST"], endpoint="time_off_submit")
    @login_required
    @handle_errors
    def submit():
        data = json_body()
        require_fields(data, ("start_date", "end_date"), message="start_date and end_date are required")
        req = svc.submit(
            actor=current_actor(),
            type=data.get("type") or "",
            start_date=parse_iso_date(data["start_date"]),
            end_date=parse_iso_date(data["end_date"]),
            reason=data.get("reason") or "",
            hours_requested=data.get("hours_requested"),
        )
        return ok({"request": to_json(req)}, 201)

    @app.route("/api/admin/time-off", methods=["GET"], endpoint="time_off_admin_list")
    @admin_required
    @handle_errors
    def admin_list():
        if request.args.get("status") == "pending":
            rows = svc.list_pending(actor=current_actor())
        else:
            rows = svc.list_for_profile(actor=current_actor(), profile_id=request.args.get("profile_id") or None)
        return ok({"requests": to_json(list(rows))})

    @app.route("/api/admin/time-off/<request_id>/approve", methods=["POST"], endpoint="time_off_approve")
    @admin_required
    @handle_errors
    def approve(request_id: str):
        return ok({"request": to_json(svc.approve(actor=current_actor(), request_id=request_id))})

    @app.route("/api/admin/time-off/<request_id>/reject", methods=["POST"], endpoint="time_off_reject")
    @admin_required
    @handle_errors
    def reject(request_id: str):
        return ok({"request": to_json(svc.reject(actor=current_actor(), request_id=request_id))})
