from __future__ import annotations

from flask import Flask

from ..common.http import admin_required, current_actor, handle_errors, json_body, login_required, ok
from ..common.serialization import to_json
from ..container import Container


def register(app: Flask, container: Container) -> None:
    svc = container.schedule_service

    @app.route("/api/profiles/<profile_id>/schedule", methods=["GET"], endpoint="schedules_list")
    @login_required
    @handle_errors
    def list_schedule(profile_id: str):
        rows = svc.list_for_profile(actor=current_actor(), profile_id=profile_id)
        return ok({"schedule": to_json(list(rows))})

    @app.route("/api/profiles/<profile_id>/schedule", methods=["PUT"], endpoint="schedules_set_week")
    @admin_required
    @handle_errors
    def set_week(profile_id: str):
        rows = svc.set_week(actor=current_actor(), profile_id=profile_id, days=json_body().get("days") or [])
        return ok({"schedule": to_json(list(rows))})

    @app.route("/api/profiles/<profile_id>/schedule", methods=["POST"], endpoint="schedules_set_day")
    @admin_required
    @handle_errors
    def set_day(profile_id: str):
        data = json_body()
        schedule_id = svc.set_day(
            actor=current_actor(),
            profile_id=profile_id,
            day_of_week=data.get("day_of_week"),
            start_time=data.get("start_time"),
            end_time=data.get("end_time"),
            is_day_off=bool(data.get("is_day_off")),
        )
        return ok({"id": schedule_id})

    @app.route("/api/schedules/<schedule_id>", methods=["DELETE"], endpoint="schedules_delete")
    @admin_required
    @handle_errors
    def delete_schedule(schedule_id: str):
        svc.delete(actor=current_actor(), schedule_id=schedule_id)
        return ok()
