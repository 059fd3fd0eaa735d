from __future__ import annotations

from datetime import timedelta

from flask import Flask, request

from ..common.datetime_utils import parse_iso_date, parse_iso_datetime, utc_now
from ..common.http import admin_required, cron_secret_required, current_actor, handle_errors, json_body, login_required, ok
from ..common.serialization import to_json
from ..common.validators import optional_float, optional_str
from ..container import Container
from .model import Location, TimeEntry


def _location(data: dict) -> Location:
    return Location(
        latitude=optional_float(data.get("latitude"), "latitude"),
        longitude=optional_float(data.get("longitude"), "longitude"),
        address=optional_str(data.get("address")),
    )


def register(app: Flask, container: Container) -> None:
    clock = container.timeclock_service
    admin = container.admin_time_service
    photos = container.photo_service

    def entry_json(entry: TimeEntry) -> dict:
        data = to_json(entry)
        data["clock_in_photo_signed_url"] = photos.signed_url(entry.clock_in_photo_url)
        data["clock_out_photo_signed_url"] = photos.signed_url(entry.clock_out_photo_url)
        return data

    @app.route("/api/functions/clock-in-out", methods=["POST"], endpoint="fn_clock_in_out")
    @handle_errors
    def clock_in_out():
        data = json_body()
        entry, message = clock.perform(
            action=data.get("action") or "",
            profile_id=data.get("profile_id") or "",
            company_id=data.get("company_id") or "",
            time_entry_id=data.get("time_entry_id"),
            photo_url=data.get("photo_url") or data.get("photo"),
            location=_location(data),
            project_id=data.get("project_id"),
        )
        return ok({"message": message, "time_entry": to_json(entry)})

    @app.route("/api/functions/check-clock-status", methods=["POST"], endpoint="fn_check_clock_status")
    @handle_errors
    def check_clock_status():
        data = json_body()
        entry = clock.check_status(
            company_id=data.get("company_id") or "",
            profile_id=data.get("profile_id"),
            user_id=data.get("user_id"),
        )
        payload = to_json(entry) if entry else None
        return ok(
            {
                "is_clocked_in": entry is not None,
                "clocked_in": entry is not None,
                "active_entry": payload,
                "time_entry": payload,
            }
        )

    # -------- dashboard --------
    @app.route("/api/time-entries", methods=["GET"], endpoint="time_entries_list")
    @login_required
    @handle_errors
    def list_entries():
        end_day = parse_iso_date(request.args["end"]) if request.args.get("end") else utc_now().date()
        start_day = parse_iso_date(request.args["start"]) if request.args.get("start") else end_day - timedelta(days=6)
        entries = admin.list_entries(
            actor=current_actor(),
            start=parse_iso_datetime(start_day.isoformat()),
            end=parse_iso_datetime((end_day + timedelta(days=1)).isoformat()),
            profile_id=request.args.get("profile_id") or None,
        )
        return ok({"time_entries": [entry_json(e) for e in entries]})

    @app.route("/api/time-entries/open", methods=["GET"], endpoint="time_entries_open")
    @admin_required
    @handle_errors
    def open_entries():
        return ok({"time_entries": [entry_json(e) for e in admin.list_open_entries(actor=current_actor())]})

    @app.route("/api/time-entries/<entry_id>", methods=["PUT", "PATCH"], endpoint="time_entries_edit")
    @admin_required
    @handle_errors
    def edit_entry(entry_id: str):
        data = json_body()
        entry = admin.edit_entry(
            actor=current_actor(),
            time_entry_id=entry_id,
            start_time=data.get("start_time"),
            end_time=data.get("end_time"),
            project_id=data.get("project_id"),
            description=data.get("description"),
            reason=data.get("reason"),
        )
        return ok({"time_entry": entry_json(entry)})

    @app.route("/api/time-entries/<entry_id>", methods=["DELETE"], endpoint="time_entries_delete")
    @admin_required
    @handle_errors
    def delete_entry(entry_id: str):
        admin.delete_entry(actor=current_actor(), time_entry_id=entry_id)
        return ok()

    @app.route("/api/functions/admin-retroactive-clockout", methods=["POST"], endpoint="fn_retroactive_clockout")
    @admin_required
    @handle_errors
    def retroactive_clockout():
        data = json_body()
        entry = admin.retroactive_clockout(
            actor=current_actor(),
            time_entry_id=data.get("time_entry_id") or "",
            new_end_time=data.get("new_end_time") or "",
            reason=data.get("reason"),
        )
        return ok({"message": "Time entry updated", "time_entry": entry_json(entry)})

    @app.route("/api/time-adjustments", methods=["GET"], endpoint="time_adjustments_list")
    @admin_required
    @handle_errors
    def list_adjustments():
        rows = admin.list_adjustments(actor=current_actor(), time_entry_id=request.args.get("time_entry_id") or None)
        return ok({"adjustments": to_json(list(rows))})

    @app.route("/api/functions/auto-close-overtime-shifts", methods=["POST"], endpoint="fn_auto_close_overtime")
    @cron_secret_required
    @handle_errors
    def auto_close_overtime():
        return ok(admin.auto_close_overtime_shifts())
