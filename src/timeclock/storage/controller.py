from __future__ import annotations

from flask import Flask, send_file

from ..common.http import admin_required, current_actor, handle_errors, json_body, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/photos/<token>", methods=["GET"], endpoint="photo_get")
    @handle_errors
    def get_photo(token: str):
        return send_file(container.photo_store.resolve(token), mimetype="image/jpeg")

    @app.route("/api/functions/migrate-timeclock-photos", methods=["POST"], endpoint="fn_migrate_photos")
    @admin_required
    @handle_errors
    def migrate_photos():
        result = container.photo_service.migrate_timeclock_photos(
            actor=current_actor(),
            company_id=json_body().get("company_id"),
        )
        return ok(result)
