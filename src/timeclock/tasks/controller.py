from __future__ import annotations

from flask import Flask, request

from ..common.http import admin_required, current_actor, handle_errors, json_body, login_required, ok
from ..common.serialization import to_json
from ..container import Container


def register(app: Flask, container: Container) -> None:
    svc = container.task_service

    @app.route("/api/functions/verify-task", methods=["POST"], endpoint="fn_verify_task")
    @handle_errors
    def verify_task():
        data = json_body()
        task_type = svc.verify_task(task_code=data.get("task_code") or "", company_id=data.get("company_id") or "")
        if task_type is None:
            return ok({"valid": False})
        return ok({"valid": True, "task_type": to_json(task_type)})

    @app.route("/api/functions/record-task-activity", methods=["POST"], endpoint="fn_record_task_activity")
    @handle_errors
    def record_task_activity():
        data = json_body()
        activity = svc.record_task_activity(
            user_id=data.get("user_id") or "",
            profile_id=data.get("profile_id") or "",
            task_id=data.get("task_id") or "",
            company_id=data.get("company_id") or "",
            time_entry_id=data.get("time_entry_id") or "",
            task_type_id=data.get("task_type_id") or "",
            action_type=data.get("action_type") or "",
            project_id=data.get("project_id"),
        )
        if activity is None:
            return ok({"skipped": True, "reason": "No Other task type configured"})
        return ok({"activity": to_json(activity)})

    @app.route(
        "/api/functions/auto-close-tasks-on-shift-end",
        methods=["POST"],
        endpoint="fn_auto_close_tasks",
    )
    @handle_errors
    def auto_close_tasks():
        data = json_body()
        closed = svc.auto_close_tasks_on_shift_end(
            time_entry_id=data.get("time_entry_id") or "",
            user_id=data.get("user_id") or "",
            company_id=data.get("company_id") or "",
        )
        return ok({"closed_tasks": len(closed), "task_ids": closed})

    # -------- dashboard --------
    @app.route("/api/task-activities", methods=["GET"], endpoint="task_activities_recent")
    @login_required
    @handle_errors
    def recent_activity():
        limit = request.args.get("limit", type=int) or 50
        return ok({"activities": to_json(list(svc.recent_activity(actor=current_actor(), limit=limit)))})

    @app.route("/api/task-types", methods=["GET"], endpoint="task_types_list")
    @login_required
    @handle_errors
    def list_task_types():
        include_inactive = request.args.get("include_inactive") in ("1", "true")
        types = svc.list_task_types(actor=current_actor(), include_inactive=include_inactive)
        return ok({"task_types": to_json(list(types))})

    @app.route("/api/task-types", methods=["POST"], endpoint="task_types_create")
    @admin_required
    @handle_errors
    def create_task_type():
        data = json_body()
        task_type = svc.create_task_type(actor=current_actor(), name=data.get("name") or "", code=data.get("code") or "")
        return ok({"task_type": to_json(task_type)}, 201)

    @app.route("/api/task-types/<task_type_id>", methods=["PUT", "PATCH"], endpoint="task_types_update")
    @admin_required
    @handle_errors
    def update_task_type(task_type_id: str):
        task_type = svc.update_task_type(actor=current_actor(), task_type_id=task_type_id, fields=json_body())
        return ok({"task_type": to_json(task_type)})

    @app.route("/api/task-types/<task_type_id>", methods=["DELETE"], endpoint="task_types_delete")
    @admin_required
    @handle_errors
    def delete_task_type(task_type_id: str):
        svc.delete_task_type(actor=current_actor(), task_type_id=task_type_id)
        return ok()
