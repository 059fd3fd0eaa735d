from __future__ import annotations

from flask import Flask, request

from ..common.http import admin_required, cron_secret_required, current_actor, handle_errors, json_body, ok
from ..common.serialization import to_json
from ..container import Container


def register(app: Flask, container: Container) -> None:
    svc = container.scheduled_report_service

    @app.route("/api/scheduled-reports", methods=["GET"], endpoint="scheduled_reports_list")
    @admin_required
    @handle_errors
    def list_reports():
        return ok({"reports": to_json(list(svc.list_reports(actor=current_actor())))})

    @app.route("/api/scheduled-reports", methods=["POST"], endpoint="scheduled_reports_create")
    @admin_required
    @handle_errors
    def create_report():
        return ok({"report": to_json(svc.create_report(actor=current_actor(), data=json_body()))}, 201)

    @app.route("/api/scheduled-reports/<report_id>", methods=["GET"], endpoint="scheduled_reports_get")
    @admin_required
    @handle_errors
    def get_report(report_id: str):
        return ok({"report": to_json(svc.get_report(actor=current_actor(), report_id=report_id))})

    @app.route("/api/scheduled-reports/<report_id>", methods=["PUT", "PATCH"], endpoint="scheduled_reports_update")
    @admin_required
    @handle_errors
    def update_report(report_id: str):
        report = svc.update_report(actor=current_actor(), report_id=report_id, data=json_body())
        return ok({"report": to_json(report)})

    @app.route("/api/scheduled-reports/<report_id>", methods=["DELETE"], endpoint="scheduled_reports_delete")
    @admin_required
    @handle_errors
    def delete_report(report_id: str):
        svc.delete_report(actor=current_actor(), report_id=report_id)
        return ok()

    @app.route("/api/scheduled-reports/<report_id>/recipients", methods=["GET"], endpoint="report_recipients_list")
    @admin_required
    @handle_errors
    def list_recipients(report_id: str):
        rows = svc.list_recipients(actor=current_actor(), report_id=report_id)
        return ok({"recipients": to_json(list(rows))})

    @app.route("/api/scheduled-reports/<report_id>/recipients", methods=["POST"], endpoint="report_recipients_add")
    @admin_required
    @handle_errors
    def add_recipient(report_id: str):
        recipient = svc.add_recipient(actor=current_actor(), report_id=report_id, email=json_body().get("email") or "")
        return ok({"recipient": to_json(recipient)}, 201)

    @app.route(
        "/api/scheduled-reports/<report_id>/recipients/<recipient_id>",
        methods=["DELETE"],
        endpoint="report_recipients_remove",
    )
    @admin_required
    @handle_errors
    def remove_recipient(report_id: str, recipient_id: str):
        svc.remove_recipient(actor=current_actor(), report_id=report_id, recipient_id=recipient_id)
        return ok()

    @app.route("/api/report-executions", methods=["GET"], endpoint="report_executions_list")
    @admin_required
    @handle_errors
    def list_executions():
        rows = svc.list_executions(actor=current_actor(), report_id=request.args.get("report_id") or None)
        return ok({"executions": to_json(list(rows))})

    @app.route("/api/functions/send-test-report", methods=["POST"], endpoint="fn_send_test_report")
    @admin_required
    @handle_errors
    def send_test_report():
        data = json_body()
        result = svc.send_test_report(
            actor=current_actor(),
            report_id=data.get("report_id"),
            data=data.get("report"),
            email=data.get("email"),
            preview_only=bool(data.get("preview_only")),
        )
        return ok(result)

    @app.route("/api/functions/process-scheduled-reports", methods=["POST"], endpoint="fn_process_scheduled_reports")
    @cron_secret_required
    @handle_errors
    def process_scheduled_reports():
        return ok(svc.process_scheduled_reports())
