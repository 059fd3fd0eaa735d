from __future__ import annotations

import io
from datetime import date
from typing import Optional

from flask import Flask, request, send_file

from ..common.datetime_utils import parse_iso_date
from ..common.http import admin_required, current_actor, handle_errors, ok
from ..common.serialization import to_json
from ..container import Container


def _arg_date(name: str) -> Optional[date]:
    value = request.args.get(name)
    return parse_iso_date(value) if value else None


def _detail_filters() -> dict:
    return {
        "profile_id": request.args.get("profile_id") or None,
        "project_id": request.args.get("project_id") or None,
    }


def register(app: Flask, container: Container) -> None:
    svc = container.report_service

    @app.route("/api/reports/employee-hours", methods=["GET"], endpoint="reports_employee_hours")
    @admin_required
    @handle_errors
    def employee_hours():
        return ok({"rows": svc.employee_hours(actor=current_actor(), start=_arg_date("start"), end=_arg_date("end"))})

    @app.route("/api/reports/project-hours", methods=["GET"], endpoint="reports_project_hours")
    @admin_required
    @handle_errors
    def project_hours():
        return ok({"rows": svc.project_hours(actor=current_actor(), start=_arg_date("start"), end=_arg_date("end"))})

    @app.route("/api/reports/payroll", methods=["GET"], endpoint="reports_payroll")
    @admin_required
    @handle_errors
    def payroll():
        rows = svc.payroll(actor=current_actor(), start=_arg_date("start"), end=_arg_date("end"))
        return ok({"rows": [r.formatted() for r in rows]})

    @app.route("/api/reports/daily-timecard", methods=["GET"], endpoint="reports_daily_timecard")
    @admin_required
    @handle_errors
    def daily_timecard():
        return ok({"rows": to_json(svc.daily_timecard(actor=current_actor(), day=_arg_date("date")))})

    @app.route("/api/reports/time-entries", methods=["GET"], endpoint="reports_time_entries")
    @admin_required
    @handle_errors
    def time_entry_details():
        rows = svc.time_entry_details(
            actor=current_actor(), start=_arg_date("start"), end=_arg_date("end"), **_detail_filters()
        )
        return ok({"rows": rows})

    @app.route("/api/reports/time-entries.csv", methods=["GET"], endpoint="reports_export_csv")
    @admin_required
    @handle_errors
    def export_csv():
        data = svc.export_csv(actor=current_actor(), start=_arg_date("start"), end=_arg_date("end"), **_detail_filters())
        return send_file(io.BytesIO(data), mimetype="text/csv", as_attachment=True, download_name="time_entries.csv")

    @app.route("/api/reports/time-entries.xlsx", methods=["GET"], endpoint="reports_export_excel")
    @admin_required
    @handle_errors
    def export_excel():
        data = svc.export_excel(
            actor=current_actor(), start=_arg_date("start"), end=_arg_date("end"), **_detail_filters()
        )
        return send_file(
            io.BytesIO(data),
            mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            as_attachment=True,
            download_name="time_entries.xlsx",
        )

    @app.route("/api/reports/unclocked-users", methods=["GET"], endpoint="reports_unclocked_users")
    @admin_required
    @handle_errors
    def unclocked_users():
        return ok({"users": to_json(svc.unclocked_users(actor=current_actor(), day=_arg_date("date")))})
