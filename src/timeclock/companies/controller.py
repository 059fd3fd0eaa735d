from __future__ import annotations

from flask import Flask, request, session

from ..common.http import admin_required, current_actor, handle_errors, json_body, login_required, ok
from ..common.serialization import to_json
from ..container import Container
from ..core.enums import Role


def register(app: Flask, container: Container) -> None:
    svc = container.company_service

    @app.route("/api/functions/create-company", methods=["POST"], endpoint="fn_create_company")
    @login_required
    @handle_errors
    def create_company():
        company = svc.create_company(actor=current_actor(), email=session.get("email"), fields=json_body())
        # creator becomes the admin of the new company
        user = container.auth_service.refresh(session["account_id"])
        session["company_id"] = company.id
        session["profile_id"] = user.profile_id
        session["role"] = Role.ADMIN.value
        return ok({"company": to_json(company)}, 201)

    @app.route("/api/company", methods=["GET"], endpoint="company_get")
    @login_required
    @handle_errors
    def get_company():
        return ok({"company": to_json(svc.get_company(actor=current_actor()))})

    @app.route("/api/company", methods=["PUT", "PATCH"], endpoint="company_update")
    @admin_required
    @handle_errors
    def update_company():
        return ok({"company": to_json(svc.update_company(actor=current_actor(), fields=json_body()))})

    @app.route("/api/company/features", methods=["GET"], endpoint="company_features")
    @login_required
    @handle_errors
    def get_features():
        actor = current_actor()
        return ok({"features": to_json(svc.get_features(actor.require_company()))})

    @app.route("/api/company/features", methods=["PUT", "PATCH"], endpoint="company_features_update")
    @admin_required
    @handle_errors
    def update_features():
        return ok({"features": to_json(svc.update_features(actor=current_actor(), fields=json_body()))})

    @app.route("/api/kiosk/<company_id>/features", methods=["GET"], endpoint="kiosk_features")
    @handle_errors
    def kiosk_features(company_id: str):
        return ok({"features": to_json(svc.get_features(company_id))})

    # -------- departments --------
    @app.route("/api/departments", methods=["GET"], endpoint="departments_list")
    @login_required
    @handle_errors
    def list_departments():
        include_inactive = request.args.get("include_inactive") in ("1", "true")
        depts = svc.list_departments(actor=current_actor(), include_inactive=include_inactive)
        return ok({"departments": to_json(list(depts))})

    @app.route("/api/departments", methods=["POST"], endpoint="departments_create")
    @admin_required
    @handle_errors
    def create_department():
        data = json_body()
        dept = svc.create_department(actor=current_actor(), name=data.get("name") or "", description=data.get("description"))
        return ok({"department": to_json(dept)}, 201)

    @app.route("/api/departments/<department_id>", methods=["PUT", "PATCH"], endpoint="departments_update")
    @admin_required
    @handle_errors
    def update_department(department_id: str):
        dept = svc.update_department(actor=current_actor(), department_id=department_id, fields=json_body())
        return ok({"department": to_json(dept)})

    @app.route("/api/departments/<department_id>", methods=["DELETE"], endpoint="departments_delete")
    @admin_required
    @handle_errors
    def delete_department(department_id: str):
        svc.delete_department(actor=current_actor(), department_id=department_id)
        return ok()
