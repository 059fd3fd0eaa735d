from __future__ import annotations

from flask import Flask, request

from ..common.http import admin_required, current_actor, handle_errors, json_body, login_required, ok
from ..common.serialization import to_json
from ..container import Container
from ..profiles.controller import uploaded_text


def register(app: Flask, container: Container) -> None:
    svc = container.project_service

    def _include_inactive() -> bool:
        return request.args.get("include_inactive") in ("1", "true")

    # -------- clients --------
    @app.route("/api/clients", methods=["GET"], endpoint="clients_list")
    @login_required
    @handle_errors
    def list_clients():
        clients = svc.list_clients(actor=current_actor(), include_inactive=_include_inactive())
        return ok({"clients": to_json(list(clients))})

    @app.route("/api/clients", methods=["POST"], endpoint="clients_create")
    @admin_required
    @handle_errors
    def create_client():
        return ok({"client": to_json(svc.create_client(actor=current_actor(), fields=json_body()))}, 201)

    @app.route("/api/clients/<client_id>", methods=["PUT", "PATCH"], endpoint="clients_update")
    @admin_required
    @handle_errors
    def update_client(client_id: str):
        client = svc.update_client(actor=current_actor(), client_id=client_id, fields=json_body())
        return ok({"client": to_json(client)})

    @app.route("/api/clients/<client_id>", methods=["DELETE"], endpoint="clients_delete")
    @admin_required
    @handle_errors
    def delete_client(client_id: str):
        svc.delete_client(actor=current_actor(), client_id=client_id)
        return ok()

    @app.route("/api/clients/import", methods=["POST"], endpoint="clients_import")
    @admin_required
    @handle_errors
    def import_clients():
        return ok(to_json(svc.import_clients_csv(actor=current_actor(), content=uploaded_text())))

    # -------- projects --------
    @app.route("/api/projects", methods=["GET"], endpoint="projects_list")
    @login_required
    @handle_errors
    def list_projects():
        projects = svc.list_projects(actor=current_actor(), include_inactive=_include_inactive())
        return ok({"projects": to_json(list(projects))})

    @app.route("/api/projects/<project_id>", methods=["GET"], endpoint="projects_get")
    @login_required
    @handle_errors
    def get_project(project_id: str):
        return ok({"project": to_json(svc.get_project(actor=current_actor(), project_id=project_id))})

    @app.route("/api/projects", methods=["POST"], endpoint="projects_create")
    @admin_required
    @handle_errors
    def create_project():
        return ok({"project": to_json(svc.create_project(actor=current_actor(), fields=json_body()))}, 201)

    @app.route("/api/projects/<project_id>", methods=["PUT", "PATCH"], endpoint="projects_update")
    @admin_required
    @handle_errors
    def update_project(project_id: str):
        project = svc.update_project(actor=current_actor(), project_id=project_id, fields=json_body())
        return ok({"project": to_json(project)})

    @app.route("/api/projects/<project_id>", methods=["DELETE"], endpoint="projects_delete")
    @admin_required
    @handle_errors
    def delete_project(project_id: str):
        svc.delete_project(actor=current_actor(), project_id=project_id)
        return ok()

    @app.route("/api/projects/import", methods=["POST"], endpoint="projects_import")
    @admin_required
    @handle_errors
    def import_projects():
        return ok(to_json(svc.import_projects_csv(actor=current_actor(), content=uploaded_text())))
