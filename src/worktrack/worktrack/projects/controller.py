from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_viewer, json_body, login_required
from ..container import Container

_PROJECT_FIELDS = ("name", "description", "status")


def register(app: Flask, container: Container) -> None:
    @app.route("/api/projects", methods=["GET"], endpoint="list_projects")
    @login_required
    def list_projects():
        projects = container.project_service.list_projects(current_viewer(), status=request.args.get("status", "active"))
        return jsonify({"projects": projects})

    @app.route("/api/projects/<int:project_id>", methods=["GET"], endpoint="project_detail")
    @login_required
    def project_detail(project_id: int):
        return jsonify({"project": container.project_service.get_project(current_viewer(), project_id)})

    @app.route("/api/projects", methods=["POST"], endpoint="create_project")
    @login_required
    def create_project():
        body = json_body()
        project = container.project_service.create_project(
            current_viewer(),
            name=body.get("name"),
            description=body.get("description"),
            status=body.get("status", "active"),
        )
        return jsonify({"project": project}), 201

    @app.route("/api/projects/<int:project_id>", methods=["PUT"], endpoint="update_project")
    @login_required
    def update_project(project_id: int):
        body = json_body()
        changes = {k: body[k] for k in _PROJECT_FIELDS if k in body}
        project = container.project_service.update_project(current_viewer(), project_id, **changes)
        return jsonify({"project": project})

    @app.route(
        "/api/projects/<int:project_id>/employees/<int:user_id>",
        methods=["DELETE"],
        endpoint="remove_project_employee",
    )
    @login_required
    def remove_project_employee(project_id: int, user_id: int):
        container.project_service.remove_employee(current_viewer(), project_id, user_id)
        return jsonify({"message": "Employee removed from project"})
