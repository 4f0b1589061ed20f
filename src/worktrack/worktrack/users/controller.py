from __future__ import annotations

from flask import Flask, jsonify, request
from flask_jwt_extended import create_access_token

from ..common.http import current_viewer, json_body, login_required
from ..container import Container
from .model import User

_EMPLOYEE_FIELDS = ("email", "password", "full_name", "role", "is_active")


def issue_token(user: User) -> str:
    return create_access_token(
        identity=str(user.user_id),
        additional_claims={"email": user.email, "role": user.role.value, "full_name": user.full_name},
    )


def register(app: Flask, container: Container) -> None:
    # -------- Auth --------
    @app.route("/api/auth/register", methods=["POST"], endpoint="auth_register")
    def auth_register():
        body = json_body()
        user = container.auth_service.register(
            email=body.get("email"),
            password=body.get("password"),
            full_name=body.get("full_name"),
        )
        return jsonify({"user": user.public(), "token": issue_token(user)}), 201

    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    def auth_login():
        body = json_body()
        user = container.auth_service.authenticate(body.get("email") or "", body.get("password") or "")
        return jsonify({"user": user.public(), "token": issue_token(user)})

    @app.route("/api/auth/me", methods=["GET"], endpoint="auth_me")
    @login_required
    def auth_me():
        user = container.auth_service.me(current_viewer())
        return jsonify({"user": user.public()})

    # -------- Employees (admin) --------
    @app.route("/api/employees", methods=["GET"], endpoint="list_employees")
    @login_required
    def list_employees():
        employees = container.employee_service.list_employees(
            current_viewer(),
            status=request.args.get("status", "active"),
            search=request.args.get("search", ""),
        )
        return jsonify({"employees": employees})

    @app.route("/api/employees", methods=["POST"], endpoint="create_employee")
    @login_required
    def create_employee():
        body = json_body()
        user = container.employee_service.create_employee(
            current_viewer(),
            email=body.get("email"),
            password=body.get("password"),
            full_name=body.get("full_name"),
            role=body.get("role", "employee"),
            is_active=body.get("is_active", True),
        )
        return jsonify({"employee": user.public()}), 201

    @app.route("/api/employees/<int:user_id>", methods=["GET"], endpoint="employee_detail")
    @login_required
    def employee_detail(user_id: int):
        detail = container.dashboard_service.employee_detail(current_viewer(), user_id)
        return jsonify({"employee": detail})

    @app.route("/api/employees/<int:user_id>", methods=["PUT"], endpoint="update_employee")
    @login_required
    def update_employee(user_id: int):
        body = json_body()
        changes = {k: body[k] for k in _EMPLOYEE_FIELDS if k in body}
        user = container.employee_service.update_employee(current_viewer(), user_id, **changes)
        return jsonify({"employee": user.public()})

    @app.route("/api/employees/<int:user_id>", methods=["DELETE"], endpoint="archive_employee")
    @login_required
    def archive_employee(user_id: int):
        container.employee_service.archive_employee(current_viewer(), user_id)
        return jsonify({"message": "Employee archived successfully"})
