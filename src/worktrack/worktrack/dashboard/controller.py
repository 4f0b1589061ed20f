from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import current_viewer, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/dashboard/admin", methods=["GET"], endpoint="admin_dashboard")
    @login_required
    def admin_dashboard():
        return jsonify(container.dashboard_service.admin_dashboard(current_viewer()))

    @app.route("/api/dashboard/employee", methods=["GET"], endpoint="employee_dashboard")
    @login_required
    def employee_dashboard():
        return jsonify(container.dashboard_service.employee_dashboard(current_viewer()))
