from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_viewer, json_body, login_required, query_int
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/reports", methods=["POST"], endpoint="submit_report")
    @login_required
    def submit_report():
        body = json_body()
        report = container.report_service.submit(
            current_viewer(),
            report_date=body.get("report_date"),
            tasks=body.get("tasks_completed"),
            hours_worked=body.get("hours_worked"),
            notes=body.get("notes"),
        )
        return jsonify({"report": report}), 201

    @app.route("/api/reports", methods=["GET"], endpoint="list_reports")
    @login_required
    def list_reports():
        reports = container.report_service.list_reports(
            current_viewer(),
            user_id=query_int("user_id"),
            start_date=request.args.get("start_date"),
            end_date=request.args.get("end_date"),
        )
        return jsonify({"reports": reports})

    @app.route("/api/reports/<int:report_id>", methods=["GET"], endpoint="get_report")
    @login_required
    def get_report(report_id: int):
        return jsonify({"report": container.report_service.get_report(current_viewer(), report_id)})

    @app.route("/api/reports/<int:report_id>", methods=["PUT"], endpoint="edit_report")
    @login_required
    def edit_report(report_id: int):
        body = json_body()
        report = container.report_edit_gate.apply_edit(
            current_viewer(),
            report_id,
            tasks=body.get("tasks_completed"),
            hours_worked=body.get("hours_worked"),
            notes=body.get("notes"),
        )
        return jsonify({"report": report})
