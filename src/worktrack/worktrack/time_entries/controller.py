from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_viewer, json_body, login_required, query_int
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/time-entries", methods=["GET"], endpoint="list_time_entries")
    @login_required
    def list_time_entries():
        result = container.timer_service.list_entries(
            current_viewer(),
            user_id=query_int("user_id"),
            project_id=query_int("project_id"),
            start_date=request.args.get("start_date"),
            end_date=request.args.get("end_date"),
        )
        return jsonify(result)

    @app.route("/api/time-entries/start", methods=["POST"], endpoint="start_timer")
    @login_required
    def start_timer():
        body = json_body()
        entry = container.timer_service.start(
            current_viewer(),
            project_id=body.get("project_id"),
            task_description=body.get("task_description"),
        )
        return jsonify({"entry": entry}), 201

    @app.route("/api/time-entries/<int:entry_id>/stop", methods=["PUT"], endpoint="stop_timer")
    @login_required
    def stop_timer(entry_id: int):
        return jsonify({"entry": container.timer_service.stop(current_viewer(), entry_id)})

    @app.route("/api/time-entries/active", methods=["GET"], endpoint="active_timer")
    @login_required
    def active_timer():
        return jsonify({"timer": container.timer_service.get_active(current_viewer())})

    @app.route("/api/time-entries/manual", methods=["POST"], endpoint="manual_time_entry")
    @login_required
    def manual_time_entry():
        body = json_body()
        entry = container.timer_service.add_manual(
            current_viewer(),
            project_id=body.get("project_id"),
            task_description=body.get("task_description"),
            entry_date=body.get("entry_date"),
            duration_hours=body.get("duration_hours"),
            duration_minutes=body.get("duration_minutes"),
        )
        return jsonify({"entry": entry}), 201
