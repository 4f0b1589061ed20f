from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_viewer, json_body, login_required, query_int
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/locations", methods=["POST"], endpoint="record_location")
    @login_required
    def record_location():
        body = json_body()
        point = container.location_service.record(
            current_viewer(),
            latitude=body.get("latitude"),
            longitude=body.get("longitude"),
            accuracy=body.get("accuracy"),
            status=body.get("status", "active"),
        )
        return jsonify({"location": point}), 201

    @app.route("/api/locations", methods=["GET"], endpoint="location_history")
    @login_required
    def location_history():
        rows = container.location_service.history(
            current_viewer(),
            user_id=query_int("user_id"),
            start_date=request.args.get("start_date"),
            end_date=request.args.get("end_date"),
        )
        return jsonify({"locations": rows})

    @app.route("/api/locations/latest", methods=["GET"], endpoint="latest_locations")
    @login_required
    def latest_locations():
        rows = container.location_service.latest(current_viewer(), user_id=query_int("user_id"))
        return jsonify({"locations": rows})
