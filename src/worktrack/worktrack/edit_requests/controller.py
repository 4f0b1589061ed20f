from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_viewer, json_body, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/report-edit-requests", methods=["GET"], endpoint="list_edit_requests")
    @login_required
    def list_edit_requests():
        rows = container.edit_request_service.list_requests(current_viewer(), status=request.args.get("status", "all"))
        return jsonify({"requests": rows})

    @app.route("/api/report-edit-requests", methods=["POST"], endpoint="submit_edit_request")
    @login_required
    def submit_edit_request():
        body = json_body()
        req = container.edit_request_service.submit(
            current_viewer(),
            report_id=body.get("report_id"),
            reason=body.get("reason"),
        )
        return jsonify({"request": req}), 201

    @app.route("/api/report-edit-requests/<int:request_id>/approve", methods=["PUT"], endpoint="approve_edit_request")
    @login_required
    def approve_edit_request(request_id: int):
        req = container.edit_request_service.approve(current_viewer(), request_id)
        return jsonify({"request": req, "message": "Edit request approved"})

    @app.route("/api/report-edit-requests/<int:request_id>/reject", methods=["PUT"], endpoint="reject_edit_request")
    @login_required
    def reject_edit_request(request_id: int):
        body = json_body()
        req = container.edit_request_service.reject(current_viewer(), request_id, reason=body.get("rejection_reason"))
        return jsonify({"request": req, "message": "Edit request rejected"})
