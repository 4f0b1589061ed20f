from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_viewer, json_body, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/project-access-requests", methods=["GET"], endpoint="list_access_requests")
    @login_required
    def list_access_requests():
        rows = container.access_request_service.list_requests(
            current_viewer(), status=request.args.get("status", "pending")
        )
        return jsonify({"requests": rows})

    @app.route("/api/project-access-requests", methods=["POST"], endpoint="submit_access_request")
    @login_required
    def submit_access_request():
        body = json_body()
        req = container.access_request_service.submit(current_viewer(), project_id=body.get("project_id"))
        return jsonify({"request": req}), 201

    @app.route("/api/project-access-requests/<int:request_id>/approve", methods=["PUT"], endpoint="approve_access_request")
    @login_required
    def approve_access_request(request_id: int):
        req = container.access_request_service.approve(current_viewer(), request_id)
        return jsonify({"request": req, "message": "Access request approved"})

    @app.route("/api/project-access-requests/<int:request_id>/reject", methods=["PUT"], endpoint="reject_access_request")
    @login_required
    def reject_access_request(request_id: int):
        body = json_body()
        req = container.access_request_service.reject(current_viewer(), request_id, reason=body.get("rejection_reason"))
        return jsonify({"request": req, "message": "Access request rejected"})
