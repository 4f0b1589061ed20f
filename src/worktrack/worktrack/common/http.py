from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from functools import wraps
from typing import Any, Optional

from flask import Flask, jsonify, request
from flask.json.provider import DefaultJSONProvider
from flask_jwt_extended import JWTManager, get_jwt, get_jwt_identity, verify_jwt_in_request
from werkzeug.exceptions import HTTPException

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    ValidationError,
)
from ..core.viewer import Viewer

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[DomainError], int] = {
    ValidationError: 400,
    AuthenticationError: 401,
    AuthorizationError: 403,
    NotFoundError: 404,
    ConflictError: 409,
}


class ApiJSONProvider(DefaultJSONProvider):
    """ISO dates, enum values, dataclasses and DECIMAL columns in JSON bodies."""

    sort_keys = False

    @staticmethod
    def default(o: Any) -> Any:
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        if isinstance(o, Enum):
            return o.value
        if isinstance(o, Decimal):
            return float(o)
        if dataclasses.is_dataclass(o) and not isinstance(o, type):
            return dataclasses.asdict(o)
        return DefaultJSONProvider.default(o)


def error_response(message: str, status: int):
    return jsonify({"error": message}), status


def register(app: Flask, jwt: JWTManager) -> None:
    """Install JSON encoding, request logging and the error -> status mapping."""

    app.json = ApiJSONProvider(app)

    @app.before_request
    def _log_request():
        logger.info("%s %s", request.method, request.path)

    @app.errorhandler(DomainError)
    def _domain_error(e: DomainError):
        status = next((code for cls, code in STATUS_BY_ERROR.items() if isinstance(e, cls)), 400)
        return error_response(str(e), status)

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        if e.code == 404:
            return error_response("Endpoint not found", 404)
        return error_response(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def _unexpected(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return error_response("Internal server error", 500)

    @jwt.unauthorized_loader
    def _missing_token(reason: str):
        return error_response("Unauthorized", 401)

    @jwt.invalid_token_loader
    def _invalid_token(reason: str):
        return error_response("Invalid token", 401)

    @jwt.expired_token_loader
    def _expired_token(header: dict, payload: dict):
        return error_response("Token expired", 401)


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        return view(*args, **kwargs)

    return wrapper


def current_viewer() -> Viewer:
    """Build the explicit caller context from the verified token."""
    claims = get_jwt()
    try:
        return Viewer(user_id=int(get_jwt_identity()), role=Role(claims.get("role")))
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid token")


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def query_int(name: str) -> Optional[int]:
    value = request.args.get(name)
    if value in (None, ""):
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")
