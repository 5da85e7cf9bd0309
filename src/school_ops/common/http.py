from __future__ import annotations

import logging
from functools import wraps

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..core.enums import Role
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    StateError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Checked in order; the first matching base class decides the status.
STATUS_BY_ERROR = (
    (ValidationError, 422),
    (ConflictError, 409),
    (AuthorizationError, 403),
    (StateError, 409),
    (NotFoundError, 404),
)


def status_for(error: DomainError) -> int:
    for cls, status in STATUS_BY_ERROR:
        if isinstance(error, cls):
            return status
    return 400


def error_response(kind: str, message: str, status: int):
    return jsonify({"error": kind, "message": message}), status


def current_user_id() -> int:
    return int(session["user_id"])


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return error_response("unauthenticated", "Please sign in to continue.", 401)
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: Role):
    """Allow only signed-in users whose session role is one of `roles`."""

    allowed = {r.value for r in roles}

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return error_response("unauthenticated", "Please sign in to continue.", 401)
            if session.get("role") not in allowed:
                return error_response("forbidden", "You do not have access to this resource.", 403)
            return view(*args, **kwargs)

        return wrapper

    return decorator


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        return error_response(e.kind, str(e), status_for(e))

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return error_response(e.name.lower().replace(" ", "_"), e.description, e.code)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.path)
        return error_response("server_error", "An unexpected error occurred.", 500)


def weekday_map_to_dict(grouped) -> dict:
    return {day.value: [d.to_dict() for d in details] for day, details in grouped.items()}
