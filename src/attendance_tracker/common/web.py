"""Shared HTTP plumbing: session guards, the uniform result shape, error mapping."""
from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime
from enum import Enum
from functools import wraps
from typing import Any

from flask import Flask, current_app, g, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    NotLinkedError,
    StorageError,
    UnauthenticatedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

EXTENSION_KEY = "attendance_tracker"

_STATUS_BY_ERROR = (
    (UnauthenticatedError, 401),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotLinkedError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (ValidationError, 422),
    (StorageError, 500),
)


def get_container():
    return current_app.extensions[EXTENSION_KEY]


def to_payload(value: Any) -> Any:
    """Convert domain objects into JSON-ready values (ISO dates, enum values).

    Dataclasses contribute their fields plus any property named in ``payload_properties``.
    """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        names = [f.name for f in dataclasses.fields(value)]
        names.extend(getattr(value, "payload_properties", ()))
        return {name: to_payload(getattr(value, name)) for name in names}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_payload(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_payload(v) for v in value]
    return value


def ok(data: Any = None, status: int = 200):
    return jsonify({"success": True, "data": to_payload(data)}), status


def fail(message: str, status: int):
    return jsonify({"success": False, "error": message}), status


def request_data() -> dict:
    """JSON body, falling back to form fields."""
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        return payload
    return request.form.to_dict()


def current_account_id() -> int:
    if "account_id" not in session:
        raise UnauthenticatedError("Not authenticated")
    return int(session["account_id"])


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        g.account_id = current_account_id()
        g.role = get_container().identity_service.resolve_role(g.account_id)
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        g.account_id = current_account_id()
        g.role = get_container().identity_service.resolve_role(g.account_id)
        if g.role != Role.ADMIN:
            raise AuthorizationError("Admin access required")
        return view(*args, **kwargs)

    return wrapper


def register_error_handlers(app: Flask) -> None:
    def handle_domain_error(e: DomainError):
        for cls, status in _STATUS_BY_ERROR:
            if isinstance(e, cls):
                return fail(str(e), status)
        return fail(str(e), 400)

    def handle_http_error(e: HTTPException):
        return fail(e.description or e.name, e.code or 500)

    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        if app.config.get("DEBUG"):
            return fail(f"Internal server error: {e}", 500)
        return fail("Internal server error", 500)

    app.register_error_handler(DomainError, handle_domain_error)
    app.register_error_handler(HTTPException, handle_http_error)
    app.register_error_handler(Exception, handle_unexpected)
