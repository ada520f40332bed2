"""Unified error response utilities and exception hierarchy for HTTP layer.

This builds atop service_base exceptions but adds HTTP semantics.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from flask import Flask, g, has_request_context, jsonify, make_response, request
from werkzeug.exceptions import HTTPException

HTTP_DEFAULT_STATUS = 500


@dataclass
class AppError(Exception):
    message: str
    http_status: int = 400
    code: Optional[str] = None  # machine readable stable code
    details: Optional[Dict[str, Any]] = None

    def __str__(self):  # pragma: no cover - trivial
        return self.message


class UnauthorizedError(AppError):
    def __init__(self, message: str = "Unauthorized", **kwargs: Any):
        super().__init__(message, http_status=401, **kwargs)


# Translate service_base exceptions by name to avoid an import cycle
SERVICE_EXCEPTION_HTTP_MAP = {
    'NotFoundError': 404,
    'ValidationError': 400,
    'ConflictError': 409,
    'OperationError': 500,
}


def build_error_payload(message: str, *, status: int, error: str | None = None, **extra: Any) -> Dict[str, Any]:
    payload = {
        'status': 'error',
        'status_code': status,
        'message': message,
        'error': error or message,
        'error_id': getattr(g, 'request_id', None) if has_request_context() else None,
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'path': request.path if has_request_context() else None,
    }
    payload.update({k: v for k, v in extra.items() if v is not None})
    return payload


def map_service_exception(exc: Exception) -> int:
    for cls in type(exc).__mro__:
        if cls.__name__ in SERVICE_EXCEPTION_HTTP_MAP:
            return SERVICE_EXCEPTION_HTTP_MAP[cls.__name__]
    return HTTP_DEFAULT_STATUS


def register_error_handlers(app: Flask) -> Flask:
    """Attach request ids and JSON error handlers."""

    @app.before_request
    def _assign_request_id():
        g.request_id = uuid.uuid4().hex

    @app.errorhandler(AppError)
    def _handle_app_error(exc: AppError):
        payload = build_error_payload(exc.message, status=exc.http_status, code=exc.code, details=exc.details)
        return make_response(jsonify(payload), exc.http_status)

    @app.errorhandler(HTTPException)
    def _handle_http_exception(exc: HTTPException):
        status = exc.code or HTTP_DEFAULT_STATUS
        payload = build_error_payload(exc.description or exc.name, status=status, error=exc.name)
        return make_response(jsonify(payload), status)

    @app.errorhandler(Exception)
    def _handle_uncaught(exc: Exception):
        status = map_service_exception(exc)
        if status >= 500:
            app.logger.exception("Unhandled exception: %s", exc)
        payload = build_error_payload(str(exc) or type(exc).__name__, status=status, error=type(exc).__name__)
        return make_response(jsonify(payload), status)

    return app
