"""RFC 7807 problem responses for every failure the API can produce.

Each response body carries the stable ``code`` clients branch on and the
``request_id`` also echoed in the ``X-Request-ID`` header.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any, ClassVar

from flask import Flask, Response, jsonify, request
from flask_limiter.errors import RateLimitExceeded
from marshmallow import ValidationError as MarshmallowValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

from authserver.core.logger import ensure_request_id

log = logging.getLogger(__name__)

PROBLEM_MIMETYPE = "application/problem+json"

#: Machine-readable codes for statuses reached through werkzeug/Flask itself.
STATUS_CODES: dict[int, str] = {
    400: "bad_request",
    401: "unauthorized",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    413: "payload_too_large",
    415: "unsupported_media_type",
    422: "validation_error",
    429: "too_many_requests",
    500: "internal_server_error",
    503: "service_unavailable",
}


def problem_response(
    status: int,
    message: str,
    *,
    code: str | None = None,
    details: dict[str, Any] | None = None,
) -> tuple[Response, int]:
    """
    Render a Problem Details body and log it at a level matching ``status``.

    :param status: HTTP status code.
    :param message: Client-safe summary, returned as ``detail``.
    :param code: Stable error code; derived from ``status`` when omitted.
    :param details: Optional structured context (e.g. field errors).
    :returns: ``(response, status)`` tuple accepted by Flask handlers.
    """
    code = code or STATUS_CODES.get(status, "error")
    body: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": status,
        "detail": message,
        "instance": request.path,
        "code": code,
        "request_id": ensure_request_id(),
    }
    if details:
        body["details"] = details

    level = logging.ERROR if status >= 500 else logging.WARNING
    log.log(level, "problem code=%s status=%s detail=%s", code, status, message)

    resp = jsonify(body)
    resp.mimetype = PROBLEM_MIMETYPE
    return resp, status


class APIError(Exception):
    """
    Base class for errors raised deliberately by views.

    Subclasses pin ``status`` and ``code``; the message is per instance.

    Parameters
    ----------
    message : str
        Human-readable description presented to clients.
    status_code : int, optional
        Overrides the class status for ad hoc errors.
    code : str, optional
        Overrides the class error code.
    details : dict[str, Any] | None, optional
        Optional structured payload included in the response body.
    """

    status: ClassVar[int] = HTTPStatus.BAD_REQUEST
    code: ClassVar[str] = "bad_request"
    default_message: ClassVar[str] = "Bad request"

    def __init__(
        self,
        message: str | None = None,
        status_code: int | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)
        self.status_code = int(status_code or self.status)
        self.error_code = code or self.code
        self.details = details or {}

    def to_response(self) -> tuple[Response, int]:
        return problem_response(
            self.status_code, self.message, code=self.error_code, details=self.details
        )


class Unauthorized(APIError):
    """Missing/invalid bearer credential or rejected login/refresh."""

    status = HTTPStatus.UNAUTHORIZED
    code = "unauthorized"
    default_message = "Unauthorized"


class NotFound(APIError):
    status = HTTPStatus.NOT_FOUND
    code = "not_found"
    default_message = "Resource not found"


class Conflict(APIError):
    """Email or username already taken."""

    status = HTTPStatus.CONFLICT
    code = "conflict"
    default_message = "Conflict"


class UnprocessableEntity(APIError):
    status = HTTPStatus.UNPROCESSABLE_ENTITY
    code = "validation_error"
    default_message = "Validation failed"


def init_app(app: Flask) -> None:
    """
    Attach the problem+json error handlers to ``app``.

    Notes
    -----
    - Database failures never leak driver messages to clients.
    - Unhandled exceptions are logged with their traceback and answered 500.
    """

    @app.errorhandler(APIError)
    def _api_error(err: APIError):
        return err.to_response()

    @app.errorhandler(MarshmallowValidationError)
    def _invalid_payload(err: MarshmallowValidationError):
        return problem_response(
            HTTPStatus.UNPROCESSABLE_ENTITY,
            "Validation failed",
            details={"errors": err.normalized_messages()},
        )

    @app.errorhandler(RateLimitExceeded)
    def _rate_limited(err: RateLimitExceeded):
        return problem_response(
            HTTPStatus.TOO_MANY_REQUESTS,
            "Too many requests, please try again later",
            details={"limit": str(err.description)},
        )

    @app.errorhandler(HTTPException)
    def _http_error(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        if status == HTTPStatus.NOT_FOUND:
            message = f"Route '{request.path}' not found"
        else:
            message = (err.description or HTTPStatus(status).phrase).strip()
        return problem_response(status, message)

    @app.errorhandler(IntegrityError)
    def _integrity_error(err: IntegrityError):
        # Unique races the services did not translate
        log.error("integrity error", exc_info=err)
        return problem_response(HTTPStatus.CONFLICT, "Resource conflict")

    @app.errorhandler(OperationalError)
    def _database_unavailable(err: OperationalError):
        log.error("database unavailable", exc_info=err)
        return problem_response(HTTPStatus.SERVICE_UNAVAILABLE, "Service temporarily unavailable")

    @app.errorhandler(Exception)
    def _unexpected(err: Exception):
        log.error("unhandled exception", exc_info=err)
        return problem_response(HTTPStatus.INTERNAL_SERVER_ERROR, "Unexpected error")
