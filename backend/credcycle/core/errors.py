"""Centralized JSON (RFC 7807) error handling for the API."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any, cast
from uuid import uuid4

from flask import Flask, Response, g, jsonify, request
from marshmallow import ValidationError as MarshmallowValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

from credcycle.core.extensions import jwt
from credcycle.services._shared.errors import (
    AuthenticationError,
    ConflictError,
    CredentialError,
    InvalidOrExpiredResetToken,
    InvalidRefreshToken,
    InvalidToken,
    NotFoundError,
    ServiceError,
    ValidationError,
)

log = logging.getLogger(__name__)


def _ensure_request_id() -> str:
    """
    Get or generate a request-scoped correlation identifier.

    :returns: Correlation/request identifier stored in ``g.request_id``.
    """
    if hasattr(g, "request_id"):
        return cast(str, g.request_id)

    hdr = request.headers.get("X-Request-Id") or request.headers.get("X-Correlation-Id")
    req_id = hdr or str(uuid4())
    g.request_id = req_id
    return req_id


def _http_status_to_code(status_code: int) -> str:
    """Map common HTTP status codes to canonical, stable error codes."""
    mapping = {
        400: "bad_request",
        401: "unauthorized",
        403: "forbidden",
        404: "not_found",
        405: "method_not_allowed",
        409: "conflict",
        415: "unsupported_media_type",
        422: "unprocessable_entity",
        429: "too_many_requests",
        500: "internal_server_error",
        503: "service_unavailable",
    }
    return mapping.get(status_code, "error")


def _as_problem(
    *,
    status: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Build an RFC 7807 Problem Details dict.

    :param status: HTTP status code.
    :param code: Stable machine-consumable error code.
    :param message: Human-readable error summary (safe for clients).
    :param details: Optional safe, structured details.
    :returns: Problem+JSON dictionary.
    """
    problem: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": status,
        "detail": message,
        "instance": request.path if request else None,
        "code": code,
    }
    if details:
        problem["details"] = details
    problem["request_id"] = _ensure_request_id()
    return problem


def _problem_response(problem: dict[str, Any]) -> Response:
    """Return a Flask response with ``application/problem+json`` media type."""
    resp = jsonify(problem)
    resp.mimetype = "application/problem+json"
    return resp


class APIError(Exception):
    """
    Represent a JSON-serializable API error.

    :param message: Human-readable description presented to clients.
    :param status_code: HTTP status code to return. Defaults to ``400``.
    :param code: Machine-readable identifier. Defaults to ``"bad_request"``.
    :param details: Optional structured payload included in the response.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        code: str = "bad_request",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code
        self.details = details or {}

    def to_problem(self) -> dict[str, Any]:
        """Serialize error metadata into an RFC 7807 problem."""
        return _as_problem(
            status=self.status_code,
            code=self.code,
            message=self.message,
            details=self.details or None,
        )


# Order matters: subclasses before their bases.
_SERVICE_ERROR_MAP: tuple[tuple[type[ServiceError], HTTPStatus, str], ...] = (
    (AuthenticationError, HTTPStatus.UNAUTHORIZED, "authentication_failed"),
    (InvalidRefreshToken, HTTPStatus.UNAUTHORIZED, "invalid_refresh_token"),
    (InvalidOrExpiredResetToken, HTTPStatus.BAD_REQUEST, "invalid_or_expired_reset_token"),
    (InvalidToken, HTTPStatus.UNAUTHORIZED, "invalid_token"),
    (ConflictError, HTTPStatus.CONFLICT, "conflict"),
    (NotFoundError, HTTPStatus.NOT_FOUND, "not_found"),
    (ValidationError, HTTPStatus.UNPROCESSABLE_ENTITY, "validation_error"),
)


def translate_service_error(exc: ServiceError) -> APIError:
    """
    Map a domain error to its public :class:`APIError`.

    Credential errors are reduced to their constant public message; the
    internal reason never leaves the process.
    """
    for exc_type, status, code in _SERVICE_ERROR_MAP:
        if isinstance(exc, exc_type):
            return APIError(str(exc), status_code=status, code=code)
    return APIError(str(exc), status_code=HTTPStatus.BAD_REQUEST, code="bad_request")


def _access_rejected(reason: str) -> tuple[Response, int]:
    """Build the single 401 shape used for every rejected Bearer credential."""
    problem = _as_problem(
        status=HTTPStatus.UNAUTHORIZED,
        code="invalid_token",
        message=InvalidToken.public_message,
    )
    log.warning(
        "AccessTokenRejected: reason=%s request_id=%s",
        reason,
        problem.get("request_id"),
    )
    return _problem_response(problem), HTTPStatus.UNAUTHORIZED


def init_app(app: Flask) -> None:
    """
    Attach JSON error handlers to the Flask app.

    Notes
    -----
    - Guarantees RFC 7807 responses for all handled errors.
    - Ensures a correlation ``request_id`` is present on every error.
    - Emits 5xx with ``exc_info`` for traceability; 4xx as warnings.
    """

    @app.before_request
    def _seed_request_id() -> None:
        _ensure_request_id()

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        problem = err.to_problem()
        level = log.error if err.status_code >= 500 else log.warning
        level(
            "APIError: code=%s status=%s msg=%s request_id=%s",
            err.code,
            err.status_code,
            err.message,
            problem.get("request_id"),
        )
        return _problem_response(problem), err.status_code

    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        api_err = translate_service_error(err)
        problem = api_err.to_problem()
        # Internal reason goes to the log only
        reason = err.reason if isinstance(err, CredentialError) else None
        log.warning(
            "ServiceError: code=%s status=%s reason=%s request_id=%s",
            api_err.code,
            api_err.status_code,
            reason,
            problem.get("request_id"),
        )
        return _problem_response(problem), api_err.status_code

    @jwt.unauthorized_loader
    def _missing_access_token(reason: str):
        return _access_rejected("missing")

    @jwt.invalid_token_loader
    def _invalid_access_token(reason: str):
        return _access_rejected("invalid")

    @jwt.expired_token_loader
    def _expired_access_token(jwt_header: dict[str, Any], jwt_payload: dict[str, Any]):
        return _access_rejected("expired")

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        error_code = _http_status_to_code(status)
        message = (err.description or error_code.replace("_", " ").capitalize()).strip()
        if status == HTTPStatus.NOT_FOUND and request:
            message = f"Route '{request.path}' not found"
        problem = _as_problem(status=status, code=error_code, message=message)
        level = log.error if status >= 500 else log.warning
        level(
            "HTTPException: code=%s status=%s detail=%s request_id=%s",
            error_code,
            status,
            message,
            problem.get("request_id"),
        )
        return _problem_response(problem), status

    @app.errorhandler(MarshmallowValidationError)
    def handle_validation_error(err: MarshmallowValidationError):
        problem = _as_problem(
            status=HTTPStatus.UNPROCESSABLE_ENTITY,
            code="validation_error",
            message="Validation failed",
            details={"errors": err.messages},
        )
        log.warning("ValidationError: request_id=%s", problem.get("request_id"))
        return _problem_response(problem), HTTPStatus.UNPROCESSABLE_ENTITY

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        # Do not leak raw DB error to clients
        problem = _as_problem(
            status=HTTPStatus.CONFLICT,
            code="conflict",
            message="Resource conflict",
        )
        log.error("IntegrityError: request_id=%s", problem.get("request_id"), exc_info=True)
        return _problem_response(problem), HTTPStatus.CONFLICT

    @app.errorhandler(OperationalError)
    def handle_operational_error(err: OperationalError):
        problem = _as_problem(
            status=HTTPStatus.SERVICE_UNAVAILABLE,
            code="service_unavailable",
            message="Service temporarily unavailable",
        )
        log.error("OperationalError: request_id=%s", problem.get("request_id"), exc_info=True)
        return _problem_response(problem), HTTPStatus.SERVICE_UNAVAILABLE

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        # Unexpected server-side error; never leak internal details
        problem = _as_problem(
            status=HTTPStatus.INTERNAL_SERVER_ERROR,
            code="internal_server_error",
            message="Unexpected error",
        )
        log.error("Unhandled exception: request_id=%s", problem.get("request_id"), exc_info=True)
        return _problem_response(problem), HTTPStatus.INTERNAL_SERVER_ERROR
