"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, jsonify, request
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from marshmallow import Schema

from credcycle.core.wiring import Components, get_components

F = TypeVar("F", bound=Callable[..., Any])


def components() -> Components:
    """Return the credential components of the current application."""

    return get_components()


def load_json(schema: Schema) -> dict[str, Any]:
    """Validate the JSON body; a missing or non-JSON body counts as ``{}``."""

    return schema.load(request.get_json(silent=True) or {})


def require_auth(func: F) -> F:
    """Ensure the request carries a valid access credential."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        verify_jwt_in_request(optional=False)
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def current_principal_id() -> int:
    """Principal id from the verified access credential (``sub``)."""

    return int(get_jwt_identity())


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request.endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
