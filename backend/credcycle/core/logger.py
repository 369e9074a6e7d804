"""JSON logging on stdout with request correlation and credential redaction."""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from flask import Flask, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_HEADERS = (REQUEST_ID_HEADER, "X-Correlation-ID")

# ``extra=`` keys copied onto the JSON payload when present
EXTRA_KEYS = ("endpoint", "elapsed_ms", "principal_id", "reason", "kind", "removed")

# Three base64url segments: the shape of every signed credential we mint
_JWT_RE = re.compile(r"eyJ[\w-]+\.[\w-]+\.[\w-]+")
REDACTED = "[credential]"


def redact(text: str) -> str:
    """Replace anything shaped like a signed credential with a placeholder."""
    return _JWT_RE.sub(REDACTED, text)


class JSONFormatter(logging.Formatter):
    """One JSON object per record; messages pass through :func:`redact`."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": redact(record.getMessage()),
            "request_id": getattr(record, "request_id", None),
        }
        payload.update({k: getattr(record, k) for k in EXTRA_KEYS if hasattr(record, k)})
        if record.exc_info:
            payload["exc_info"] = redact(self.formatException(record.exc_info))
        return json.dumps(payload, default=str)


class RequestIdFilter(logging.Filter):
    """Stamp ``request_id`` on every record (``None`` outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - trivial
        record.request_id = ensure_request_id() if has_request_context() else None
        return True


def ensure_request_id() -> str:
    """Return the request's correlation id, adopting an inbound header if any."""

    if not has_request_context():
        return str(uuid4())
    if not hasattr(g, "request_id"):
        inbound = next(
            (request.headers[h] for h in CORRELATION_HEADERS if request.headers.get(h)), None
        )
        g.request_id = inbound or str(uuid4())
    return g.request_id  # type: ignore[no-any-return]


def configure_logging(level: str | int = "INFO") -> None:
    """Replace root handlers with a single JSON handler on stdout."""

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestIdFilter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)


def log_security_event(
    logger: logging.Logger,
    event: str,
    *,
    reason: str,
    principal_id: int | str | None = None,
    level: int = logging.WARNING,
) -> None:
    """Log a rejected credential with its internal reason.

    The reason stays in the logs only; callers always see the collapsed
    public error. Never pass raw credentials or secrets here.

    :param logger: Module logger emitting the record.
    :param event: Dotted event name, e.g. ``"refresh.rejected"``.
    :param reason: Internal failure reason (``"cas_lost"``, ``"expired"``...).
    :param principal_id: Principal involved, when already known.
    :param level: Logging level, ``WARNING`` by default.
    """
    logger.log(level, event, extra={"reason": reason, "principal_id": principal_id})


def init_app(app: Flask) -> None:
    """Seed the correlation id per request and echo it on the response."""

    app.logger.addFilter(RequestIdFilter())

    @app.before_request
    def _seed_request_id() -> None:  # pragma: no cover - integration glue
        ensure_request_id()

    @app.after_request
    def _echo_request_id(response):  # pragma: no cover - integration glue
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        return response


__all__ = [
    "configure_logging",
    "ensure_request_id",
    "init_app",
    "log_security_event",
    "redact",
]
