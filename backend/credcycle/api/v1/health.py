"""Health check endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from credcycle.api.deps import json_response, timing
from credcycle.core.extensions import REDIS_EXTENSION_KEY, db

bp = Blueprint("health", __name__)


@bp.get("/health")
@timing
def healthcheck():
    """Report store connectivity; 503 when any store is unreachable."""

    checks = {"db": "ok"}
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        current_app.logger.exception("healthcheck.db_error")
        checks["db"] = "fail"

    client = current_app.extensions.get(REDIS_EXTENSION_KEY)
    if client is not None:
        checks["redis"] = "ok"
        try:
            client.ping()
        except RedisError:
            current_app.logger.exception("healthcheck.redis_error")
            checks["redis"] = "fail"

    healthy = all(v == "ok" for v in checks.values())
    payload = {
        "status": "ok" if healthy else "degraded",
        **checks,
        "version": current_app.config.get("APP_VERSION", "dev"),
    }
    return json_response(payload, status=200 if healthy else 503)
