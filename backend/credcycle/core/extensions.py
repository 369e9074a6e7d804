"""Flask extension instances and initialization helpers."""

from __future__ import annotations

import redis  # type: ignore[import-untyped]
from flask import Flask, current_app
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

from credcycle.core.config import ConfigurationError

# Global naming convention for all constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

# Extension objects are unbound until ``init_app``; they hold no connection.
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
jwt = JWTManager()
# Batch mode lets Alembic alter tables on SQLite
migrate = Migrate(render_as_batch=True)

REDIS_EXTENSION_KEY = "credcycle.redis"


def init_app(app: Flask) -> None:
    """Initialize SQLAlchemy, migrations, JWT verification, and the optional Redis client.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. This call imports the
        :mod:`credcycle.models` package so SQLAlchemy metadata is complete
        before ``create_all`` runs.

    Notes
    -----
    ``flask-jwt-extended`` verifies *access* credentials only, so it is bound
    to ``JWT_ACCESS_SECRET``. Refresh and reset credentials never reach it.
    """
    app.config.setdefault("JWT_SECRET_KEY", app.config.get("JWT_ACCESS_SECRET"))
    app.config.setdefault("JWT_ALGORITHM", "HS256")
    app.config.setdefault("JWT_TOKEN_LOCATION", ["headers"])

    db.init_app(app)
    migrate.init_app(app, db)

    # Ensure models are imported so metadata is ready
    from credcycle import models as _models  # noqa: F401

    jwt.init_app(app)

    if str(app.config.get("REFRESH_STORE_BACKEND", "sql")).lower() != "redis":
        app.extensions.pop(REDIS_EXTENSION_KEY, None)
        return

    redis_url = app.config.get("REDIS_URL")
    if not redis_url:
        raise ConfigurationError("REFRESH_STORE_BACKEND=redis requires REDIS_URL.")

    client = redis.Redis.from_url(redis_url)
    try:
        client.ping()
    except RedisError as exc:
        raise ConfigurationError(f"Failed to connect to Redis at {redis_url!r}") from exc
    app.extensions[REDIS_EXTENSION_KEY] = client


def get_redis(app: Flask | None = None) -> redis.Redis:
    """Return the Redis client bound to ``app`` (or the current app)."""
    target = app or current_app
    client = target.extensions.get(REDIS_EXTENSION_KEY)
    if client is None:
        raise RuntimeError("Redis client is not initialized. Call init_app() first.")
    return client
