"""Store handle lifecycle: open and verify at startup, dispose on shutdown.

The database engine is created by :mod:`flask_sqlalchemy` inside
:func:`credcycle.core.extensions.init_app`. This module makes its lifecycle
explicit: :func:`open_store` proves the store is reachable before the app
serves a request, and :func:`close_store` releases pooled connections when
the process stops.
"""

from __future__ import annotations

import atexit
import logging
import signal
import sys
from types import FrameType

from flask import Flask
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from credcycle.core.config import ConfigurationError
from credcycle.core.extensions import REDIS_EXTENSION_KEY, db

log = logging.getLogger(__name__)

_SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def open_store(app: Flask) -> None:
    """Ping the database once; an unreachable store aborts startup.

    :param app: Application whose engine is checked.
    :raises ConfigurationError: When ``SELECT 1`` fails.
    """
    with app.app_context():
        try:
            with db.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            raise ConfigurationError("Credential store is unavailable at startup.") from exc
    log.info("store.opened")


def close_store(app: Flask) -> None:
    """Dispose the engine pool and close the Redis client, if any."""
    with app.app_context():
        db.engine.dispose()
    client = app.extensions.get(REDIS_EXTENSION_KEY)
    if client is not None:
        client.close()
    log.info("store.closed")


def install_shutdown_hooks(app: Flask, *, handle_signals: bool = False) -> None:
    """Tie :func:`close_store` to interpreter exit and, optionally, signals.

    :param app: Application whose store must be closed.
    :param handle_signals: Also close on SIGINT/SIGTERM, then exit.
    """
    closed = False

    def _close_once() -> None:
        nonlocal closed
        if closed:
            return
        closed = True
        close_store(app)

    atexit.register(_close_once)

    if not handle_signals:
        return

    def _on_signal(signum: int, frame: FrameType | None) -> None:
        log.info("store.shutdown_signal", extra={"reason": signal.Signals(signum).name})
        _close_once()
        sys.exit(0)

    for sig in _SHUTDOWN_SIGNALS:
        signal.signal(sig, _on_signal)
