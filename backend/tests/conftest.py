"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside a SAVEPOINT-backed transaction against an in-memory
SQLite database so data changes never leak between cases. Services under
test are built with a frozen clock; the HTTP client uses the components
wired by the application factory.
"""

from __future__ import annotations

import os

import pytest
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker

from credcycle.core.config import TestingConfig
from credcycle.core.extensions import db as _db  # Flask-SQLAlchemy instance
from credcycle.factory import create_app  # application factory under test
from credcycle.infra.jwt.pyjwt_token_signer import PyJWTTokenSigner
from credcycle.infra.security.werkzeug_hash_provider import WerkzeugHashProvider
from credcycle.infra.sqlalchemy.sql_refresh_record_store import SQLRefreshRecordStore
from credcycle.infra.sqlalchemy.sql_reset_record_store import SQLResetRecordStore
from credcycle.services.auth.service import AuthService
from credcycle.services.password_reset.service import PasswordResetService
from credcycle.services.tokens import RefreshRotationService, RevocationManager, TokenIssuer
from tests.helpers.clock import FrozenClock

# Reset credentials delivered by the application under test.
RESET_OUTBOX: list = []


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestingConfig` applied; issued
        reset credentials land in :data:`RESET_OUTBOX`.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestingConfig, reset_delivery=RESET_OUTBOX.append)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture(scope="session")
def db(app):
    """Create database tables once per test session.

    Yields
    ------
    flask_sqlalchemy.SQLAlchemy
        Database extension bound to the testing application.
    """
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    """Keep a dedicated DBAPI connection open for the whole session."""
    conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def session(db, connection):
    """Provide a SQLAlchemy session wrapped in a nested transaction.

    Notes
    -----
    Mirrors the SQLAlchemy 2.0 recipe for transactional tests: a top-level
    transaction, a SAVEPOINT per test, and a fresh SAVEPOINT whenever
    SQLAlchemy ends one. Units of work commit into the SAVEPOINT; the
    top-level rollback discards everything.
    """
    top_trans = connection.begin()

    SessionFactory = sessionmaker(bind=connection, future=True)
    scoped = scoped_session(SessionFactory)

    nested = connection.begin_nested()

    @event.listens_for(scoped(), "after_transaction_end")
    def _restart_savepoint(sess, trans):  # pragma: no cover
        if trans.nested and not trans._parent.nested:
            nonlocal nested
            nested = connection.begin_nested()

    # Application code resolves db.session at call time
    original_session = db.session
    db.session.remove()
    db.session = scoped

    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
        top_trans.rollback()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture(autouse=True)
def _factories_session(session):
    """Wire Factory Boy's session helper to the transactional session fixture."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(session)
    yield


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def reset_outbox():
    """Reset credentials delivered during the current test."""
    RESET_OUTBOX.clear()
    yield RESET_OUTBOX
    RESET_OUTBOX.clear()


# -- Services built around a frozen clock --------------------------------------


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def signer(app, clock):
    return PyJWTTokenSigner.from_config(app.config, clock=clock)


@pytest.fixture
def hasher(app):
    return WerkzeugHashProvider(method=app.config["PASSWORD_HASH_METHOD"])


@pytest.fixture
def refresh_store():
    return SQLRefreshRecordStore()


@pytest.fixture
def reset_store():
    return SQLResetRecordStore()


@pytest.fixture
def issuer(signer, refresh_store):
    return TokenIssuer(signer=signer, refresh_store=refresh_store)


@pytest.fixture
def rotation(signer, refresh_store, issuer, clock):
    return RefreshRotationService(
        signer=signer, refresh_store=refresh_store, issuer=issuer, clock=clock
    )


@pytest.fixture
def revocation(refresh_store, clock):
    return RevocationManager(refresh_store=refresh_store, clock=clock)


@pytest.fixture
def auth_service(hasher, issuer, rotation, revocation, clock):
    return AuthService(
        hasher=hasher, issuer=issuer, rotation=rotation, revocation=revocation, clock=clock
    )


@pytest.fixture
def delivered():
    """Collects reset credentials handed to the delivery hook."""
    return []


@pytest.fixture
def reset_service(signer, reset_store, hasher, delivered, clock):
    return PasswordResetService(
        signer=signer,
        reset_store=reset_store,
        hasher=hasher,
        deliver=delivered.append,
        invalidate_prior=True,
        clock=clock,
    )
