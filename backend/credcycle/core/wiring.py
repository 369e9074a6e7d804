"""Explicit construction of the credential components.

Every collaborator is built once per application in :func:`init_app` and
kept in ``app.extensions``; request handlers fetch them through
:func:`get_components`. There is no module-level singleton.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import Flask, current_app

from credcycle.core.config import ConfigurationError
from credcycle.core.extensions import get_redis
from credcycle.infra.jwt.pyjwt_token_signer import PyJWTTokenSigner
from credcycle.infra.redis.redis_refresh_record_store import RedisRefreshRecordStore
from credcycle.infra.security.werkzeug_hash_provider import WerkzeugHashProvider
from credcycle.infra.sqlalchemy.sql_refresh_record_store import SQLRefreshRecordStore
from credcycle.infra.sqlalchemy.sql_reset_record_store import SQLResetRecordStore
from credcycle.services._shared.base import Clock
from credcycle.services._shared.ports import (
    HashProvider,
    RefreshRecordStore,
    ResetRecordStore,
    TokenSigner,
)
from credcycle.services.auth.service import AuthService
from credcycle.services.password_reset.service import PasswordResetService, ResetDelivery
from credcycle.services.tokens import RefreshRotationService, RevocationManager, TokenIssuer

COMPONENTS_KEY = "credcycle.components"


@dataclass(slots=True)
class Components:
    """Collaborators shared by every request of one application."""

    signer: TokenSigner
    hasher: HashProvider
    refresh_store: RefreshRecordStore
    reset_store: ResetRecordStore
    issuer: TokenIssuer
    rotation: RefreshRotationService
    revocation: RevocationManager
    auth: AuthService
    password_reset: PasswordResetService


def _build_refresh_store(app: Flask) -> RefreshRecordStore:
    backend = str(app.config.get("REFRESH_STORE_BACKEND", "sql")).lower()
    if backend == "sql":
        return SQLRefreshRecordStore()
    if backend == "redis":
        return RedisRefreshRecordStore(get_redis(app))
    raise ConfigurationError(f"Unknown REFRESH_STORE_BACKEND: {backend!r}")


def build_components(
    app: Flask,
    *,
    clock: Clock | None = None,
    reset_delivery: ResetDelivery | None = None,
) -> Components:
    """
    Wire signer, stores and services from ``app.config``.

    :param app: Configured application (extensions already initialised).
    :param clock: Optional clock shared by the signer and the services.
    :param reset_delivery: Hook receiving freshly issued reset credentials.
    :raises ConfigurationError: On bad signing keys or an unknown backend.
    """
    cfg = app.config
    signer = PyJWTTokenSigner.from_config(cfg, clock=clock)
    hasher = WerkzeugHashProvider(method=cfg.get("PASSWORD_HASH_METHOD"))
    refresh_store = _build_refresh_store(app)
    reset_store = SQLResetRecordStore()

    issuer = TokenIssuer(signer=signer, refresh_store=refresh_store)
    rotation = RefreshRotationService(
        signer=signer, refresh_store=refresh_store, issuer=issuer, clock=clock
    )
    revocation = RevocationManager(refresh_store=refresh_store, clock=clock)
    auth = AuthService(
        hasher=hasher, issuer=issuer, rotation=rotation, revocation=revocation, clock=clock
    )
    password_reset = PasswordResetService(
        signer=signer,
        reset_store=reset_store,
        hasher=hasher,
        deliver=reset_delivery,
        invalidate_prior=bool(cfg.get("RESET_INVALIDATE_PRIOR", True)),
        clock=clock,
    )
    return Components(
        signer=signer,
        hasher=hasher,
        refresh_store=refresh_store,
        reset_store=reset_store,
        issuer=issuer,
        rotation=rotation,
        revocation=revocation,
        auth=auth,
        password_reset=password_reset,
    )


def init_app(
    app: Flask,
    *,
    clock: Clock | None = None,
    reset_delivery: ResetDelivery | None = None,
) -> Components:
    components = build_components(app, clock=clock, reset_delivery=reset_delivery)
    app.extensions[COMPONENTS_KEY] = components
    return components


def get_components(app: Flask | None = None) -> Components:
    """Return the components of ``app`` (or the current app)."""
    target = app or current_app
    components = target.extensions.get(COMPONENTS_KEY)
    if components is None:
        raise RuntimeError("Components are not initialized. Call wiring.init_app() first.")
    return components
