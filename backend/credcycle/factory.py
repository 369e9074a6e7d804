"""Application factory wiring Flask extensions, components and blueprints."""

from __future__ import annotations

from flask import Flask

from credcycle.core.config import BaseConfig, get_config, validate_signing_keys
from credcycle.core.logger import configure_logging, init_app as init_logging
from credcycle.services._shared.base import Clock
from credcycle.services.password_reset.service import ResetDelivery


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    clock: Clock | None = None,
    reset_delivery: ResetDelivery | None = None,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    Startup is all-or-nothing: missing or shared signing keys and an
    unreachable store raise :class:`~credcycle.core.config.ConfigurationError`
    before any route is registered.

    :param config: Config class, object, or import path. Defaults to the
        class selected by ``APP_ENV``.
    :param clock: Optional clock for credential issuance and expiry checks.
    :param reset_delivery: Hook receiving issued reset credentials.
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    validate_signing_keys(app.config)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    from credcycle.core import proxy

    proxy.init_app(app)

    from credcycle.core import extensions

    extensions.init_app(app)

    from credcycle.core import lifecycle

    lifecycle.open_store(app)
    if not app.testing:
        lifecycle.install_shutdown_hooks(
            app, handle_signals=bool(app.config.get("INSTALL_SIGNAL_HANDLERS"))
        )

    init_logging(app)

    from credcycle.core import wiring

    wiring.init_app(app, clock=clock, reset_delivery=reset_delivery)

    from credcycle.core import cors

    cors.init_app(app)

    from credcycle.api import init_app as init_api

    init_api(app)

    from credcycle.core import errors

    errors.init_app(app)

    from credcycle import cli as app_cli

    app_cli.init_app(app)

    return app
