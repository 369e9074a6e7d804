"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

# Signing keys that must be present, non-blank and pairwise distinct.
SIGNING_KEY_NAMES: Final[tuple[str, ...]] = (
    "JWT_ACCESS_SECRET",
    "JWT_REFRESH_SECRET",
    "JWT_RESET_SECRET",
)

# Load .env during development (no-op when the file is absent)
load_dotenv()


class ConfigurationError(RuntimeError):
    """Raised when the process cannot start with the given configuration."""


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable, falling back to ``default``."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    try:
        return int(val)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {val!r}") from exc


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    JWT_ACCESS_SECRET: str | None
        HMAC key for access credentials. Also handed to ``flask-jwt-extended``
        as ``JWT_SECRET_KEY`` so protected routes verify the same tokens.
    JWT_REFRESH_SECRET: str | None
        HMAC key for refresh credentials.
    JWT_RESET_SECRET: str | None
        HMAC key for password-reset credentials.
    ACCESS_TOKEN_TTL / REFRESH_TOKEN_TTL / RESET_TOKEN_TTL: int
        Credential lifetimes in seconds.
    RESET_INVALIDATE_PRIOR: bool
        When ``True`` a new reset request consumes every outstanding reset
        credential of the same principal.
    REFRESH_STORE_BACKEND: str
        ``"sql"`` (default) or ``"redis"``.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes. Signing keys have no defaults:
    :func:`validate_signing_keys` refuses to start without them.
    """

    API_BASE_PREFIX = "/api"
    APP_VERSION = os.getenv("APP_VERSION", "dev")

    # Signing keys (one per credential kind)
    JWT_ACCESS_SECRET = os.getenv("JWT_ACCESS_SECRET")
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET")
    JWT_RESET_SECRET = os.getenv("JWT_RESET_SECRET")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

    # Lifetimes (seconds)
    ACCESS_TOKEN_TTL = env_int("ACCESS_TOKEN_TTL", 15 * 60)
    REFRESH_TOKEN_TTL = env_int("REFRESH_TOKEN_TTL", 7 * 24 * 60 * 60)
    RESET_TOKEN_TTL = env_int("RESET_TOKEN_TTL", 60 * 60)

    # Reset policy
    RESET_INVALIDATE_PRIOR = env_bool("RESET_INVALIDATE_PRIOR", True)

    # Secret hashing (None keeps werkzeug's default method)
    PASSWORD_HASH_METHOD = os.getenv("PASSWORD_HASH_METHOD") or None

    # Stores
    REFRESH_STORE_BACKEND = os.getenv("REFRESH_STORE_BACKEND", "sql")
    REDIS_URL = os.getenv("REDIS_URL")

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging, CORS, proxy, process lifecycle
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")
    USE_PROXYFIX = env_bool("USE_PROXYFIX", True)
    INSTALL_SIGNAL_HANDLERS = env_bool("INSTALL_SIGNAL_HANDLERS", False)

    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode by default. Signing keys still come from the
    environment (or ``.env``); there is no insecure fallback.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    CORS_MAX_AGE = 600  # 10 minutes


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Ships fixed, distinct signing keys so tests never depend on the shell.
    - Propagates exceptions so pytest can surface tracebacks directly.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    PROPAGATE_EXCEPTIONS = True
    USE_PROXYFIX = False

    JWT_ACCESS_SECRET = "test-access-secret-0123456789abcdef"
    JWT_REFRESH_SECRET = "test-refresh-secret-0123456789abcdef"
    JWT_RESET_SECRET = "test-reset-secret-0123456789abcdef"
    REFRESH_STORE_BACKEND = "sql"
    # Cheap hashing keeps the suite fast
    PASSWORD_HASH_METHOD = "pbkdf2:sha256:1000"


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments."""

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def validate_signing_keys(config: Mapping[str, Any]) -> dict[str, str]:
    """Check that every signing key is configured and unique.

    :param config: Flask config (or any mapping) holding the key names.
    :returns: Mapping of key name to secret.
    :raises ConfigurationError: When a key is missing, blank, or reused.
    """
    keys: dict[str, str] = {}
    for name in SIGNING_KEY_NAMES:
        value = config.get(name)
        if not isinstance(value, str) or not value.strip():
            raise ConfigurationError(f"{name} is not configured.")
        keys[name] = value

    if len(set(keys.values())) != len(keys):
        raise ConfigurationError("Signing keys must differ per credential kind.")
    return keys
