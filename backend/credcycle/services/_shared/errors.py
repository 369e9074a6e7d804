"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never import Flask or HTTP
helpers. The translation to HTTP responses (RFC 7807) is handled by
``credcycle/core/errors.py``.

Credential failures carry an internal ``reason`` used for logging only.
``str(exc)`` is a constant public message so that callers cannot tell a bad
signature from a revoked record or a lost rotation race.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    :param exc: The exception raised by SQLAlchemy during flush/commit.
    :param constraint_name: Constraint to match (e.g. ``uq_principals_email``).
    :returns: ``True`` if the error message names the constraint.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    return constraint_name.lower() in message


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - The API layer translates them to problem responses.
    """

    pass


class ValidationError(ServiceError):
    """Raised when input has the wrong basic shape (empty secret, bad email)."""


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found in the repository.

    :param entity: Entity name (e.g., "Principal").
    :param key: Identifier or search key.
    """

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "Principal").
    :param detail: Short human-readable explanation.
    """

    entity: str
    detail: str

    def __str__(self) -> str:
        return f"Conflict on {self.entity}: {self.detail}"


# --------------------------------------------------------------------------- #
# Credential errors
# --------------------------------------------------------------------------- #


class CredentialError(ServiceError):
    """
    Base for failures whose public message must not reveal the cause.

    :param reason: Internal reason, logged but never returned to callers.
    """

    public_message = "Invalid credentials"

    def __init__(self, reason: str = "unspecified") -> None:
        super().__init__(self.public_message)
        self.reason = reason

    def __str__(self) -> str:
        return self.public_message


class AuthenticationError(CredentialError):
    """Bad email/secret pair at login."""

    public_message = "Invalid email or password"


class InvalidToken(CredentialError):
    """A credential failed stateless verification."""

    public_message = "Invalid token"


class InvalidSignature(InvalidToken):
    """Tampered, malformed, or signed with an unknown key."""

    def __init__(self, reason: str = "signature") -> None:
        super().__init__(reason)


class WrongKind(InvalidToken):
    """Authentic credential presented where another kind was expected."""

    def __init__(self, reason: str = "wrong_kind") -> None:
        super().__init__(reason)


class Expired(InvalidToken):
    """The verifying clock reached the credential's expiry instant."""

    def __init__(self, reason: str = "expired") -> None:
        super().__init__(reason)


class InvalidRefreshToken(CredentialError):
    """Refresh rejected: bad signature, missing or expired record, or lost race."""

    public_message = "Invalid refresh token"


class InvalidOrExpiredResetToken(CredentialError):
    """Reset rejected: bad signature, expired, already used, or unknown."""

    public_message = "Invalid or expired reset token"
