from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Protocol


class TokenKind(str, Enum):
    """Credential kinds; each one is signed with its own key."""

    ACCESS = "access"
    REFRESH = "refresh"
    PASSWORD_RESET = "password-reset"


@dataclass(frozen=True, slots=True)
class SignedToken:
    """
    A freshly minted credential and the claims it binds.

    :ivar token: Encoded credential handed to the client.
    :ivar principal_id: Subject of the credential.
    :ivar kind: Credential kind.
    :ivar issued_at: Issue instant (UTC, whole seconds).
    :ivar expires_at: Expiry instant (UTC, whole seconds).
    :ivar jti: Unique credential identifier.
    """

    token: str
    principal_id: int
    kind: TokenKind
    issued_at: datetime
    expires_at: datetime
    jti: str


@dataclass(frozen=True, slots=True)
class VerifiedToken:
    """Claims of a credential that passed signature, kind and expiry checks."""

    principal_id: int
    kind: TokenKind
    issued_at: datetime
    expires_at: datetime
    jti: str


class TokenSigner(Protocol):
    """
    Stateless Signer/Verifier.

    Implementations never touch a store and are safe to call from any
    number of threads at once.
    """

    def sign(
        self, principal_id: int, kind: TokenKind, ttl: timedelta | None = None
    ) -> SignedToken:
        """Mint a credential of ``kind`` for ``principal_id``."""
        ...

    def verify(self, token: str, expected_kind: TokenKind) -> VerifiedToken:
        """
        Check signature, kind and expiry.

        :raises InvalidSignature: Tampered, malformed, or unknown key.
        :raises WrongKind: Authentic, but not of ``expected_kind``.
        :raises Expired: The clock reached ``expires_at``.
        """
        ...

    def ttl_for(self, kind: TokenKind) -> timedelta: ...
