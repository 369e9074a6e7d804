# credcycle/services/password_reset/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class RequestResetIn:
    """
    :param email: Address the reset is requested for.
    :type email: str
    """

    email: str


@dataclass(frozen=True, slots=True)
class RedeemResetIn:
    """
    :param token: Encoded password-reset credential.
    :type token: str
    :param new_password: Raw replacement secret.
    :type new_password: str
    """

    token: str
    new_password: str


@dataclass(frozen=True, slots=True)
class ResetRequestedOut:
    """
    Constant-shape answer to a reset request.

    Identical whether or not the email belongs to an account.
    """

    message: str = "If the account exists, a reset link has been sent."


@dataclass(frozen=True, slots=True)
class ResetIssued:
    """Handed to the delivery hook after commit; never returned to callers."""

    principal_id: int
    email: str
    token: str
    expires_at: datetime
