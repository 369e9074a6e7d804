# credcycle/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass

from credcycle.services._shared.dto import PrincipalOut, TokenPairOut

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for registration.

    :param email: Login email (normalized by the model).
    :type email: str
    :param password: Raw secret, hashed before it is stored.
    :type password: str
    :param name: Display name.
    :type name: str
    """

    email: str
    password: str
    name: str


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: Login email.
    :type email: str
    :param password: Raw secret to verify.
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    :param refresh_token: Encoded refresh credential.
    :type refresh_token: str
    """

    refresh_token: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthResultOut:
    """
    Result of register/login: the principal and a fresh pair.

    :param principal: Public projection of the principal.
    :type principal: PrincipalOut
    :param tokens: Access/refresh pair.
    :type tokens: TokenPairOut
    """

    principal: PrincipalOut
    tokens: TokenPairOut
