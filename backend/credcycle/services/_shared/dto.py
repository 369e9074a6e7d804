# comments in English; reST docstrings strict
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Access/refresh credential pair handed to a client.

    :param access_token: Encoded access credential.
    :type access_token: str
    :param refresh_token: Encoded refresh credential.
    :type refresh_token: str
    :param access_expires_at: Expiry instant of the access credential.
    :type access_expires_at: datetime
    :param refresh_expires_at: Expiry instant of the refresh credential.
    :type refresh_expires_at: datetime
    """

    access_token: str
    refresh_token: str
    access_expires_at: datetime
    refresh_expires_at: datetime


@dataclass(frozen=True, slots=True)
class PrincipalOut:
    """
    Public projection of a principal. Never carries the credential hash.

    :param id: Principal identifier.
    :type id: int
    :param email: Normalized email.
    :type email: str
    :param name: Display name.
    :type name: str
    :param created_at: Creation timestamp.
    :type created_at: datetime
    """

    id: int
    email: str
    name: str
    created_at: datetime
