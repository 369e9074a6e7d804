"""Hash Provider backed by :mod:`werkzeug.security`."""

from __future__ import annotations

from functools import cached_property

from werkzeug.security import check_password_hash, generate_password_hash

from credcycle.services._shared.ports import HashProvider


class WerkzeugHashProvider(HashProvider):
    """
    Salted secret hashing with werkzeug's default method.

    :param method: Forwarded to :func:`generate_password_hash`; ``None``
        keeps werkzeug's default.
    """

    def __init__(self, method: str | None = None) -> None:
        self._method = method

    def hash(self, secret: str) -> str:
        if self._method:
            return generate_password_hash(secret, method=self._method)
        return generate_password_hash(secret)

    def verify(self, secret: str, digest: str) -> bool:
        if not digest:
            return False
        return check_password_hash(digest, secret)

    def burn(self, secret: str) -> None:
        check_password_hash(self._dummy_digest, secret)

    @cached_property
    def _dummy_digest(self) -> str:
        return self.hash("credcycle-dummy-secret")
