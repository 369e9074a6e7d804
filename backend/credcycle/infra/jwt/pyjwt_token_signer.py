# comments in English; reST docstrings
from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

import jwt

from credcycle.core.config import ConfigurationError, validate_signing_keys
from credcycle.services._shared.errors import Expired, InvalidSignature, WrongKind
from credcycle.services._shared.ports import SignedToken, TokenKind, TokenSigner, VerifiedToken

log = logging.getLogger(__name__)

_REQUIRED_CLAIMS = ["sub", "type", "iat", "exp", "jti"]

# Expiry is compared against the injected clock after decoding.
_DECODE_OPTIONS: dict[str, Any] = {
    "verify_exp": False,
    "verify_iat": False,
    "verify_nbf": False,
    "require": _REQUIRED_CLAIMS,
}

_KEY_BY_KIND: Mapping[TokenKind, str] = {
    TokenKind.ACCESS: "JWT_ACCESS_SECRET",
    TokenKind.REFRESH: "JWT_REFRESH_SECRET",
    TokenKind.PASSWORD_RESET: "JWT_RESET_SECRET",
}

_TTL_BY_KIND: Mapping[TokenKind, str] = {
    TokenKind.ACCESS: "ACCESS_TOKEN_TTL",
    TokenKind.REFRESH: "REFRESH_TOKEN_TTL",
    TokenKind.PASSWORD_RESET: "RESET_TOKEN_TTL",
}


def _utcnow() -> datetime:
    return datetime.now(UTC)


class PyJWTTokenSigner(TokenSigner):
    """
    HMAC Signer/Verifier over PyJWT with one key per credential kind.

    Claims: ``sub`` (principal id as string), ``type`` (kind), ``iat``,
    ``exp`` and a random ``jti``. Access credentials are readable by
    ``flask-jwt-extended`` as long as its ``JWT_SECRET_KEY`` equals the
    access key.

    :param keys: Signing key per kind; must be pairwise distinct.
    :param ttls: Default lifetime per kind.
    :param algorithm: HMAC algorithm name.
    :param clock: Callable returning the current aware UTC instant.
    """

    def __init__(
        self,
        *,
        keys: Mapping[TokenKind, str],
        ttls: Mapping[TokenKind, timedelta],
        algorithm: str = "HS256",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        missing = [k.value for k in TokenKind if not keys.get(k)]
        if missing:
            raise ConfigurationError(f"Missing signing key for: {', '.join(missing)}")
        if len(set(keys.values())) != len(TokenKind):
            raise ConfigurationError("Signing keys must differ per credential kind.")
        self._keys = dict(keys)
        self._ttls = dict(ttls)
        self._algorithm = algorithm
        self._clock = clock or _utcnow

    @classmethod
    def from_config(
        cls,
        config: Mapping[str, Any],
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> PyJWTTokenSigner:
        """Build a signer from Flask config keys. Fails fast on bad keys."""
        secrets = validate_signing_keys(config)
        return cls(
            keys={kind: secrets[name] for kind, name in _KEY_BY_KIND.items()},
            ttls={kind: timedelta(seconds=int(config[name])) for kind, name in _TTL_BY_KIND.items()},
            algorithm=str(config.get("JWT_ALGORITHM", "HS256")),
            clock=clock,
        )

    # ------------------------------- API -------------------------------------

    def ttl_for(self, kind: TokenKind) -> timedelta:
        return self._ttls[kind]

    def sign(
        self, principal_id: int, kind: TokenKind, ttl: timedelta | None = None
    ) -> SignedToken:
        lifetime = ttl if ttl is not None else self._ttls[kind]
        now = self._clock()
        # JWT timestamps are whole seconds; truncating keeps exp <= now + ttl.
        iat = int(now.timestamp())
        exp = int((now + lifetime).timestamp())
        jti = uuid4().hex
        payload = {
            "sub": str(principal_id),
            "type": kind.value,
            "iat": iat,
            "exp": exp,
            "jti": jti,
        }
        token = jwt.encode(payload, self._keys[kind], algorithm=self._algorithm)
        return SignedToken(
            token=token,
            principal_id=principal_id,
            kind=kind,
            issued_at=datetime.fromtimestamp(iat, UTC),
            expires_at=datetime.fromtimestamp(exp, UTC),
            jti=jti,
        )

    def verify(self, token: str, expected_kind: TokenKind) -> VerifiedToken:
        try:
            claims = jwt.decode(
                token,
                self._keys[expected_kind],
                algorithms=[self._algorithm],
                options=_DECODE_OPTIONS,
            )
        except jwt.InvalidSignatureError:
            if self._signed_as_other_kind(token, expected_kind):
                raise WrongKind() from None
            raise InvalidSignature() from None
        except jwt.PyJWTError:
            raise InvalidSignature("malformed") from None

        if claims.get("type") != expected_kind.value:
            raise WrongKind("type_claim")

        try:
            principal_id = int(claims["sub"])
            issued_at = datetime.fromtimestamp(int(claims["iat"]), UTC)
            expires_at = datetime.fromtimestamp(int(claims["exp"]), UTC)
        except (TypeError, ValueError):
            raise InvalidSignature("malformed") from None

        if self._clock() >= expires_at:
            raise Expired()

        return VerifiedToken(
            principal_id=principal_id,
            kind=expected_kind,
            issued_at=issued_at,
            expires_at=expires_at,
            jti=str(claims["jti"]),
        )

    # ----------------------------- helpers -----------------------------------

    def _signed_as_other_kind(self, token: str, expected_kind: TokenKind) -> bool:
        for kind, key in self._keys.items():
            if kind is expected_kind:
                continue
            try:
                jwt.decode(token, key, algorithms=[self._algorithm], options=_DECODE_OPTIONS)
            except jwt.PyJWTError:
                continue
            return True
        return False
