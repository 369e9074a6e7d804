# credcycle/services/auth/service.py
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from credcycle.core.logger import log_security_event
from credcycle.models.base import as_utc
from credcycle.models.principal import Principal
from credcycle.services._shared.base import BaseService, Clock
from credcycle.services._shared.dto import PrincipalOut, TokenPairOut
from credcycle.services._shared.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
    violates,
)
from credcycle.services._shared.ports import HashProvider
from credcycle.services.auth.dto import AuthResultOut, LoginIn, RefreshIn, RegisterIn
from credcycle.services.tokens.issuer import TokenIssuer
from credcycle.services.tokens.revocation import RevocationManager
from credcycle.services.tokens.rotation import RefreshRotationService

log = logging.getLogger(__name__)


def _to_public(principal: Principal) -> PrincipalOut:
    return PrincipalOut(
        id=principal.id,
        email=principal.email,
        name=principal.name,
        created_at=as_utc(principal.created_at),
    )


class AuthService(BaseService):
    """
    Authentication lifecycle: register, login, refresh, logout, account
    lookup and deletion.

    Token mechanics are delegated to :class:`TokenIssuer`,
    :class:`RefreshRotationService` and :class:`RevocationManager`; this
    service only orchestrates them around principal persistence.
    """

    def __init__(
        self,
        *,
        hasher: HashProvider,
        issuer: TokenIssuer,
        rotation: RefreshRotationService,
        revocation: RevocationManager,
        clock: Clock | None = None,
    ) -> None:
        """
        :param hasher: Hash Provider for secrets.
        :param issuer: Mints and records credential pairs.
        :param rotation: Refresh rotation protocol.
        :param revocation: Refresh-record revocation and account deletion.
        """
        super().__init__(clock=clock)
        self.hasher = hasher
        self.issuer = issuer
        self.rotation = rotation
        self.revocation = revocation

    # ------------------------------------------------------------------ #
    # Register
    # ------------------------------------------------------------------ #

    def register(self, dto: RegisterIn) -> AuthResultOut:
        """
        Create a principal and issue its first pair.

        :raises ConflictError: If the email is taken, including by a
            deleted account.
        :raises ValidationError: On empty secret or malformed email/name.
        """
        if not dto.password:
            raise ValidationError("Password must not be empty.")

        digest = self.hasher.hash(dto.password)
        try:
            with self.rw_uow() as uow:
                if uow.principals.exists_by_email(dto.email):
                    raise ConflictError("Principal", "email already registered")
                principal = uow.principals.add(
                    Principal(email=dto.email, name=dto.name, credential_hash=digest)
                )
                public = _to_public(principal)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        except IntegrityError as exc:
            # Lost a race with a concurrent registration of the same email.
            if violates(exc, "uq_principals_email") or violates(exc, "principals.email"):
                raise ConflictError("Principal", "email already registered") from exc
            raise

        tokens = self.issuer.issue_pair(public.id)
        log.info("principal.registered", extra={"principal_id": public.id})
        return AuthResultOut(principal=public, tokens=tokens)

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> AuthResultOut:
        """
        Verify an email/secret pair and issue a fresh pair.

        The previous refresh record of the principal is replaced. Nothing is
        written when verification fails.

        :raises AuthenticationError: Unknown email or wrong secret.
        """
        with self.ro_uow() as uow:
            principal = uow.principals.get_by_email(dto.email)
            if principal is None:
                # Same hashing cost as a real check.
                self.hasher.burn(dto.password)
                raise self._reject("unknown_email")
            if not self.hasher.verify(dto.password, principal.credential_hash):
                raise self._reject("bad_secret", principal.id)
            public = _to_public(principal)

        tokens = self.issuer.issue_pair(public.id)
        log.info("principal.logged_in", extra={"principal_id": public.id})
        return AuthResultOut(principal=public, tokens=tokens)

    # ------------------------------------------------------------------ #
    # Refresh / logout
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> TokenPairOut:
        """:raises InvalidRefreshToken: See :meth:`RefreshRotationService.rotate`."""
        return self.rotation.rotate(dto.refresh_token)

    def logout(self, principal_id: int) -> None:
        """Revoke every refresh record of the principal. Always succeeds."""
        self.revocation.revoke_all(principal_id)

    # ------------------------------------------------------------------ #
    # Account
    # ------------------------------------------------------------------ #

    def me(self, principal_id: int) -> PrincipalOut:
        """:raises NotFoundError: If the principal is missing or deleted."""
        with self.ro_uow() as uow:
            principal = uow.principals.get(principal_id)
            if principal is None:
                raise NotFoundError("Principal", principal_id)
            return _to_public(principal)

    def delete_account(self, principal_id: int) -> None:
        self.revocation.delete_account(principal_id)

    def _reject(self, reason: str, principal_id: int | None = None) -> AuthenticationError:
        log_security_event(log, "login.rejected", reason=reason, principal_id=principal_id)
        return AuthenticationError(reason)
