"""
PasswordResetService
====================

Single-use password reset:

- ``request_reset`` signs a ``password-reset`` credential and stores its
  record. Unknown emails produce the same answer and no store mutation.
- ``redeem_reset`` consumes the record and replaces the credential hash
  in one transaction. ``used`` is checked independently of expiry, so a
  second redemption fails even inside the time window.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from credcycle.core.logger import log_security_event
from credcycle.services._shared.base import BaseService, Clock
from credcycle.services._shared.errors import (
    InvalidOrExpiredResetToken,
    InvalidToken,
    ValidationError,
)
from credcycle.services._shared.ports import (
    HashProvider,
    ResetRecordStore,
    TokenKind,
    TokenSigner,
)
from credcycle.services.password_reset.dto import (
    RedeemResetIn,
    RequestResetIn,
    ResetIssued,
    ResetRequestedOut,
)

log = logging.getLogger(__name__)

ResetDelivery = Callable[[ResetIssued], None]


def log_reset_delivery(issued: ResetIssued) -> None:
    """Default delivery hook: record that a reset went out, without the token."""
    log.info(
        "password_reset.issued",
        extra={"principal_id": issued.principal_id, "kind": TokenKind.PASSWORD_RESET.value},
    )


class PasswordResetService(BaseService):
    """
    Issue and redeem password-reset credentials.

    :param signer: Signer/Verifier.
    :param reset_store: Store owning reset records.
    :param hasher: Hash Provider for the replacement secret.
    :param deliver: Called after the record is committed.
    :param invalidate_prior: Consume outstanding reset records of the
        principal when a new one is issued.
    """

    def __init__(
        self,
        *,
        signer: TokenSigner,
        reset_store: ResetRecordStore,
        hasher: HashProvider,
        deliver: ResetDelivery | None = None,
        invalidate_prior: bool = True,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(clock=clock)
        self.signer = signer
        self.reset_store = reset_store
        self.hasher = hasher
        self.deliver = deliver or log_reset_delivery
        self.invalidate_prior = invalidate_prior

    def request_reset(self, dto: RequestResetIn) -> ResetRequestedOut:
        """
        :param dto: Reset request.
        :returns: The same :class:`ResetRequestedOut` for every email.
        """
        with self.ro_uow() as uow:
            principal = uow.principals.get_by_email(dto.email)
            target = (principal.id, principal.email) if principal is not None else None

        if target is None:
            log_security_event(
                log, "password_reset.unknown_email", reason="unknown_email", level=logging.INFO
            )
            return ResetRequestedOut()

        principal_id, email = target
        signed = self.signer.sign(principal_id, TokenKind.PASSWORD_RESET)
        self.reset_store.create(
            principal_id=principal_id,
            value=signed.token,
            expires_at=signed.expires_at,
            invalidate_prior=self.invalidate_prior,
        )
        self.deliver(
            ResetIssued(
                principal_id=principal_id,
                email=email,
                token=signed.token,
                expires_at=signed.expires_at,
            )
        )
        return ResetRequestedOut()

    def redeem_reset(self, dto: RedeemResetIn) -> None:
        """
        :param dto: Credential and replacement secret.
        :raises InvalidOrExpiredResetToken: Bad signature or kind, expired,
            already used, or unknown.
        :raises ValidationError: Empty replacement secret.
        """
        if not dto.new_password:
            raise ValidationError("New password must not be empty.")

        try:
            verified = self.signer.verify(dto.token, TokenKind.PASSWORD_RESET)
        except InvalidToken as exc:
            raise self._reject(exc.reason) from None

        redeemed = self.reset_store.redeem(
            value=dto.token,
            principal_id=verified.principal_id,
            credential_hash=self.hasher.hash(dto.new_password),
            now=self.now_utc(),
        )
        if not redeemed:
            raise self._reject("reset_not_redeemable", verified.principal_id)
        log.info("password_reset.redeemed", extra={"principal_id": verified.principal_id})

    def _reject(self, reason: str, principal_id: int | None = None) -> InvalidOrExpiredResetToken:
        log_security_event(log, "password_reset.rejected", reason=reason, principal_id=principal_id)
        return InvalidOrExpiredResetToken(reason)
