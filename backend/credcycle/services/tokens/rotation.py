# credcycle/services/tokens/rotation.py
from __future__ import annotations

import logging
from collections.abc import Callable

from credcycle.core.logger import log_security_event
from credcycle.services._shared.base import BaseService, Clock
from credcycle.services._shared.dto import TokenPairOut
from credcycle.services._shared.errors import InvalidRefreshToken, InvalidToken
from credcycle.services._shared.ports import RefreshRecordStore, TokenKind, TokenSigner
from credcycle.services.tokens.issuer import TokenIssuer

log = logging.getLogger(__name__)


class RefreshRotationService(BaseService):
    """
    Exchange a refresh credential for a new pair, exactly once.

    Steps
    -----
    1. Verify signature, kind and expiry of the presented credential.
    2. Find its store record; the owner must match and the store-side
       expiry must not have passed. A deleted record (logout) revokes the
       credential even while its signature is still valid.
    3. The principal must still be live. A record written for a principal
       that was deleted meanwhile (a login racing account deletion) is
       dropped and rejected.
    4. Sign a new pair and compare-and-swap the record from the presented
       value to the new one. Zero matched rows means a concurrent caller
       already rotated it.

    Every failure surfaces as :class:`InvalidRefreshToken`; the reason is
    only logged.
    """

    def __init__(
        self,
        *,
        signer: TokenSigner,
        refresh_store: RefreshRecordStore,
        issuer: TokenIssuer | None = None,
        principal_is_live: Callable[[int], bool] | None = None,
        clock: Clock | None = None,
    ) -> None:
        """
        :param principal_is_live: Liveness lookup; defaults to a read-only
            query on the principals table.
        """
        super().__init__(clock=clock)
        self.principal_is_live = principal_is_live or self._principal_is_live
        self.signer = signer
        self.refresh_store = refresh_store
        self.issuer = issuer or TokenIssuer(signer=signer, refresh_store=refresh_store)

    def rotate(self, refresh_token: str) -> TokenPairOut:
        """
        :param refresh_token: Encoded refresh credential.
        :returns: New access/refresh pair.
        :raises InvalidRefreshToken: On any verification or store failure.
        """
        try:
            verified = self.signer.verify(refresh_token, TokenKind.REFRESH)
        except InvalidToken as exc:
            raise self._reject(exc.reason) from None

        record = self.refresh_store.find_by_value(refresh_token)
        if record is None or record.principal_id != verified.principal_id:
            raise self._reject("store_mismatch", verified.principal_id)
        if record.is_expired(self.now_utc()):
            raise self._reject("store_expired", verified.principal_id)
        if not self.principal_is_live(verified.principal_id):
            self.refresh_store.delete_all(verified.principal_id)
            raise self._reject("principal_gone", verified.principal_id)

        pair = self.issuer.sign_pair(verified.principal_id)
        swapped = self.refresh_store.cas_update(
            old_value=refresh_token,
            new_value=pair.refresh_token,
            new_expires_at=pair.refresh_expires_at,
        )
        if swapped != 1:
            raise self._reject("cas_lost", verified.principal_id)

        log.info("tokens.rotated", extra={"principal_id": verified.principal_id})
        return pair

    def _principal_is_live(self, principal_id: int) -> bool:
        with self.ro_uow() as uow:
            return uow.principals.get(principal_id) is not None

    def _reject(self, reason: str, principal_id: int | None = None) -> InvalidRefreshToken:
        log_security_event(log, "refresh.rejected", reason=reason, principal_id=principal_id)
        return InvalidRefreshToken(reason)
