# credcycle/services/tokens/issuer.py
from __future__ import annotations

import logging

from credcycle.services._shared.dto import TokenPairOut
from credcycle.services._shared.ports import RefreshRecordStore, TokenKind, TokenSigner

log = logging.getLogger(__name__)


class TokenIssuer:
    """
    Mint an access/refresh pair and record the refresh half.

    The store's ``replace`` leaves exactly one refresh record for the
    principal, however many existed before.
    """

    def __init__(self, *, signer: TokenSigner, refresh_store: RefreshRecordStore) -> None:
        self.signer = signer
        self.refresh_store = refresh_store

    def sign_pair(self, principal_id: int) -> TokenPairOut:
        """Sign both credentials without touching the store."""
        access = self.signer.sign(principal_id, TokenKind.ACCESS)
        refresh = self.signer.sign(principal_id, TokenKind.REFRESH)
        return TokenPairOut(
            access_token=access.token,
            refresh_token=refresh.token,
            access_expires_at=access.expires_at,
            refresh_expires_at=refresh.expires_at,
        )

    def issue_pair(self, principal_id: int) -> TokenPairOut:
        """
        Sign a fresh pair and replace the principal's refresh record.

        :param principal_id: Owner of the new pair.
        :returns: The pair; the refresh half is already recorded.
        """
        pair = self.sign_pair(principal_id)
        self.refresh_store.replace(
            principal_id=principal_id,
            value=pair.refresh_token,
            expires_at=pair.refresh_expires_at,
        )
        log.info("tokens.issued", extra={"principal_id": principal_id})
        return pair
