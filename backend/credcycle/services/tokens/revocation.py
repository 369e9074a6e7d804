# credcycle/services/tokens/revocation.py
from __future__ import annotations

import logging

from credcycle.services._shared.base import BaseService, Clock
from credcycle.services._shared.errors import NotFoundError
from credcycle.services._shared.ports import RefreshRecordStore

log = logging.getLogger(__name__)


class RevocationManager(BaseService):
    """
    Remove store records so signatures alone no longer grant anything.

    Both operations are idempotent with respect to the refresh store.
    """

    def __init__(
        self,
        *,
        refresh_store: RefreshRecordStore,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(clock=clock)
        self.refresh_store = refresh_store

    def revoke_all(self, principal_id: int) -> int:
        """
        Delete every refresh record of ``principal_id``.

        :returns: Number of records removed (``0`` when none existed).
        """
        removed = self.refresh_store.delete_all(principal_id)
        log.info("tokens.revoked", extra={"principal_id": principal_id, "removed": removed})
        return removed

    def delete_account(self, principal_id: int) -> None:
        """
        Soft-delete the principal and drop its reset records in one
        transaction, then revoke every refresh record.

        The soft delete commits before the revoke. A record written by a
        login racing this call is either removed by the revoke or rejected
        by rotation, which requires a live principal.

        :raises NotFoundError: If the principal does not exist or is deleted.
        """
        with self.ro_uow() as uow:
            if uow.principals.get(principal_id) is None:
                raise NotFoundError("Principal", principal_id)

        with self.rw_uow() as uow:
            principal = uow.principals.get(principal_id)
            if principal is not None:
                uow.reset_records.delete_for_principal(principal_id)
                uow.principals.delete(principal)
        self.revoke_all(principal_id)
        log.info("principal.deleted", extra={"principal_id": principal_id})
