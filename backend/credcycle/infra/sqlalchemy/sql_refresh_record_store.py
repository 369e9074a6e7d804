"""Refresh record store on the relational database."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from credcycle.models.base import as_utc
from credcycle.models.refresh_record import RefreshRecord
from credcycle.services._shared.ports import (
    RefreshRecordStore,
    RefreshRecordView,
    hash_credential,
)
from credcycle.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork

log = logging.getLogger(__name__)


def _view(row: RefreshRecord) -> RefreshRecordView:
    return RefreshRecordView(
        token_hash=row.token_hash,
        principal_id=row.principal_id,
        expires_at=as_utc(row.expires_at),
    )


class SQLRefreshRecordStore(RefreshRecordStore):
    """
    :class:`RefreshRecordStore` over SQLAlchemy.

    Every method runs in its own read-write Unit of Work. ``replace`` is a
    delete-then-insert in one transaction; two concurrent replaces for the
    same principal collide on ``uq_refresh_records_principal_id`` and the
    loser retries.

    :param uow_factory: Builds a fresh read-write UoW per call.
    :param max_attempts: Attempts for ``replace`` under unique-key collisions.
    """

    def __init__(
        self,
        uow_factory: Callable[[], SQLAlchemyUnitOfWork] = SQLAlchemyUnitOfWork,
        *,
        max_attempts: int = 3,
    ) -> None:
        self._uow = uow_factory
        self._max_attempts = max(1, max_attempts)

    def find_by_value(self, value: str) -> RefreshRecordView | None:
        with self._uow() as uow:
            row = uow.refresh_records.get_by_token_hash(hash_credential(value))
            return _view(row) if row is not None else None

    def replace(self, *, principal_id: int, value: str, expires_at: datetime) -> None:
        digest = hash_credential(value)
        for attempt in range(1, self._max_attempts + 1):
            try:
                with self._uow() as uow:
                    uow.refresh_records.delete_for_principal(principal_id)
                    uow.refresh_records.insert(
                        principal_id=principal_id, token_hash=digest, expires_at=expires_at
                    )
                return
            except IntegrityError:
                if attempt == self._max_attempts:
                    raise
                log.info(
                    "refresh_record.replace_retry",
                    extra={"principal_id": principal_id, "reason": "unique_collision"},
                )

    def cas_update(self, *, old_value: str, new_value: str, new_expires_at: datetime) -> int:
        with self._uow() as uow:
            return uow.refresh_records.compare_and_swap(
                old_hash=hash_credential(old_value),
                new_hash=hash_credential(new_value),
                new_expires_at=new_expires_at,
            )

    def delete_all(self, principal_id: int) -> int:
        with self._uow() as uow:
            return uow.refresh_records.delete_for_principal(principal_id)

    def list_for_principal(self, principal_id: int) -> Sequence[RefreshRecordView]:
        with self._uow() as uow:
            return [_view(r) for r in uow.refresh_records.list_for_principal(principal_id)]

    def purge_expired(self, now: datetime) -> int:
        with self._uow() as uow:
            return uow.refresh_records.purge_expired(now)
