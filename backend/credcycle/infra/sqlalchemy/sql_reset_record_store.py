"""Reset record store on the relational database."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from credcycle.models.base import as_utc
from credcycle.services._shared.ports import ResetRecordStore, ResetRecordView, hash_credential
from credcycle.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork


class SQLResetRecordStore(ResetRecordStore):
    """
    :class:`ResetRecordStore` over SQLAlchemy.

    Redemption is one transaction holding two statements: a conditional
    ``UPDATE reset_records SET used = true`` and the principal's
    credential-hash update. The second only runs when the first matched,
    and a failed principal update rolls both back.

    :param uow_factory: Builds a fresh read-write UoW per call.
    """

    def __init__(
        self, uow_factory: Callable[[], SQLAlchemyUnitOfWork] = SQLAlchemyUnitOfWork
    ) -> None:
        self._uow = uow_factory

    def create(
        self,
        *,
        principal_id: int,
        value: str,
        expires_at: datetime,
        invalidate_prior: bool = False,
    ) -> None:
        with self._uow() as uow:
            if invalidate_prior:
                uow.reset_records.consume_outstanding(principal_id)
            uow.reset_records.insert(
                principal_id=principal_id,
                token_hash=hash_credential(value),
                expires_at=expires_at,
            )

    def redeem(
        self,
        *,
        value: str,
        principal_id: int,
        credential_hash: str,
        now: datetime,
    ) -> bool:
        with self._uow() as uow:
            consumed = uow.reset_records.consume(
                token_hash=hash_credential(value), principal_id=principal_id, now=now
            )
            if consumed != 1:
                return False
            if not uow.principals.set_credential_hash(principal_id, credential_hash):
                # Principal gone: undo the consume as well.
                uow.rollback()
                return False
            return True

    def delete_all(self, principal_id: int) -> int:
        with self._uow() as uow:
            return uow.reset_records.delete_for_principal(principal_id)

    def find_by_value(self, value: str) -> ResetRecordView | None:
        with self._uow() as uow:
            row = uow.reset_records.get_by_token_hash(hash_credential(value))
            if row is None:
                return None
            return ResetRecordView(
                token_hash=row.token_hash,
                principal_id=row.principal_id,
                expires_at=as_utc(row.expires_at),
                used=bool(row.used),
            )

    def purge_spent(self, now: datetime) -> int:
        with self._uow() as uow:
            return uow.reset_records.purge_spent(now)
