"""Refresh record repository: conditional writes used by rotation."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import cast

from sqlalchemy import delete, select, update

from credcycle.models.refresh_record import RefreshRecord
from credcycle.repositories.base import BaseRepository


class RefreshRecordRepository(BaseRepository[RefreshRecord]):
    """Persistence-only repository for :class:`RefreshRecord`."""

    model = RefreshRecord

    def _filterable_fields(self):
        return {
            "principal_id": RefreshRecord.principal_id,
            "token_hash": RefreshRecord.token_hash,
        }

    def get_by_token_hash(self, token_hash: str) -> RefreshRecord | None:
        stmt = select(RefreshRecord).where(RefreshRecord.token_hash == token_hash)
        return cast(RefreshRecord | None, self.session.execute(stmt).scalars().first())

    def list_for_principal(self, principal_id: int) -> Sequence[RefreshRecord]:
        stmt = (
            select(RefreshRecord)
            .where(RefreshRecord.principal_id == principal_id)
            .order_by(RefreshRecord.id)
        )
        return list(self.session.execute(stmt).scalars().all())

    def insert(self, *, principal_id: int, token_hash: str, expires_at: datetime) -> RefreshRecord:
        return self.add(
            RefreshRecord(principal_id=principal_id, token_hash=token_hash, expires_at=expires_at)
        )

    def delete_for_principal(self, principal_id: int) -> int:
        """Delete every record of ``principal_id``. :returns: rows removed."""
        stmt = (
            delete(RefreshRecord)
            .where(RefreshRecord.principal_id == principal_id)
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def compare_and_swap(
        self, *, old_hash: str, new_hash: str, new_expires_at: datetime
    ) -> int:
        """
        Rewrite the record still holding ``old_hash``.

        A single ``UPDATE ... WHERE token_hash = :old_hash``: whichever
        concurrent caller commits first changes the hash, and every later
        caller matches zero rows.

        :returns: Number of rows updated (``0`` or ``1``).
        """
        stmt = (
            update(RefreshRecord)
            .where(RefreshRecord.token_hash == old_hash)
            .values(token_hash=new_hash, expires_at=new_expires_at)
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def purge_expired(self, now: datetime) -> int:
        stmt = (
            delete(RefreshRecord)
            .where(RefreshRecord.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)
