"""Reset record repository."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import delete, or_, select, update

from credcycle.models.reset_record import ResetRecord
from credcycle.repositories.base import BaseRepository


class ResetRecordRepository(BaseRepository[ResetRecord]):
    """Persistence-only repository for :class:`ResetRecord`."""

    model = ResetRecord

    def _filterable_fields(self):
        return {
            "principal_id": ResetRecord.principal_id,
            "used": ResetRecord.used,
        }

    def get_by_token_hash(self, token_hash: str) -> ResetRecord | None:
        stmt = select(ResetRecord).where(ResetRecord.token_hash == token_hash)
        return cast(ResetRecord | None, self.session.execute(stmt).scalars().first())

    def insert(self, *, principal_id: int, token_hash: str, expires_at: datetime) -> ResetRecord:
        return self.add(
            ResetRecord(
                principal_id=principal_id,
                token_hash=token_hash,
                expires_at=expires_at,
                used=False,
            )
        )

    def consume(self, *, token_hash: str, principal_id: int, now: datetime) -> int:
        """
        Flip ``used`` on a redeemable record.

        Redeemable means: same hash and principal, ``used = false`` and
        ``expires_at > now``. Two concurrent callers cannot both match.

        :returns: Number of rows updated (``0`` or ``1``).
        """
        stmt = (
            update(ResetRecord)
            .where(
                ResetRecord.token_hash == token_hash,
                ResetRecord.principal_id == principal_id,
                ResetRecord.used.is_(False),
                ResetRecord.expires_at > now,
            )
            .values(used=True)
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def consume_outstanding(self, principal_id: int) -> int:
        """Mark every unused record of ``principal_id`` as used."""
        stmt = (
            update(ResetRecord)
            .where(ResetRecord.principal_id == principal_id, ResetRecord.used.is_(False))
            .values(used=True)
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def delete_for_principal(self, principal_id: int) -> int:
        stmt = (
            delete(ResetRecord)
            .where(ResetRecord.principal_id == principal_id)
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def purge_spent(self, now: datetime) -> int:
        """Delete records that can never be redeemed again (used or expired)."""
        stmt = (
            delete(ResetRecord)
            .where(or_(ResetRecord.used.is_(True), ResetRecord.expires_at <= now))
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)
