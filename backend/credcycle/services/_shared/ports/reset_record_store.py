from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


@dataclass(frozen=True, slots=True)
class ResetRecordView:
    """
    Read-model for a reset record.

    :ivar token_hash: SHA-256 of the reset credential.
    :ivar principal_id: Owner.
    :ivar expires_at: Store-side expiry (UTC).
    :ivar used: ``True`` once redeemed or invalidated; never flips back.
    """

    token_hash: str
    principal_id: int
    expires_at: datetime
    used: bool


class ResetRecordStore(Protocol):
    """Durable, single-use password-reset records."""

    def create(
        self,
        *,
        principal_id: int,
        value: str,
        expires_at: datetime,
        invalidate_prior: bool = False,
    ) -> None:
        """
        Insert an unused record, optionally consuming the principal's
        outstanding ones in the same transaction.
        """
        ...

    def redeem(
        self,
        *,
        value: str,
        principal_id: int,
        credential_hash: str,
        now: datetime,
    ) -> bool:
        """
        Atomically mark the record used and store the new credential hash.

        Both writes commit together or not at all.

        :returns: ``False`` when no unused, unexpired record matched.
        """
        ...

    def delete_all(self, principal_id: int) -> int: ...

    def find_by_value(self, value: str) -> ResetRecordView | None: ...

    def purge_spent(self, now: datetime) -> int:
        """Delete used or expired records."""
        ...
