from __future__ import annotations

import hashlib
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


def hash_credential(value: str) -> str:
    """
    Digest stored in place of a raw credential.

    :param value: Encoded credential.
    :returns: Lowercase SHA-256 hex digest (64 chars).
    """
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


@dataclass(frozen=True, slots=True)
class RefreshRecordView:
    """
    Read-model for a refresh record.

    :ivar token_hash: SHA-256 of the refresh credential.
    :ivar principal_id: Owner.
    :ivar expires_at: Store-side expiry (UTC).
    """

    token_hash: str
    principal_id: int
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class RefreshRecordStore(Protocol):
    """
    Durable refresh records, at most one per principal.

    Methods take raw credential values; hashing is the store's job.
    ``replace`` and ``cas_update`` MUST be atomic with respect to every
    process sharing the store.
    """

    def find_by_value(self, value: str) -> RefreshRecordView | None:
        """Return the record holding ``value`` (expired or not)."""
        ...

    def replace(self, *, principal_id: int, value: str, expires_at: datetime) -> None:
        """Delete every record of the principal and insert the new one."""
        ...

    def cas_update(self, *, old_value: str, new_value: str, new_expires_at: datetime) -> int:
        """
        Rewrite the record still holding ``old_value``.

        :returns: ``1`` when this caller won, ``0`` when no record matched.
        """
        ...

    def delete_all(self, principal_id: int) -> int:
        """Delete the principal's records. Idempotent. :returns: rows removed."""
        ...

    def list_for_principal(self, principal_id: int) -> Sequence[RefreshRecordView]: ...

    def purge_expired(self, now: datetime) -> int:
        """Delete records whose store-side expiry has passed."""
        ...


class InMemoryRefreshRecordStore(RefreshRecordStore):
    """
    Process-local refresh record store.

    .. note::
       A single lock makes each method atomic, which is enough to exercise
       the rotation protocol's race handling in unit tests.
    """

    def __init__(self) -> None:
        self._by_hash: dict[str, RefreshRecordView] = {}
        self._lock = threading.Lock()

    def find_by_value(self, value: str) -> RefreshRecordView | None:
        with self._lock:
            return self._by_hash.get(hash_credential(value))

    def replace(self, *, principal_id: int, value: str, expires_at: datetime) -> None:
        with self._lock:
            self._drop_principal(principal_id)
            digest = hash_credential(value)
            self._by_hash[digest] = RefreshRecordView(
                token_hash=digest, principal_id=principal_id, expires_at=expires_at
            )

    def cas_update(self, *, old_value: str, new_value: str, new_expires_at: datetime) -> int:
        with self._lock:
            current = self._by_hash.pop(hash_credential(old_value), None)
            if current is None:
                return 0
            digest = hash_credential(new_value)
            self._by_hash[digest] = RefreshRecordView(
                token_hash=digest,
                principal_id=current.principal_id,
                expires_at=new_expires_at,
            )
            return 1

    def delete_all(self, principal_id: int) -> int:
        with self._lock:
            return self._drop_principal(principal_id)

    def list_for_principal(self, principal_id: int) -> Sequence[RefreshRecordView]:
        with self._lock:
            return [v for v in self._by_hash.values() if v.principal_id == principal_id]

    def purge_expired(self, now: datetime) -> int:
        with self._lock:
            stale = [h for h, v in self._by_hash.items() if v.is_expired(now)]
            for h in stale:
                del self._by_hash[h]
            return len(stale)

    # Caller holds the lock.
    def _drop_principal(self, principal_id: int) -> int:
        owned = [h for h, v in self._by_hash.items() if v.principal_id == principal_id]
        for h in owned:
            del self._by_hash[h]
        return len(owned)
