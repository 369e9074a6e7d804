from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

import redis  # type: ignore[import-untyped]
from redis.exceptions import WatchError  # type: ignore[import-untyped]

from credcycle.services._shared.ports import (
    RefreshRecordStore,
    RefreshRecordView,
    hash_credential,
)

log = logging.getLogger(__name__)


@dataclass(slots=True)
class RedisRefreshRecordStore(RefreshRecordStore):
    """
    Redis-backed refresh record store.

    Layout
    ------
    * ``rr:t:<sha256>``: hash ``{principal_id, expires_at}`` with a key
      expiry at the record's own ``expires_at``.
    * ``rr:p:<principal_id>``: set of token hashes owned by the principal.

    ``replace`` and ``cas_update`` use WATCH/MULTI/EXEC; a concurrent write
    to a watched key aborts the transaction and the loop re-reads.

    :param r: A connected Redis client.
    """

    r: redis.Redis
    prefix: str = "rr"

    # -------------------- helpers --------------------

    def _kt(self, token_hash: str) -> str:
        return f"{self.prefix}:t:{token_hash}"

    def _kp(self, principal_id: int) -> str:
        return f"{self.prefix}:p:{principal_id}"

    @staticmethod
    def _to_ts(dt: datetime) -> int:
        return int(dt.timestamp())

    @staticmethod
    def _s(value: bytes | str | None) -> str:
        if value is None:
            return ""
        return value.decode() if isinstance(value, bytes) else value

    def _read(self, token_hash: str) -> RefreshRecordView | None:
        h = self.r.hgetall(self._kt(token_hash))
        if not h:
            return None
        fields = {self._s(k): self._s(v) for k, v in h.items()}
        return RefreshRecordView(
            token_hash=token_hash,
            principal_id=int(fields["principal_id"]),
            expires_at=datetime.fromtimestamp(int(fields["expires_at"]), UTC),
        )

    def _queue_insert(self, p, *, principal_id: int, token_hash: str, expires_at: datetime) -> None:
        key = self._kt(token_hash)
        p.hset(
            key,
            mapping={
                "principal_id": str(principal_id),
                "expires_at": str(self._to_ts(expires_at)),
            },
        )
        p.expireat(key, self._to_ts(expires_at))
        p.sadd(self._kp(principal_id), token_hash)

    # -------------------- API ------------------------

    def find_by_value(self, value: str) -> RefreshRecordView | None:
        return self._read(hash_credential(value))

    def replace(self, *, principal_id: int, value: str, expires_at: datetime) -> None:
        digest = hash_credential(value)
        k_principal = self._kp(principal_id)
        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(k_principal)
                    owned = [self._s(m) for m in self.r.smembers(k_principal)]
                    p.multi()
                    for member in owned:
                        p.delete(self._kt(member))
                    p.delete(k_principal)
                    self._queue_insert(
                        p, principal_id=principal_id, token_hash=digest, expires_at=expires_at
                    )
                    p.execute()
                    return
            except WatchError:
                log.info(
                    "refresh_record.replace_retry",
                    extra={"principal_id": principal_id, "reason": "watch_conflict"},
                )

    def cas_update(self, *, old_value: str, new_value: str, new_expires_at: datetime) -> int:
        old_hash = hash_credential(old_value)
        new_hash = hash_credential(new_value)
        k_old = self._kt(old_hash)
        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(k_old)
                    current = self._read(old_hash)
                    if current is None:
                        p.unwatch()
                        return 0
                    k_principal = self._kp(current.principal_id)
                    p.multi()
                    p.delete(k_old)
                    p.srem(k_principal, old_hash)
                    self._queue_insert(
                        p,
                        principal_id=current.principal_id,
                        token_hash=new_hash,
                        expires_at=new_expires_at,
                    )
                    p.execute()
                    return 1
            except WatchError:
                # Someone touched the old record; re-read decides.
                continue

    def delete_all(self, principal_id: int) -> int:
        k_principal = self._kp(principal_id)
        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(k_principal)
                    owned = [self._s(m) for m in self.r.smembers(k_principal)]
                    p.multi()
                    for member in owned:
                        p.delete(self._kt(member))
                    p.delete(k_principal)
                    results = p.execute()
                    return int(sum(results[: len(owned)]))
            except WatchError:
                continue

    def list_for_principal(self, principal_id: int) -> Sequence[RefreshRecordView]:
        views = []
        for member in sorted(self._s(m) for m in self.r.smembers(self._kp(principal_id))):
            view = self._read(member)
            if view is not None:
                views.append(view)
        return views

    def purge_expired(self, now: datetime) -> int:
        """
        Drop index entries whose record is gone or past ``now``.

        Redis already evicts record keys at their expiry; this sweeps the
        per-principal sets and any record still visible past ``now``.
        """
        removed = 0
        for k_principal in self.r.scan_iter(match=f"{self.prefix}:p:*"):
            for member in [self._s(m) for m in self.r.smembers(k_principal)]:
                view = self._read(member)
                if view is None or view.is_expired(now):
                    removed += int(self.r.delete(self._kt(member)))
                    self.r.srem(k_principal, member)
        return removed
