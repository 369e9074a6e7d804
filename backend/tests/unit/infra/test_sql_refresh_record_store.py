"""SQL refresh record store: replace, compare-and-swap, revocation, purge."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import func, select

from credcycle.models.refresh_record import RefreshRecord
from credcycle.services._shared.ports import hash_credential
from tests.factories.principal import PrincipalFactory


def _in(hours: float) -> datetime:
    return datetime.now(UTC).replace(microsecond=0) + timedelta(hours=hours)


def _count(session, principal_id: int) -> int:
    stmt = select(func.count()).select_from(RefreshRecord).where(
        RefreshRecord.principal_id == principal_id
    )
    return int(session.execute(stmt).scalar_one())


@pytest.fixture
def principal():
    return PrincipalFactory()


class TestReplace:
    def test_inserts_first_record(self, refresh_store, principal, session):
        refresh_store.replace(principal_id=principal.id, value="rt-1", expires_at=_in(1))

        view = refresh_store.find_by_value("rt-1")
        assert view is not None
        assert view.principal_id == principal.id
        assert _count(session, principal.id) == 1

    def test_keeps_only_the_latest(self, refresh_store, principal, session):
        for i in range(4):
            refresh_store.replace(principal_id=principal.id, value=f"rt-{i}", expires_at=_in(1))

        assert _count(session, principal.id) == 1
        assert refresh_store.find_by_value("rt-0") is None
        assert refresh_store.find_by_value("rt-3") is not None

    def test_does_not_touch_other_principals(self, refresh_store, session):
        a, b = PrincipalFactory(), PrincipalFactory()
        refresh_store.replace(principal_id=a.id, value="rt-a", expires_at=_in(1))
        refresh_store.replace(principal_id=b.id, value="rt-b", expires_at=_in(1))

        assert refresh_store.find_by_value("rt-a") is not None
        assert refresh_store.find_by_value("rt-b") is not None

    def test_stores_digest_not_raw_value(self, refresh_store, principal, session):
        refresh_store.replace(principal_id=principal.id, value="raw-credential", expires_at=_in(1))

        stored = session.execute(
            select(RefreshRecord.token_hash).where(RefreshRecord.principal_id == principal.id)
        ).scalar_one()
        assert stored == hash_credential("raw-credential")
        assert stored != "raw-credential"


class TestCompareAndSwap:
    def test_first_swap_wins_second_matches_nothing(self, refresh_store, principal, session):
        refresh_store.replace(principal_id=principal.id, value="old", expires_at=_in(1))

        first = refresh_store.cas_update(old_value="old", new_value="new-1", new_expires_at=_in(2))
        second = refresh_store.cas_update(old_value="old", new_value="new-2", new_expires_at=_in(2))

        assert (first, second) == (1, 0)
        assert refresh_store.find_by_value("old") is None
        assert refresh_store.find_by_value("new-2") is None
        view = refresh_store.find_by_value("new-1")
        assert view is not None and view.principal_id == principal.id
        assert _count(session, principal.id) == 1

    def test_swap_updates_expiry(self, refresh_store, principal):
        refresh_store.replace(principal_id=principal.id, value="old", expires_at=_in(1))
        refresh_store.cas_update(old_value="old", new_value="new", new_expires_at=_in(5))

        view = refresh_store.find_by_value("new")
        assert view.expires_at > _in(4)

    def test_swap_after_revocation_matches_nothing(self, refresh_store, principal):
        refresh_store.replace(principal_id=principal.id, value="old", expires_at=_in(1))
        refresh_store.delete_all(principal.id)

        assert refresh_store.cas_update(old_value="old", new_value="new", new_expires_at=_in(1)) == 0
        assert refresh_store.find_by_value("new") is None


class TestDeleteAndPurge:
    def test_delete_all_is_idempotent(self, refresh_store, principal):
        refresh_store.replace(principal_id=principal.id, value="rt", expires_at=_in(1))

        assert refresh_store.delete_all(principal.id) == 1
        assert refresh_store.delete_all(principal.id) == 0
        assert refresh_store.list_for_principal(principal.id) == []

    def test_purge_removes_only_expired(self, refresh_store):
        live, stale = PrincipalFactory(), PrincipalFactory()
        refresh_store.replace(principal_id=live.id, value="live", expires_at=_in(1))
        refresh_store.replace(principal_id=stale.id, value="stale", expires_at=_in(-1))

        removed = refresh_store.purge_expired(datetime.now(UTC))

        assert removed == 1
        assert refresh_store.find_by_value("stale") is None
        assert refresh_store.find_by_value("live") is not None
