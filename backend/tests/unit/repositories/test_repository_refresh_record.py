"""Unit tests for RefreshRecordRepository conditional writes."""

from datetime import timedelta

import pytest

from credcycle.models.base import utcnow
from credcycle.repositories.refresh_record import RefreshRecordRepository
from tests.factories.principal import PrincipalFactory


class TestRefreshRecordRepository:
    @pytest.fixture()
    def repo(self):
        return RefreshRecordRepository()

    def test_compare_and_swap_matches_once(self, repo, session):
        p = PrincipalFactory()
        exp = utcnow() + timedelta(days=1)
        repo.insert(principal_id=p.id, token_hash="a" * 64, expires_at=exp)

        assert repo.compare_and_swap(old_hash="a" * 64, new_hash="b" * 64, new_expires_at=exp) == 1
        assert repo.compare_and_swap(old_hash="a" * 64, new_hash="c" * 64, new_expires_at=exp) == 0
        session.expire_all()
        assert [r.token_hash for r in repo.list_for_principal(p.id)] == ["b" * 64]

    def test_delete_for_principal_counts_rows(self, repo):
        p = PrincipalFactory()
        exp = utcnow() + timedelta(days=1)
        repo.insert(principal_id=p.id, token_hash="a" * 64, expires_at=exp)

        assert repo.delete_for_principal(p.id) == 1
        assert repo.delete_for_principal(p.id) == 0

    def test_purge_expired_uses_inclusive_boundary(self, repo):
        due, later = PrincipalFactory(), PrincipalFactory()
        now = utcnow()
        repo.insert(principal_id=due.id, token_hash="a" * 64, expires_at=now)
        repo.insert(principal_id=later.id, token_hash="b" * 64, expires_at=now + timedelta(seconds=1))

        assert repo.purge_expired(now) == 1
        assert repo.get_by_token_hash("b" * 64) is not None
