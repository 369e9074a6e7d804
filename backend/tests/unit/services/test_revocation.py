import pytest

from credcycle.models.principal import Principal
from credcycle.services._shared.errors import NotFoundError
from credcycle.services.password_reset.dto import RequestResetIn
from credcycle.services.tokens import RevocationManager
from tests.factories.principal import PrincipalFactory


class TestRevocationManager:
    def test_revoke_all_is_idempotent(self, issuer, revocation, refresh_store):
        p = PrincipalFactory()
        issuer.issue_pair(p.id)

        assert revocation.revoke_all(p.id) == 1
        assert revocation.revoke_all(p.id) == 0
        assert refresh_store.list_for_principal(p.id) == []

    def test_revoke_all_leaves_other_principals(self, issuer, revocation, refresh_store):
        a, b = PrincipalFactory(), PrincipalFactory()
        issuer.issue_pair(a.id)
        issuer.issue_pair(b.id)

        revocation.revoke_all(a.id)

        assert len(refresh_store.list_for_principal(b.id)) == 1

    def test_delete_account_cascades(
        self, issuer, revocation, refresh_store, reset_service, reset_store, delivered, session
    ):
        p = PrincipalFactory()
        issuer.issue_pair(p.id)
        reset_service.request_reset(RequestResetIn(email=p.email))

        revocation.delete_account(p.id)

        assert refresh_store.list_for_principal(p.id) == []
        assert reset_store.find_by_value(delivered[0].token) is None
        session.expire_all()
        assert session.get(Principal, p.id).is_deleted

    def test_delete_account_twice_raises_not_found(self, revocation):
        p = PrincipalFactory()
        revocation.delete_account(p.id)

        with pytest.raises(NotFoundError):
            revocation.delete_account(p.id)

    def test_delete_unknown_account_raises_not_found(self, revocation):
        with pytest.raises(NotFoundError):
            revocation.delete_account(999_999)

    def test_delete_account_commits_soft_delete_before_revoking(
        self, issuer, refresh_store, session, clock
    ):
        p = PrincipalFactory()
        issuer.issue_pair(p.id)
        seen = []

        class _Spy:
            def delete_all(self, principal_id):
                session.expire_all()
                seen.append(session.get(Principal, principal_id).is_deleted)
                return refresh_store.delete_all(principal_id)

        RevocationManager(refresh_store=_Spy(), clock=clock).delete_account(p.id)

        assert seen == [True]
        assert refresh_store.list_for_principal(p.id) == []
