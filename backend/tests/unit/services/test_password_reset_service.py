"""PasswordResetService: constant-shape requests and single-use redemption."""

import pytest
from sqlalchemy import func, select

from credcycle.models.reset_record import ResetRecord
from credcycle.services._shared.errors import (
    AuthenticationError,
    InvalidOrExpiredResetToken,
    ValidationError,
)
from credcycle.services.auth.dto import LoginIn
from credcycle.services.password_reset.dto import RedeemResetIn, RequestResetIn
from credcycle.services.password_reset.service import PasswordResetService
from tests.factories.principal import PrincipalFactory
from tests.helpers.http import DEFAULT_PASSWORD


def _reset_rows(session) -> int:
    return session.execute(select(func.count()).select_from(ResetRecord)).scalar_one()


class TestRequestReset:
    def test_known_email_delivers_credential(self, reset_service, reset_store, delivered):
        p = PrincipalFactory()

        reset_service.request_reset(RequestResetIn(email=p.email))

        [issued] = delivered
        assert issued.principal_id == p.id
        assert issued.email == p.email
        record = reset_store.find_by_value(issued.token)
        assert record is not None
        assert record.used is False

    def test_unknown_email_gets_identical_answer(self, reset_service, delivered, session):
        p = PrincipalFactory()

        known = reset_service.request_reset(RequestResetIn(email=p.email))
        rows_after_known = _reset_rows(session)
        unknown = reset_service.request_reset(RequestResetIn(email="nobody@example.com"))

        assert unknown == known
        assert len(delivered) == 1
        assert _reset_rows(session) == rows_after_known

    def test_deleted_account_is_treated_as_unknown(self, reset_service, revocation, delivered):
        p = PrincipalFactory()
        revocation.delete_account(p.id)

        reset_service.request_reset(RequestResetIn(email=p.email))

        assert delivered == []

    def test_new_request_invalidates_prior_credential(self, reset_service, delivered):
        p = PrincipalFactory()
        reset_service.request_reset(RequestResetIn(email=p.email))
        reset_service.request_reset(RequestResetIn(email=p.email))
        first, second = delivered

        with pytest.raises(InvalidOrExpiredResetToken):
            reset_service.redeem_reset(RedeemResetIn(token=first.token, new_password="one-new-secret"))
        reset_service.redeem_reset(RedeemResetIn(token=second.token, new_password="two-new-secret"))

    def test_prior_credentials_survive_when_policy_disabled(
        self, signer, reset_store, hasher, clock
    ):
        delivered = []
        service = PasswordResetService(
            signer=signer,
            reset_store=reset_store,
            hasher=hasher,
            deliver=delivered.append,
            invalidate_prior=False,
            clock=clock,
        )
        p = PrincipalFactory()
        service.request_reset(RequestResetIn(email=p.email))
        service.request_reset(RequestResetIn(email=p.email))

        assert all(reset_store.find_by_value(i.token).used is False for i in delivered)


class TestRedeemReset:
    @pytest.fixture()
    def issued(self, reset_service, delivered):
        p = PrincipalFactory()
        reset_service.request_reset(RequestResetIn(email=p.email))
        return delivered[0]

    def test_redeem_replaces_password(self, reset_service, auth_service, issued):
        reset_service.redeem_reset(RedeemResetIn(token=issued.token, new_password="brand-new-secret"))

        result = auth_service.login(LoginIn(email=issued.email, password="brand-new-secret"))
        assert result.principal.id == issued.principal_id
        with pytest.raises(AuthenticationError):
            auth_service.login(LoginIn(email=issued.email, password=DEFAULT_PASSWORD))

    def test_second_redeem_fails(self, reset_service, issued):
        reset_service.redeem_reset(RedeemResetIn(token=issued.token, new_password="first-secret"))

        with pytest.raises(InvalidOrExpiredResetToken) as exc:
            reset_service.redeem_reset(RedeemResetIn(token=issued.token, new_password="second-secret"))
        assert exc.value.reason == "reset_not_redeemable"

    def test_expired_credential_fails(self, app, reset_service, issued, clock):
        clock.advance(seconds=app.config["RESET_TOKEN_TTL"])

        with pytest.raises(InvalidOrExpiredResetToken) as exc:
            reset_service.redeem_reset(RedeemResetIn(token=issued.token, new_password="late-secret"))
        assert exc.value.reason == "expired"

    def test_access_token_is_not_a_reset_credential(self, reset_service, issuer, issued):
        pair = issuer.issue_pair(issued.principal_id)

        with pytest.raises(InvalidOrExpiredResetToken) as exc:
            reset_service.redeem_reset(RedeemResetIn(token=pair.access_token, new_password="x-secret"))
        assert exc.value.reason == "wrong_kind"

    def test_empty_password_is_rejected(self, reset_service, reset_store, issued):
        with pytest.raises(ValidationError):
            reset_service.redeem_reset(RedeemResetIn(token=issued.token, new_password=""))
        assert reset_store.find_by_value(issued.token).used is False

    def test_redeem_after_account_deletion_fails(self, reset_service, revocation, issued):
        revocation.delete_account(issued.principal_id)

        with pytest.raises(InvalidOrExpiredResetToken):
            reset_service.redeem_reset(RedeemResetIn(token=issued.token, new_password="ghost-secret"))
