import pytest
from sqlalchemy import func, select

from credcycle.models.principal import Principal
from credcycle.services._shared.errors import (
    AuthenticationError,
    ConflictError,
    InvalidRefreshToken,
    NotFoundError,
    ValidationError,
)
from credcycle.services._shared.ports import TokenKind, hash_credential
from credcycle.services.auth.dto import LoginIn, RefreshIn, RegisterIn
from tests.factories.principal import PrincipalFactory
from tests.helpers.http import DEFAULT_PASSWORD


def _principals_with(session, email: str) -> int:
    stmt = select(func.count()).select_from(Principal).where(Principal.email == email)
    return session.execute(stmt).scalar_one()


class TestRegister:
    def test_register_creates_principal_and_pair(self, auth_service, signer, refresh_store):
        out = auth_service.register(
            RegisterIn(email="New@Example.com", password="s3cret-pass", name="Ada")
        )

        assert out.principal.email == "new@example.com"
        assert signer.verify(out.tokens.access_token, TokenKind.ACCESS).principal_id == out.principal.id
        [record] = refresh_store.list_for_principal(out.principal.id)
        assert record.token_hash == hash_credential(out.tokens.refresh_token)

    def test_secret_is_stored_hashed(self, auth_service, session):
        out = auth_service.register(RegisterIn(email="h@example.com", password="s3cret-pass", name="H"))

        stored = session.get(Principal, out.principal.id).credential_hash
        assert stored != "s3cret-pass"

    def test_duplicate_email_conflicts(self, auth_service, session):
        PrincipalFactory(email="dup@example.com")

        with pytest.raises(ConflictError):
            auth_service.register(RegisterIn(email="DUP@example.com", password="pw-123456", name="D"))
        assert _principals_with(session, "dup@example.com") == 1

    def test_email_of_deleted_account_stays_taken(self, auth_service):
        out = auth_service.register(RegisterIn(email="once@example.com", password="pw-123456", name="O"))
        auth_service.delete_account(out.principal.id)

        with pytest.raises(ConflictError):
            auth_service.register(RegisterIn(email="once@example.com", password="pw-123456", name="O"))

    def test_empty_password_is_rejected(self, auth_service):
        with pytest.raises(ValidationError):
            auth_service.register(RegisterIn(email="e@example.com", password="", name="E"))

    def test_malformed_email_is_rejected(self, auth_service):
        with pytest.raises(ValidationError):
            auth_service.register(RegisterIn(email="not-an-email", password="pw-123456", name="E"))


class TestLogin:
    def test_login_replaces_refresh_record(self, auth_service, refresh_store):
        p = PrincipalFactory()
        first = auth_service.login(LoginIn(email=p.email, password=DEFAULT_PASSWORD))

        second = auth_service.login(LoginIn(email=p.email, password=DEFAULT_PASSWORD))

        [record] = refresh_store.list_for_principal(p.id)
        assert record.token_hash == hash_credential(second.tokens.refresh_token)
        with pytest.raises(InvalidRefreshToken):
            auth_service.refresh(RefreshIn(refresh_token=first.tokens.refresh_token))

    def test_wrong_secret_leaves_record_untouched(self, auth_service, refresh_store):
        p = PrincipalFactory()
        auth_service.login(LoginIn(email=p.email, password=DEFAULT_PASSWORD))
        before = refresh_store.list_for_principal(p.id)

        with pytest.raises(AuthenticationError) as exc:
            auth_service.login(LoginIn(email=p.email, password="wrong-password"))

        assert exc.value.reason == "bad_secret"
        assert refresh_store.list_for_principal(p.id) == before

    def test_unknown_email_burns_hash_and_fails_identically(self, auth_service, monkeypatch):
        p = PrincipalFactory()
        burned = []
        monkeypatch.setattr(auth_service.hasher, "burn", burned.append)

        with pytest.raises(AuthenticationError) as unknown:
            auth_service.login(LoginIn(email="ghost@example.com", password="whatever"))
        with pytest.raises(AuthenticationError) as wrong:
            auth_service.login(LoginIn(email=p.email, password="whatever"))

        assert burned == ["whatever"]
        assert str(unknown.value) == str(wrong.value)

    def test_deleted_account_cannot_log_in(self, auth_service):
        p = PrincipalFactory()
        auth_service.delete_account(p.id)

        with pytest.raises(AuthenticationError) as exc:
            auth_service.login(LoginIn(email=p.email, password=DEFAULT_PASSWORD))
        assert exc.value.reason == "unknown_email"


class TestSession:
    def test_refresh_then_logout(self, auth_service):
        p = PrincipalFactory()
        login = auth_service.login(LoginIn(email=p.email, password=DEFAULT_PASSWORD))
        rotated = auth_service.refresh(RefreshIn(refresh_token=login.tokens.refresh_token))

        auth_service.logout(p.id)

        with pytest.raises(InvalidRefreshToken):
            auth_service.refresh(RefreshIn(refresh_token=rotated.refresh_token))

    def test_logout_without_records_succeeds(self, auth_service):
        p = PrincipalFactory()
        auth_service.logout(p.id)
        auth_service.logout(p.id)

    def test_me(self, auth_service):
        p = PrincipalFactory(email="me@example.com")

        out = auth_service.me(p.id)

        assert out.id == p.id
        assert out.email == "me@example.com"
        assert out.created_at.tzinfo is not None

    def test_me_after_deletion_is_not_found(self, auth_service):
        p = PrincipalFactory()
        auth_service.delete_account(p.id)

        with pytest.raises(NotFoundError):
            auth_service.me(p.id)
