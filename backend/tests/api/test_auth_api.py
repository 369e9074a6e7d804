"""HTTP flows for register, login, refresh, logout and account deletion."""

from http import HTTPStatus

from tests.helpers.http import DEFAULT_PASSWORD, bearer, register, tokens_of

LOGIN_URL = "/api/v1/auth/login"
REFRESH_URL = "/api/v1/auth/refresh"
LOGOUT_URL = "/api/v1/auth/logout"
ME_URL = "/api/v1/auth/me"


def _login(client, email, password=DEFAULT_PASSWORD):
    return client.post(LOGIN_URL, json={"email": email, "password": password})


def _refresh(client, refresh_token):
    return client.post(REFRESH_URL, json={"refresh_token": refresh_token})


def test_register_returns_principal_and_pair(client):
    resp = register(client, "Reg@Example.com")

    assert resp.status_code == HTTPStatus.CREATED
    data = resp.get_json()["data"]
    assert set(data) == {"principal", "tokens"}
    assert set(data["tokens"]) == {
        "access_token",
        "refresh_token",
        "token_type",
        "access_expires_at",
        "refresh_expires_at",
    }
    assert data["principal"]["email"] == "reg@example.com"
    assert "credential_hash" not in data["principal"]
    assert data["tokens"]["token_type"] == "bearer"
    assert data["tokens"]["access_token"]
    assert data["tokens"]["refresh_token"]


def test_register_duplicate_is_conflict(client):
    register(client, "dup-api@example.com")

    resp = register(client, "dup-api@example.com")

    assert resp.status_code == HTTPStatus.CONFLICT
    assert resp.get_json()["code"] == "conflict"
    assert resp.mimetype == "application/problem+json"


def test_register_validation_error(client):
    resp = register(client, "not-an-email", password="short")

    assert resp.status_code == HTTPStatus.UNPROCESSABLE_ENTITY
    body = resp.get_json()
    assert body["code"] == "validation_error"
    assert set(body["details"]["errors"]) == {"email", "password"}


def test_login_and_me(client):
    register(client, "me-api@example.com")

    resp = _login(client, "me-api@example.com")
    assert resp.status_code == HTTPStatus.OK

    me = client.get(ME_URL, headers=bearer(tokens_of(resp)["access_token"]))
    assert me.status_code == HTTPStatus.OK
    assert me.get_json()["data"]["email"] == "me-api@example.com"


def test_wrong_password_and_unknown_email_look_the_same(client):
    register(client, "wrong@example.com")

    wrong = _login(client, "wrong@example.com", password="not-the-password")
    unknown = _login(client, "nobody-here@example.com")

    assert wrong.status_code == unknown.status_code == HTTPStatus.UNAUTHORIZED
    assert wrong.get_json()["detail"] == unknown.get_json()["detail"]
    assert wrong.get_json()["code"] == "authentication_failed"


def test_refresh_rotates_and_old_credential_dies(client):
    tokens = tokens_of(register(client, "rot@example.com"))

    first = _refresh(client, tokens["refresh_token"])
    assert first.status_code == HTTPStatus.OK
    new_refresh = first.get_json()["data"]["refresh_token"]
    assert new_refresh != tokens["refresh_token"]

    replay = _refresh(client, tokens["refresh_token"])
    assert replay.status_code == HTTPStatus.UNAUTHORIZED
    assert replay.get_json()["code"] == "invalid_refresh_token"

    assert _refresh(client, new_refresh).status_code == HTTPStatus.OK


def test_access_token_is_not_a_refresh_credential(client):
    tokens = tokens_of(register(client, "kind@example.com"))

    resp = _refresh(client, tokens["access_token"])

    assert resp.status_code == HTTPStatus.UNAUTHORIZED
    assert resp.get_json()["code"] == "invalid_refresh_token"


def test_refresh_credential_is_not_a_bearer(client):
    tokens = tokens_of(register(client, "bearer@example.com"))

    resp = client.get(ME_URL, headers=bearer(tokens["refresh_token"]))

    assert resp.status_code == HTTPStatus.UNAUTHORIZED
    assert resp.get_json()["code"] == "invalid_token"


def test_missing_bearer_is_unauthorized(client):
    resp = client.get(ME_URL)

    assert resp.status_code == HTTPStatus.UNAUTHORIZED
    assert resp.get_json()["code"] == "invalid_token"


def test_logout_revokes_refresh(client):
    tokens = tokens_of(register(client, "bye@example.com"))

    resp = client.post(LOGOUT_URL, headers=bearer(tokens["access_token"]))
    assert resp.status_code == HTTPStatus.OK
    assert resp.get_json()["data"]["status"] == "logged_out"

    again = client.post(LOGOUT_URL, headers=bearer(tokens["access_token"]))
    assert again.status_code == HTTPStatus.OK

    assert _refresh(client, tokens["refresh_token"]).status_code == HTTPStatus.UNAUTHORIZED


def test_delete_me_ends_every_session(client):
    tokens = tokens_of(register(client, "delete-me@example.com"))

    resp = client.delete(ME_URL, headers=bearer(tokens["access_token"]))
    assert resp.status_code == HTTPStatus.NO_CONTENT

    assert _login(client, "delete-me@example.com").status_code == HTTPStatus.UNAUTHORIZED
    assert _refresh(client, tokens["refresh_token"]).status_code == HTTPStatus.UNAUTHORIZED
    assert register(client, "delete-me@example.com").status_code == HTTPStatus.CONFLICT
