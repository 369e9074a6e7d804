"""Authentication endpoints using the service layer."""

from __future__ import annotations

from flask import Blueprint, Response

from credcycle.api.deps import (
    components,
    current_principal_id,
    json_response,
    load_json,
    require_auth,
    timing,
)
from credcycle.schemas import (
    AuthResponseSchema,
    LoginSchema,
    PrincipalSchema,
    RefreshSchema,
    RegisterSchema,
    TokenPairSchema,
)
from credcycle.services.auth.dto import LoginIn, RefreshIn, RegisterIn

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_schema = RefreshSchema()
auth_response_schema = AuthResponseSchema()
principal_schema = PrincipalSchema()
token_schema = TokenPairSchema()


@bp.post("/register")
@timing
def register():
    """Create a principal and return it with its first credential pair."""

    data = load_json(register_schema)
    result = components().auth.register(
        RegisterIn(email=data["email"], password=data["password"], name=data["name"])
    )
    return json_response({"data": auth_response_schema.dump(result)}, status=201)


@bp.post("/login")
@timing
def login():
    """Verify email/password and issue a fresh pair."""

    data = load_json(login_schema)
    result = components().auth.login(LoginIn(email=data["email"], password=data["password"]))
    return json_response({"data": auth_response_schema.dump(result)})


@bp.post("/refresh")
@timing
def refresh():
    """Rotate a refresh credential."""

    data = load_json(refresh_schema)
    pair = components().auth.refresh(RefreshIn(refresh_token=data["refresh_token"]))
    return json_response({"data": token_schema.dump(pair)})


@bp.post("/logout")
@require_auth
@timing
def logout():
    """Revoke the caller's refresh records. Idempotent."""

    components().auth.logout(current_principal_id())
    return json_response({"data": {"status": "logged_out"}})


@bp.get("/me")
@require_auth
@timing
def me():
    principal = components().auth.me(current_principal_id())
    return json_response({"data": principal_schema.dump(principal)})


@bp.delete("/me")
@require_auth
@timing
def delete_me():
    """Delete the caller's account and everything that grants it access."""

    components().auth.delete_account(current_principal_id())
    return Response(status=204)
