"""Password reset endpoints."""

from __future__ import annotations

from flask import Blueprint

from credcycle.api.deps import components, json_response, load_json, timing
from credcycle.schemas import ForgotPasswordSchema, ResetPasswordSchema
from credcycle.services.password_reset.dto import RedeemResetIn, RequestResetIn

bp = Blueprint("password", __name__)

forgot_schema = ForgotPasswordSchema()
reset_schema = ResetPasswordSchema()


@bp.post("/forgot")
@timing
def forgot():
    """Request a reset. The answer never reveals whether the account exists."""

    data = load_json(forgot_schema)
    out = components().password_reset.request_reset(RequestResetIn(email=data["email"]))
    return json_response({"data": {"message": out.message}}, status=202)


@bp.post("/reset")
@timing
def reset():
    """Redeem a reset credential and set a new password."""

    data = load_json(reset_schema)
    components().password_reset.redeem_reset(
        RedeemResetIn(token=data["token"], new_password=data["password"])
    )
    return json_response({"data": {"status": "password_updated"}})
