"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

_PASSWORD = validate.Length(min=8, max=128)


class RegisterSchema(Schema):
    """Input payload for account registration."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=_PASSWORD)
    name = fields.String(required=True, validate=validate.Length(min=2, max=100))


class LoginSchema(Schema):
    """Input payload for authenticating a principal."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    # Length policy is not re-checked here: a short secret is simply wrong.
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))


class RefreshSchema(Schema):
    refresh_token = fields.String(required=True, validate=validate.Length(min=1))


class ForgotPasswordSchema(Schema):
    email = fields.Email(required=True, validate=validate.Length(max=254))


class ResetPasswordSchema(Schema):
    """Input payload redeeming a reset credential."""

    token = fields.String(required=True, validate=validate.Length(min=1))
    password = fields.String(required=True, validate=_PASSWORD)


class PrincipalSchema(Schema):
    """Public principal representation (no credential hash)."""

    id = fields.Integer(dump_only=True)
    email = fields.Email(dump_only=True)
    name = fields.String(dump_only=True)
    created_at = fields.DateTime(dump_only=True)


class TokenPairSchema(Schema):
    """Access/refresh pair returned by login, register and refresh."""

    access_token = fields.String(dump_only=True)
    refresh_token = fields.String(dump_only=True)
    token_type = fields.Constant("bearer", dump_only=True)
    access_expires_at = fields.DateTime(dump_only=True)
    refresh_expires_at = fields.DateTime(dump_only=True)


class AuthResponseSchema(Schema):
    """Principal plus its fresh pair."""

    principal = fields.Nested(PrincipalSchema, dump_only=True)
    tokens = fields.Nested(TokenPairSchema, dump_only=True)
