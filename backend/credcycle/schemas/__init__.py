"""Convenience exports for request/response schemas."""

from __future__ import annotations

from .auth import (
    AuthResponseSchema,
    ForgotPasswordSchema,
    LoginSchema,
    PrincipalSchema,
    RefreshSchema,
    RegisterSchema,
    ResetPasswordSchema,
    TokenPairSchema,
)

__all__ = [
    "AuthResponseSchema",
    "ForgotPasswordSchema",
    "LoginSchema",
    "PrincipalSchema",
    "RefreshSchema",
    "RegisterSchema",
    "ResetPasswordSchema",
    "TokenPairSchema",
]
