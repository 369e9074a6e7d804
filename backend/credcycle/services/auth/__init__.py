from .dto import AuthResultOut, LoginIn, RefreshIn, RegisterIn
from .service import AuthService

__all__ = ["AuthResultOut", "AuthService", "LoginIn", "RefreshIn", "RegisterIn"]
