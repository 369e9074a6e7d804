"""Credential issuance, rotation and revocation."""

from .issuer import TokenIssuer
from .revocation import RevocationManager
from .rotation import RefreshRotationService

__all__ = ["RefreshRotationService", "RevocationManager", "TokenIssuer"]
