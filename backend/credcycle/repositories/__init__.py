"""Repository package exposing persistence-layer access for all domain models."""

from __future__ import annotations

from credcycle.repositories.base import BaseRepository
from credcycle.repositories.principal import PrincipalRepository
from credcycle.repositories.refresh_record import RefreshRecordRepository
from credcycle.repositories.reset_record import ResetRecordRepository

__all__ = [
    "BaseRepository",
    "PrincipalRepository",
    "RefreshRecordRepository",
    "ResetRecordRepository",
]
