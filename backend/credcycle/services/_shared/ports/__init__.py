"""
credcycle.services._shared.ports
================================

Hexagonal interfaces the services depend on.

Modules
-------
- :mod:`token_signer`:
    :class:`~.TokenSigner`, the stateless Signer/Verifier, and
    :class:`~.TokenKind`.

- :mod:`refresh_record_store`:
    :class:`~.RefreshRecordStore` and its lock-based in-memory double.

- :mod:`reset_record_store`:
    :class:`~.ResetRecordStore`, single-use reset records.

- :mod:`hash_provider`:
    :class:`~.HashProvider`, one-way secret hashing.

Concrete adapters live under ``credcycle.infra``.
"""

from __future__ import annotations

from .hash_provider import HashProvider
from .refresh_record_store import (
    InMemoryRefreshRecordStore,
    RefreshRecordStore,
    RefreshRecordView,
    hash_credential,
)
from .reset_record_store import ResetRecordStore, ResetRecordView
from .token_signer import SignedToken, TokenKind, TokenSigner, VerifiedToken

__all__ = [
    "HashProvider",
    "InMemoryRefreshRecordStore",
    "RefreshRecordStore",
    "RefreshRecordView",
    "ResetRecordStore",
    "ResetRecordView",
    "SignedToken",
    "TokenKind",
    "TokenSigner",
    "VerifiedToken",
    "hash_credential",
]
