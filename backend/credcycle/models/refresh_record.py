"""Persisted half of a refresh credential."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from credcycle.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin


class RefreshRecord(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Server-side state of a principal's refresh credential.

    At most one row per principal (``uq_refresh_records_principal_id``).
    The credential itself is never stored, only its SHA-256 digest.
    Rotation rewrites ``token_hash`` and ``expires_at`` in place.
    """

    __tablename__ = "refresh_records"

    token_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    principal_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("principals.id", ondelete="CASCADE"), nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("token_hash", name="uq_refresh_records_token_hash"),
        UniqueConstraint("principal_id", name="uq_refresh_records_principal_id"),
        Index("ix_refresh_records_expires_at", "expires_at"),
    )
