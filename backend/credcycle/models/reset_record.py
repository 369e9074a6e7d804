"""Persisted single-use password-reset credential."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from credcycle.core.extensions import db

from .base import PKMixin, ReprMixin, utcnow


class ResetRecord(PKMixin, ReprMixin, db.Model):
    """
    Reset credential state.

    ``used`` flips to ``True`` exactly once, in the same transaction that
    rewrites the principal's credential hash; a used row is never
    redeemable again, whatever its expiry.
    """

    __tablename__ = "reset_records"

    token_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    principal_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("principals.id", ondelete="CASCADE"), nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        UniqueConstraint("token_hash", name="uq_reset_records_token_hash"),
        Index("ix_reset_records_principal_id", "principal_id"),
    )
