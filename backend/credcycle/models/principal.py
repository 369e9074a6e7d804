"""Principal model: the identity whose credentials this service manages."""

from __future__ import annotations

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, validates

from credcycle.core.extensions import db

from .base import PKMixin, ReprMixin, SoftDeletable, TimestampMixin


def normalize_email(value: str) -> str:
    """Lowercase and trim an email address."""
    return value.strip().lower()


class Principal(PKMixin, ReprMixin, TimestampMixin, SoftDeletable, db.Model):
    """
    Authenticated identity.

    Fields
    ------
    email : str
        Login email. Stored normalized (lowercase, trimmed). Unique even
        across soft-deleted rows.
    name : str
        Display name.
    credential_hash : str
        Output of the configured hash provider. Written only by registration
        and reset redemption.
    deleted_at : datetime | None
        Set on account deletion (from :class:`SoftDeletable`).
    """

    __tablename__ = "principals"

    email: Mapped[str] = mapped_column(String(254), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    credential_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    __table_args__ = (UniqueConstraint("email", name="uq_principals_email"),)

    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """
        Normalize and sanity-check the email.

        :raises ValueError: If email is missing or malformed.
        """
        if not value or not isinstance(value, str):
            raise ValueError("Email is required.")
        v = normalize_email(value)
        # Minimal sanity check; full validation happens at API layer.
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Email format looks invalid.")
        return v

    @validates("name")
    def _normalize_name(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Name is required.")
        return value.strip()
