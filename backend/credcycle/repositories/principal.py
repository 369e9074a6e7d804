"""Principal repository for lookups and credential-hash writes."""

from __future__ import annotations

from typing import cast

from sqlalchemy import select, update

from credcycle.models.principal import Principal, normalize_email
from credcycle.repositories.base import BaseRepository


class PrincipalRepository(BaseRepository[Principal]):
    """Persistence-only repository for :class:`Principal`.

    Every lookup except :meth:`exists_by_email` hides soft-deleted rows.
    It NEVER issues credentials; the token services do that.
    """

    model = Principal

    def _filterable_fields(self):
        return {"email": Principal.email}

    def get_by_email(self, email: str) -> Principal | None:
        """Fetch a live principal by email (case-insensitive).

        :param email: Email address to normalise and search.
        :returns: Principal or ``None`` when not found or deleted.
        """
        stmt = select(Principal).where(
            Principal.email == normalize_email(email), *self._live_predicate()
        )
        result = self.session.execute(stmt).scalars().first()
        return cast(Principal | None, result)

    def exists_by_email(self, email: str) -> bool:
        """Return ``True`` when any row, deleted or not, holds this email."""
        stmt = select(Principal.id).where(Principal.email == normalize_email(email))
        return bool(self.session.execute(stmt).first())

    def set_credential_hash(self, principal_id: int, credential_hash: str) -> bool:
        """Overwrite the credential hash of a live principal.

        :returns: ``True`` if exactly one row was updated.
        """
        stmt = (
            update(Principal)
            .where(Principal.id == principal_id, *self._live_predicate())
            .values(credential_hash=credential_hash)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1
