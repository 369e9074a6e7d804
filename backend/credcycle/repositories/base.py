"""Generic repository base for SQLAlchemy 2.x.

This module centralizes persistence-only concerns shared by all repositories:
- Primary-key lookups.
- Equality filters restricted to a per-repository whitelist.
- Soft deletion for entities that implement :class:`SoftDeletable`.
- No business logic, no commit/rollback: Services own transactions.

Design decisions
----------------
* Repositories MUST remain thin and persistence-focused.
* They never call commit/rollback; a Unit of Work does.
* Soft-delete visibility is expressed as a query predicate inside each
  repository (``_live_predicate``), never through a global interceptor.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, TypeVar, cast

from sqlalchemy import Select, and_, func, select
from sqlalchemy.orm import InstrumentedAttribute, Session

from credcycle.core.extensions import db
from credcycle.models.base import SoftDeletable, utcnow

E = TypeVar("E")  # SQLAlchemy mapped entity type


class BaseRepository(Generic[E]):
    """Generic, persistence-only repository for a single aggregate.

    Subclasses MUST define:

    * ``model``: the SQLAlchemy mapped class.

    Subclasses MAY override:

    * ``_filterable_fields`` to expose safe equality filters.

    This class NEVER:

    * opens/commits/rolls back transactions,
    * implements business rules or cross-aggregate coordination.
    """

    #: SQLAlchemy mapped model (must be set by subclasses)
    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        """Initialise the repository with an optional SQLAlchemy session.

        When no explicit session is provided the repository falls back to the
        Flask-scoped session exposed by ``credcycle.core.extensions``.

        :param session: Session shared across the Unit of Work scope.
        """
        self._session: Session | None = session

    @property
    def session(self) -> Session:
        """Return the injected session or the Flask-scoped one."""
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    # ------------------------------ Extensibility ----------------------------

    def _pk_attr(self) -> InstrumentedAttribute[Any] | None:
        """Return the model's primary-key attribute (``model.id``) if present."""
        return getattr(self.model, "id", None)

    def _filterable_fields(self) -> Mapping[str, InstrumentedAttribute[Any]]:
        """Whitelist mapping of public filter keys to model attributes."""
        return {}

    def _live_predicate(self) -> list[Any]:
        """Predicates hiding soft-deleted rows (empty for hard-delete models)."""
        if issubclass(self.model, SoftDeletable):
            return [self.model.deleted_at.is_(None)]  # type: ignore[attr-defined]
        return []

    # ------------------------------ Internals --------------------------------

    def _apply_equality_filters(
        self,
        stmt: Select[Any],
        filters: Mapping[str, Any] | None,
    ) -> Select[Any]:
        """Apply whitelisted equality filters; unknown keys raise ``ValueError``.

        :param stmt: Input select to filter.
        :param filters: Field=value mapping (equality only).
        :returns: Filtered select.
        """
        if not filters:
            return stmt

        allowed = self._filterable_fields()
        clauses: list[Any] = []
        for k, v in filters.items():
            col = allowed.get(k)
            if col is None:
                raise ValueError(f"Unknown or non-filterable field: {k!r}")
            clauses.append(col == v)
        return stmt.where(and_(*clauses))

    # --------------------------------- CRUD ----------------------------------

    def add(self, instance: E) -> E:
        """Stage a new entity and flush to materialize the PK.

        :param instance: New entity instance.
        :returns: The same instance after ``flush()``.
        """
        self.session.add(instance)
        self.flush()
        return instance

    def get(self, entity_id: Any, *, include_deleted: bool = False) -> E | None:
        """Retrieve a single entity by primary key.

        :param entity_id: Primary-key value.
        :param include_deleted: Also return soft-deleted rows.
        :returns: Entity or ``None``.
        :raises RuntimeError: If no PK attribute can be detected.
        """
        pk_attr = self._pk_attr()
        if pk_attr is None:
            raise RuntimeError("BaseRepository.get requires a detectable PK attribute.")
        stmt = select(self.model).where(pk_attr == entity_id)
        if not include_deleted:
            stmt = stmt.where(*self._live_predicate())
        result = self.session.execute(stmt).scalars().first()
        return cast(E | None, result)

    def find_one(self, **filters: Any) -> E | None:
        """Find a single live entity by whitelisted equality filters."""
        stmt: Select[Any] = select(self.model).where(*self._live_predicate())
        stmt = self._apply_equality_filters(stmt, filters)
        result = self.session.execute(stmt).scalars().first()
        return cast(E | None, result)

    def count(self, **filters: Any) -> int:
        """Count live rows matching whitelisted equality filters."""
        stmt: Select[Any] = (
            select(func.count()).select_from(self.model).where(*self._live_predicate())
        )
        stmt = self._apply_equality_filters(stmt, filters)
        return int(self.session.execute(stmt).scalar_one())

    def delete(self, instance: E) -> None:
        """Soft-delete :class:`SoftDeletable` entities, hard-delete the rest."""
        if isinstance(instance, SoftDeletable):
            instance.mark_deleted(utcnow())
        else:
            self.session.delete(instance)
        self.flush()

    def flush(self) -> None:
        """Flush pending changes to the database without committing."""
        self.session.flush()
