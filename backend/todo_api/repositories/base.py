"""Generic repository base for SQLAlchemy 2.x.

This module centralizes persistence-only concerns shared by all repositories:
- Session resolution (injected Unit of Work session or the Flask-scoped one).
- Primary-key lookups, equality filters and existence checks.
- Safe update helpers with per-repository updatable-field whitelists.
- No business logic, no commit/rollback; Services own transactions.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, TypeVar, cast

from sqlalchemy import Select, and_, func, select
from sqlalchemy.orm import InstrumentedAttribute, Session

from todo_api.core.extensions import db

E = TypeVar("E")  # SQLAlchemy mapped entity type


class BaseRepository(Generic[E]):
    """Generic, persistence-only repository for a single aggregate.

    Subclasses MUST define ``model``. They MAY override
    ``_filterable_fields`` and ``_updatable_fields`` to whitelist keys.

    This class NEVER opens, commits or rolls back transactions.
    """

    #: SQLAlchemy mapped model (must be set by subclasses)
    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        """Initialise the repository with an optional SQLAlchemy session.

        When no explicit session is provided the repository falls back to the
        Flask-scoped session exposed by ``todo_api.core.extensions``.

        :param session: Session shared across the Unit of Work scope.
        :type session: :class:`sqlalchemy.orm.Session` | None
        """
        self._session: Session | None = session

    @property
    def session(self) -> Session:
        """Return the injected session, else the Flask-scoped one.

        :rtype: :class:`sqlalchemy.orm.Session`
        """
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    # ------------------------------ Extensibility ----------------------------

    def _filterable_fields(self) -> Mapping[str, InstrumentedAttribute[Any]]:
        """Whitelist mapping of public filter keys to model attributes."""
        return {}

    def _updatable_fields(self) -> set[str]:
        """Whitelist of attribute names that :meth:`assign_updates` may set."""
        return set()

    def _apply_equality_filters(
        self,
        stmt: Select[Any],
        filters: Mapping[str, Any],
    ) -> Select[Any]:
        """Apply whitelisted equality filters; unknown keys raise ``ValueError``."""
        allowed = self._filterable_fields()
        clauses: list[Any] = []
        for key, value in filters.items():
            col = allowed.get(key)
            if col is None:
                raise ValueError(f"Unknown filter field: {key}")
            clauses.append(col == value)
        return stmt.where(and_(*clauses)) if clauses else stmt

    # --------------------------------- CRUD ----------------------------------

    def add(self, instance: E) -> E:
        """Stage a new entity and flush to materialize the PK.

        Unique-constraint violations therefore surface here as
        :class:`sqlalchemy.exc.IntegrityError`, inside the caller's Unit of Work.

        :param instance: New entity instance.
        :type instance: E
        :returns: The same instance after ``flush()``.
        :rtype: E
        """
        self.session.add(instance)
        self.flush()
        return instance

    def get(self, entity_id: Any) -> E | None:
        """Retrieve a single entity by primary key.

        :param entity_id: Primary-key value.
        :returns: Entity or ``None``.
        :rtype: E | None
        """
        return self.session.get(self.model, entity_id)

    def find_one(self, **filters: Any) -> E | None:
        """Find a single entity by whitelisted equality filters.

        :param filters: Field=value pairs (equality only).
        :returns: Entity or ``None``.
        :rtype: E | None
        """
        stmt: Select[Any] = self._apply_equality_filters(select(self.model), filters)
        return cast(E | None, self.session.execute(stmt.limit(1)).scalars().first())

    def exists(self, **filters: Any) -> bool:
        """Check existence for whitelisted equality filters.

        :returns: ``True`` when at least one row matches, else ``False``.
        :rtype: bool
        """
        stmt: Select[Any] = select(func.count()).select_from(self.model)
        stmt = self._apply_equality_filters(stmt, filters)
        return bool(self.session.execute(stmt).scalar())

    def delete(self, instance: E) -> None:
        """Delete an entity and flush changes."""
        self.session.delete(instance)
        self.flush()

    def flush(self) -> None:
        """Flush pending changes to the database without committing."""
        self.session.flush()

    # ----------------------------- Safe updates -------------------------------

    def assign_updates(self, instance: E, fields: Mapping[str, Any], *, flush: bool = True) -> E:
        """Assign only whitelisted keys to ``instance`` and optionally flush.

        The assignment uses ``setattr`` so ``@validates`` hooks on the mapped
        class still run.

        :param instance: Entity to mutate.
        :param fields: Mapping of attribute names to new values.
        :param flush: Call ``session.flush()`` after assignment.
        :returns: The mutated instance.
        :raises ValueError: If a key is not in :meth:`_updatable_fields`.
        """
        allowed = self._updatable_fields()
        unknown = sorted(k for k in fields if k not in allowed)
        if unknown:
            raise ValueError(f"Unknown or non-updatable fields: {unknown}")
        for key, value in fields.items():
            setattr(instance, key, value)
        if flush:
            self.flush()
        return instance
