"""Factory Boy base wired to the transactional test session.

Factories only flush; tests that go through the HTTP client or a service
(which may roll back) call ``session.commit()`` first so the rows survive.
"""

from __future__ import annotations

import factory


class SQLAlchemySession:
    """Holder for the per-test scoped session set by ``conftest.py``."""

    _session = None

    @classmethod
    def set(cls, session):
        cls._session = session

    @classmethod
    def get(cls):
        """Return the current test session.

        Raises
        ------
        RuntimeError
            When a factory runs outside a test that requested ``session``.
        """
        if cls._session is None:
            raise RuntimeError("No test session registered; request the 'session' fixture.")
        return cls._session


class BaseFactory(factory.alchemy.SQLAlchemyModelFactory):
    """Abstract base for todo-api model factories."""

    class Meta:
        abstract = True
        # Resolved on every create() so each test gets its own session.
        sqlalchemy_session_factory = SQLAlchemySession.get
        sqlalchemy_session_persistence = "flush"
