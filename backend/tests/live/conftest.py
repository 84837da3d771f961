"""Fixtures for tests that run against the application's own session.

Nothing here patches ``db.session``: every request opens, commits and
closes transactions exactly as it does when served by gunicorn, on a
SQLite file so that several threads share one database.
"""

from __future__ import annotations

import pytest

from todo_api.core.config import TestingConfig
from todo_api.core.extensions import db as _db
from todo_api.factory import create_app


@pytest.fixture(autouse=True)
def _factories_session():
    """Factories are not used here; the app session stays untouched."""
    yield


@pytest.fixture()
def live_app(tmp_path):
    """Application bound to a fresh SQLite file."""

    class FileDatabaseConfig(TestingConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'todo.db'}"
        REDIS_URL = None
        LOG_LEVEL = "WARNING"

    app = create_app(FileDatabaseConfig)
    with app.app_context():
        _db.create_all()
    yield app
    with app.app_context():
        _db.session.remove()
        _db.engine.dispose()


@pytest.fixture()
def live_client(live_app):
    return live_app.test_client()
