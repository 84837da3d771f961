"""User repository for persistence and credential checks."""

from __future__ import annotations

from functools import lru_cache
from typing import cast

from sqlalchemy import select
from werkzeug.security import check_password_hash, generate_password_hash

from todo_api.models.user import User
from todo_api.repositories.base import BaseRepository


@lru_cache(maxsize=1)
def _dummy_password_hash() -> str:
    """Hash compared against when the username is unknown."""
    return generate_password_hash("not-a-real-password")


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    It NEVER handles tokens or sessions, only DB-level user management.
    """

    model = User

    def _filterable_fields(self):
        return {"id": User.id, "username": User.username}

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_username(self, username: str) -> User | None:
        """Fetch a user by exact (case-sensitive) username.

        :param username: Username to search.
        :type username: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.username == username)
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def exists_by_username(self, username: str) -> bool:
        """Return ``True`` when the username is already taken."""
        stmt = select(User.id).where(User.username == username)
        return self.session.execute(stmt).first() is not None

    # ---------------------------- Writes ----------------------------

    def create(self, *, username: str, password: str) -> User:
        """Insert a user; the model setter hashes ``password``.

        :raises sqlalchemy.exc.IntegrityError: When the username is taken
            (``uq_users_username``), including under concurrent inserts.
        """
        user = User(username=username)
        user.password = password
        return self.add(user)

    # ---------------------------- Password ops ----------------------------

    def authenticate(self, username: str, password: str) -> User | None:
        """Authenticate a user by username and password.

        An unknown username still costs one hash comparison so response
        timing does not reveal which usernames exist.

        :param username: Username to authenticate.
        :type username: str
        :param password: Raw password to verify.
        :type password: str
        :returns: Authenticated user or ``None`` when credentials fail.
        :rtype: User | None
        """
        user = self.get_by_username(username)
        if user is None:
            check_password_hash(_dummy_password_hash(), password)
            return None
        if not user.verify_password(password):
            return None
        return user
