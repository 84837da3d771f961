"""User model: the credential store's durable identity record."""

from __future__ import annotations

from typing import Any

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, validates
from werkzeug.security import check_password_hash, generate_password_hash

from todo_api.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin

USERNAME_MAX_LENGTH = 150


class User(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Authentication identity.

    Fields
    ------
    username : str
        Login name. Unique and case-sensitive; stored exactly as given.
    password_hash : str
        Salted one-way hash (write-only setter via ``password``).
    created_at : datetime
        Creation timestamp (from mixin).
    updated_at : datetime
        Update timestamp (from mixin).
    """

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(USERNAME_MAX_LENGTH), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # The unique constraint closes the race between concurrent registrations.
    __table_args__ = (UniqueConstraint("username", name="uq_users_username"),)

    # -------------------- Password API --------------------
    @property
    def password(self) -> Any:  # pragma: no cover - explicit write-only contract
        """
        Disallow reading passwords.

        :raises AttributeError: Always, to ensure password is write-only.
        """
        raise AttributeError("Password is write-only.")

    @password.setter
    def password(self, raw: str) -> None:
        """
        Hash and set the password.

        :param raw: Plain text password to hash.
        :type raw: str
        :raises ValueError: If the password is empty or not a string.
        """
        if not isinstance(raw, str) or not raw:
            raise ValueError("Password must be a non-empty string.")
        self.password_hash = generate_password_hash(raw)

    def verify_password(self, raw: str) -> bool:
        """
        Verify a password against the stored hash.

        :param raw: Plain text password candidate.
        :type raw: str
        :returns: ``True`` if it matches; otherwise ``False``.
        :rtype: bool
        """
        if not self.password_hash:
            return False
        return bool(check_password_hash(self.password_hash, raw))

    # -------------------- Validators --------------------
    @validates("username")
    def _validate_username(self, key: str, value: str) -> str:
        """
        Validate the username without normalising it.

        Usernames are case-sensitive and compared byte for byte, so no
        lowercasing or trimming happens here.

        :param key: Field name (``username``).
        :type key: str
        :param value: Candidate username.
        :type value: str
        :returns: The unchanged username.
        :rtype: str
        :raises ValueError: If username is missing, empty or too long.
        """
        if not isinstance(value, str) or not value:
            raise ValueError("Username is required.")
        if len(value) > USERNAME_MAX_LENGTH:
            raise ValueError("Username is too long.")
        return value
