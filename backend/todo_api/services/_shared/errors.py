"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never import Flask or HTTP
helpers (SQLAlchemy is only used to inspect constraint violations). The translation to HTTP responses (RFC 7807) happens in
``todo_api/core/errors.py`` via ``BaseService.translate_exceptions()``.

None of the messages carry passwords, hashes or token material.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum, auto

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str, *, column: str | None = None) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    constraint_name : str
        The name of the database constraint to match (e.g., 'uq_users_username').
    column : str, optional
        ``table.column`` fallback; SQLite reports the column, not the name.

    Returns
    -------
    bool
        True if the IntegrityError matches the given constraint.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    if constraint_name.lower() in message:
        return True
    return column is not None and column.lower() in message


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - They can be safely raised from repositories or domain logic.
    """


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


class InvalidInputError(ServiceError):
    """
    Raised for missing or malformed input.

    :param message: Client-safe summary.
    :param fields: Names of the offending fields.
    """

    def __init__(self, message: str = "Missing fields", *, fields: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.message = message
        self.fields = tuple(fields)


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found (or not visible to the caller).

    :param entity: Entity name (e.g., "Todo").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param detail: Short client-safe explanation.
    :type detail: str
    """

    entity: str
    detail: str

    def __str__(self) -> str:
        return self.detail


class AuthFailure(Enum):
    """Reason an authentication step was refused."""

    INVALID_CREDENTIALS = auto()
    MISSING_TOKEN = auto()
    INVALID_TOKEN = auto()
    TOKEN_REVOKED = auto()
    TOKEN_EXPIRED = auto()
    USER_MISSING = auto()
    NO_TOKEN = auto()
    MALFORMED_HEADER = auto()
    INVALID_ACCESS_TOKEN = auto()

    @property
    def message(self) -> str:
        """Client-facing message for this failure."""
        return _AUTH_MESSAGES[self]


# Refresh-token failures share one message so a caller cannot probe the
# ledger for token states; the specific reason is only logged.
_AUTH_MESSAGES: dict[AuthFailure, str] = {
    AuthFailure.INVALID_CREDENTIALS: "Invalid credentials",
    AuthFailure.MISSING_TOKEN: "Missing refresh token",
    AuthFailure.INVALID_TOKEN: "Invalid refresh token",
    AuthFailure.TOKEN_REVOKED: "Invalid refresh token",
    AuthFailure.TOKEN_EXPIRED: "Invalid refresh token",
    AuthFailure.USER_MISSING: "Invalid refresh token",
    AuthFailure.NO_TOKEN: "No token",
    AuthFailure.MALFORMED_HEADER: "Bad token",
    AuthFailure.INVALID_ACCESS_TOKEN: "Invalid token",
}


class AuthenticationError(ServiceError):
    """
    Raised when credentials or tokens are rejected.

    :param failure: Specific reason, kept for logging and tests.
    :type failure: AuthFailure
    """

    def __init__(self, failure: AuthFailure) -> None:
        super().__init__(failure.message)
        self.failure = failure
        self.message = failure.message

    def __repr__(self) -> str:
        return f"AuthenticationError({self.failure.name})"
