# todo_api/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for registration.

    :param username: Requested username (case-sensitive, stored as given).
    :type username: str
    :param password: Raw password; hashed by the model setter.
    :type password: str
    """

    username: str
    password: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param username: Username to authenticate.
    :type username: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    username: str
    password: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param refresh_token: Raw refresh secret as held by the client.
    :type refresh_token: str | None
    """

    refresh_token: str | None = field(default=None, repr=False)


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    Input DTO for logout.

    :param refresh_token: Raw refresh secret to revoke; ``None`` is a no-op.
    :type refresh_token: str | None
    """

    refresh_token: str | None = field(default=None, repr=False)


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class UserOut:
    """Public view of a registered user."""

    id: int
    username: str


@dataclass(frozen=True, slots=True)
class SessionOut:
    """
    Output DTO with a fresh access/refresh pair.

    :param access_token: Signed access token.
    :type access_token: str
    :param refresh_token: Raw refresh secret, shown to the client once.
    :type refresh_token: str
    :param username: Username the pair was issued for.
    :type username: str
    """

    access_token: str = field(repr=False)
    refresh_token: str = field(repr=False)
    username: str


@dataclass(frozen=True, slots=True)
class Identity:
    """Authenticated caller, as asserted by a verified access token."""

    user_id: int
    username: str


# ------------------------ Config DTO -------------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthTokenConfig:
    """
    Token emission configuration.

    :param access_expires: Access token lifetime.
    :type access_expires: timedelta
    :param refresh_expires: Refresh token lifetime.
    :type refresh_expires: timedelta
    """

    access_expires: timedelta = timedelta(minutes=15)
    refresh_expires: timedelta = timedelta(days=30)
