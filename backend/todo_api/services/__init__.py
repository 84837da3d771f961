"""Service layer public API.

This package exposes the essential building blocks for the service layer so that
callers can import from :mod:`todo_api.services` without knowing internal structure.

Re-exports
----------
- Base primitives (from ``todo_api.services._shared.base``)
    * :class:`BaseService`
    * :class:`ServiceContext`

- Session service (from ``todo_api.services.auth``)
    * :class:`SessionService`, :class:`RequestAuthenticator`
    * DTOs: :class:`RegisterIn`, :class:`LoginIn`, :class:`RefreshIn`,
      :class:`LogoutIn`, :class:`UserOut`, :class:`SessionOut`,
      :class:`Identity`, :class:`AuthTokenConfig`

- Todo service (from ``todo_api.services.todos``)
    * :class:`TodoService`
    * DTOs: :class:`TodoCreateIn`, :class:`TodoUpdateIn`, :class:`TodoOut`
"""

from __future__ import annotations

# Base primitives (service base + request-scoped context)
from ._shared.base import BaseService, ServiceContext
from .auth.authenticator import RequestAuthenticator
from .auth.dto import (
    AuthTokenConfig,
    Identity,
    LoginIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
    SessionOut,
    UserOut,
)

# Session lifecycle
from .auth.service import SessionService
from .todos.dto import TodoCreateIn, TodoOut, TodoUpdateIn

# Todos
from .todos.service import TodoService

__all__ = [
    # Base
    "BaseService",
    "ServiceContext",
    # Sessions
    "SessionService",
    "RequestAuthenticator",
    "RegisterIn",
    "LoginIn",
    "RefreshIn",
    "LogoutIn",
    "UserOut",
    "SessionOut",
    "Identity",
    "AuthTokenConfig",
    # Todos
    "TodoService",
    "TodoCreateIn",
    "TodoUpdateIn",
    "TodoOut",
]
