"""Shared API helpers: service wiring, authentication and response helpers."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from datetime import timedelta
from typing import Any, TypeVar, cast

from flask import Response, current_app, g, jsonify, request

from todo_api.core.logger import ensure_request_id
from todo_api.infra.hashing.sha256_token_hasher import Sha256TokenHasher
from todo_api.infra.jwt.flask_jwt_token_provider import JWTTokenProvider
from todo_api.infra.redis.redis_refresh_token_ledger import RedisRefreshTokenLedger
from todo_api.infra.sql.sql_refresh_token_ledger import SqlRefreshTokenLedger
from todo_api.services._shared.base import ServiceContext
from todo_api.services._shared.ports import RefreshTokenLedger, TokenProvider
from todo_api.services.auth.authenticator import RequestAuthenticator
from todo_api.services.auth.dto import AuthTokenConfig, Identity
from todo_api.services.auth.service import SessionService
from todo_api.services.todos.service import TodoService

F = TypeVar("F", bound=Callable[..., Any])

# ------------------------------ Wiring -----------------------------------


def get_token_provider() -> TokenProvider:
    """Return the access-token provider for the current app."""

    return JWTTokenProvider()


def get_refresh_ledger() -> RefreshTokenLedger:
    """Return the refresh-token ledger: Redis when configured, else SQL."""

    hasher = Sha256TokenHasher()
    client = current_app.extensions.get("redis_client")
    if client is not None:
        return RedisRefreshTokenLedger(r=client, hasher=hasher)
    return SqlRefreshTokenLedger(hasher=hasher)


def get_token_config() -> AuthTokenConfig:
    """Build token lifetimes from app config."""

    access = current_app.config.get("JWT_ACCESS_TOKEN_EXPIRES", timedelta(minutes=15))
    days = int(current_app.config.get("REFRESH_TOKEN_TTL_DAYS", 30))
    return AuthTokenConfig(access_expires=access, refresh_expires=timedelta(days=days))


def service_context() -> ServiceContext:
    """Request-scoped context carrying the caller id (if authenticated)."""

    identity = cast(Identity | None, g.get("identity"))
    return ServiceContext(
        actor_id=identity.user_id if identity else None,
        request_id=ensure_request_id(),
    )


def get_session_service() -> SessionService:
    return SessionService(
        token_provider=get_token_provider(),
        ledger=get_refresh_ledger(),
        token_cfg=get_token_config(),
        ctx=service_context(),
    )


def get_todo_service() -> TodoService:
    return TodoService(ctx=service_context())


def get_authenticator() -> RequestAuthenticator:
    return RequestAuthenticator(tokens=get_token_provider())


# ------------------------------ Auth -------------------------------------


def current_identity() -> Identity:
    """Return the identity stored by :func:`require_auth`."""

    return cast(Identity, g.identity)


def require_auth(func: F) -> F:
    """Ensure the request carries a valid access token.

    The verified identity is stored on ``flask.g.identity``; failures raise
    :class:`AuthenticationError`, rendered as 401 by the error layer.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        g.identity = get_authenticator().authenticate_header(
            request.headers.get("Authorization")
        )
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


# ------------------------------ Responses --------------------------------


def json_body() -> dict[str, Any]:
    """Return the JSON request body, or an empty mapping when absent/invalid."""

    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
