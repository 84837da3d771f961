# todo_api/services/_shared/base.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from todo_api.core import errors as api_errors
from todo_api.services._shared.errors import (
    AuthenticationError,
    AuthFailure,
    ConflictError,
    InvalidInputError,
    NotFoundError,
    ServiceError,
)
from todo_api.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)

# Reported as 400 rather than 401: the request itself is unusable.
_BAD_REQUEST_FAILURES = frozenset({AuthFailure.INVALID_CREDENTIALS, AuthFailure.MISSING_TOKEN})


@dataclass(slots=True)
class ServiceContext:
    """
    Carry cross-cutting request-scoped data (auth, request ids).

    :param actor_id: Authenticated user identifier.
    :param request_id: Correlation id for logging/tracing.
    """

    actor_id: int | None = None
    request_id: str | None = None


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide helpers to run read-only and read-write units of work.
    * Centralize error translation.
    * Provide the UTC clock used for every expiry decision.

    Notes
    -----
    Services never touch the global session directly; they always go through
    a Unit of Work.
    """

    DEFAULT_READ_ISOLATION = "READ COMMITTED"

    def __init__(self, *, ctx: ServiceContext | None = None) -> None:
        """
        Initialize the base service.

        :param ctx: Optional request-scoped context (auth, tracing).
        :type ctx: ServiceContext | None
        """
        self.ctx = ctx or ServiceContext()

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """
        Create a read-write Unit of Work.

        :returns: Read-write UoW instance.
        :rtype: SQLAlchemyUnitOfWork
        """
        return SQLAlchemyUnitOfWork()

    def ro_uow(
        self, *, isolation: str | None = None, enforce_db_readonly: bool = True
    ) -> SQLAlchemyReadOnlyUnitOfWork:
        """
        Create a read-only Unit of Work.

        :param isolation: Transaction isolation level (e.g. "READ COMMITTED").
        :type isolation: str | None
        :param enforce_db_readonly: Apply `SET TRANSACTION READ ONLY` when supported.
        :type enforce_db_readonly: bool
        :returns: Read-only UoW instance.
        :rtype: SQLAlchemyReadOnlyUnitOfWork
        """
        return SQLAlchemyReadOnlyUnitOfWork(
            isolation_level=isolation or self.DEFAULT_READ_ISOLATION,
            enforce_db_readonly=enforce_db_readonly,
        )

    # ------------------------------ Clock -----------------------------------

    @staticmethod
    def now_utc() -> datetime:
        """Return the current server wall-clock time in UTC."""
        return datetime.now(UTC)

    # -------------------------- Error handling ------------------------------

    def translate_exceptions(self, exc: Exception) -> Exception:
        """
        Map domain/service-level errors to API-level (HTTP) errors.

        :param exc: Exception raised within the service.
        :type exc: Exception
        :returns: Translated exception ready to be re-raised.
        :rtype: Exception
        """
        if isinstance(exc, AuthenticationError):
            if exc.failure in _BAD_REQUEST_FAILURES:
                # → 400 Bad Request
                return api_errors.BadRequest(exc.message)
            # → 401 Unauthorized
            return api_errors.Unauthorized(exc.message)

        if isinstance(exc, InvalidInputError):
            details = {"fields": list(exc.fields)} if exc.fields else None
            return api_errors.BadRequest(exc.message, code="validation_error", details=details)

        if isinstance(exc, ConflictError):
            # Duplicate usernames are reported as 400 like other bad input.
            return api_errors.BadRequest(str(exc), code="conflict")

        if isinstance(exc, NotFoundError):
            # → 404; the key is not echoed so ids of other users stay opaque
            return api_errors.NotFound("Not found")

        if isinstance(exc, ServiceError):
            return api_errors.BadRequest(str(exc) or "Bad request")

        # Fallback: return untouched (will bubble up to Flask handler)
        return exc
