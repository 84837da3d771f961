# todo_api/services/auth/service.py
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError

from todo_api.repositories.user import UserRepository
from todo_api.services._shared.base import BaseService, ServiceContext
from todo_api.services._shared.errors import (
    AuthenticationError,
    AuthFailure,
    ConflictError,
    InvalidInputError,
    violates,
)
from todo_api.services._shared.ports import RedeemResult, RefreshTokenLedger, TokenProvider
from todo_api.services.auth.dto import (
    AuthTokenConfig,
    LoginIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
    SessionOut,
    UserOut,
)

logger = logging.getLogger(__name__)

_REDEEM_FAILURES = {
    RedeemResult.NOT_FOUND: AuthFailure.INVALID_TOKEN,
    RedeemResult.REVOKED: AuthFailure.TOKEN_REVOKED,
    RedeemResult.EXPIRED: AuthFailure.TOKEN_EXPIRED,
}


def _missing(**values: str | None) -> list[str]:
    return [name for name, value in values.items() if not value]


class SessionService(BaseService):
    """
    Session lifecycle service (register / login / refresh / logout).

    Access tokens are minted through a pluggable :class:`TokenProvider`;
    refresh secrets live in a :class:`RefreshTokenLedger` which rotates them
    atomically, so every secret is redeemable at most once.

    Refresh-token lifecycle
    -----------------------
    issued → live → redeemed/revoked (terminal); live → expired (terminal).
    """

    def __init__(
        self,
        *,
        token_provider: TokenProvider,
        ledger: RefreshTokenLedger,
        token_cfg: AuthTokenConfig | None = None,
        ctx: ServiceContext | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param token_provider: Adapter for signing access tokens.
        :param ledger: Store of issued refresh tokens (atomic consume).
        :param token_cfg: Access/Refresh expiry configuration.
        :param ctx: Optional request-scoped context.
        """
        super().__init__(ctx=ctx)
        self.tokens = token_provider
        self.ledger = ledger
        self.cfg = token_cfg or AuthTokenConfig()

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #

    def register(self, dto: RegisterIn) -> UserOut:
        """
        Create a user with a hashed password.

        :param dto: Registration input.
        :returns: The new user's public view.
        :raises InvalidInputError: If username or password is empty.
        :raises ConflictError: If the username is already taken.
        """
        missing = _missing(username=dto.username, password=dto.password)
        if missing:
            raise InvalidInputError(fields=missing)

        try:
            with self.rw_uow() as uow:
                repo: UserRepository = uow.users
                if repo.exists_by_username(dto.username):
                    raise ConflictError("User", "User exists")
                user = repo.create(username=dto.username, password=dto.password)
                out = UserOut(id=user.id, username=user.username)
        except IntegrityError as exc:
            # Lost a race with a concurrent registration of the same name.
            if violates(exc, "uq_users_username", column="users.username"):
                raise ConflictError("User", "User exists") from exc
            raise

        logger.info("User registered", extra={"user_id": out.id})
        return out

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> SessionOut:
        """
        Authenticate credentials and issue a fresh token pair.

        Unknown usernames and wrong passwords fail identically.

        :param dto: Login input.
        :returns: Access/Refresh pair plus username.
        :raises InvalidInputError: If username or password is empty.
        :raises AuthenticationError: ``INVALID_CREDENTIALS``.
        """
        missing = _missing(username=dto.username, password=dto.password)
        if missing:
            raise InvalidInputError(fields=missing)

        with self.ro_uow() as uow:
            repo: UserRepository = uow.users
            user = repo.authenticate(dto.username, dto.password)
            if user is None:
                logger.warning("Login rejected", extra={"reason": "invalid_credentials"})
                raise AuthenticationError(AuthFailure.INVALID_CREDENTIALS)
            user_id, username = user.id, user.username

        session = self._issue_pair(user_id, username)
        logger.info("User logged in", extra={"user_id": user_id})
        return session

    # ------------------------------------------------------------------ #
    # Refresh with atomic rotation
    # ------------------------------------------------------------------ #

    def rotate_refresh(self, dto: RefreshIn) -> SessionOut:
        """
        Consume a refresh secret and emit a new token pair.

        The ledger revokes the presented entry in the same atomic step that
        validates it; of two concurrent calls with one secret, exactly one
        gets past this point.

        :param dto: Refresh input.
        :returns: New Access/Refresh pair plus username.
        :raises AuthenticationError: ``MISSING_TOKEN``, ``INVALID_TOKEN``,
            ``TOKEN_REVOKED``, ``TOKEN_EXPIRED`` or ``USER_MISSING``.
        """
        if not dto.refresh_token:
            raise AuthenticationError(AuthFailure.MISSING_TOKEN)

        redemption = self.ledger.consume(dto.refresh_token, now=self.now_utc())
        if not redemption.ok or redemption.token is None:
            failure = _REDEEM_FAILURES.get(redemption.result, AuthFailure.INVALID_TOKEN)
            extra: dict[str, Any] = {"reason": failure.name.lower()}
            if redemption.token is not None:
                extra["user_id"] = redemption.token.user_id
                extra["token_id"] = redemption.token.id
            logger.warning("Refresh rejected", extra=extra)
            raise AuthenticationError(failure)

        user_id = redemption.token.user_id
        with self.ro_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                logger.warning(
                    "Refresh rejected", extra={"reason": "user_missing", "user_id": user_id}
                )
                raise AuthenticationError(AuthFailure.USER_MISSING)
            username = user.username

        session = self._issue_pair(user_id, username)
        logger.info(
            "Refresh token rotated",
            extra={"user_id": user_id, "token_id": redemption.token.id},
        )
        return session

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn) -> None:
        """
        Revoke the presented refresh secret, if it is still unrevoked.

        Never fails for unknown, revoked or absent secrets: the outcome the
        caller wants (the secret no longer works) already holds.
        """
        if not dto.refresh_token:
            return
        token_hash = self.ledger.hasher.hash(dto.refresh_token)
        revoked = self.ledger.revoke_by_hash(token_hash, at=self.now_utc())
        logger.info("Logout", extra={"reason": "revoked" if revoked else "noop"})

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _issue_pair(self, user_id: int, username: str) -> SessionOut:
        """Record the refresh entry first, then sign the access token."""
        issued = self.ledger.issue(
            user_id=user_id, ttl=self.cfg.refresh_expires, now=self.now_utc()
        )
        access = self.tokens.create_access_token(
            identity=str(user_id),
            additional_claims={"username": username},
            expires_delta=self.cfg.access_expires,
        )
        return SessionOut(access_token=access, refresh_token=issued.raw_secret, username=username)
