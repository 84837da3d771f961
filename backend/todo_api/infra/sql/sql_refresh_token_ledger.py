# todo_api/infra/sql/sql_refresh_token_ledger.py
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from todo_api.infra.hashing.sha256_token_hasher import Sha256TokenHasher
from todo_api.models.refresh_token import RefreshToken
from todo_api.services._shared.ports import (
    IssuedRefreshToken,
    RedeemResult,
    Redemption,
    RefreshTokenLedger,
    RefreshTokenView,
    TokenHasher,
    classify,
)
from todo_api.uow.sqlalchemy_uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork


def _as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything stored here is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _to_view(row: RefreshToken) -> RefreshTokenView:
    return RefreshTokenView(
        id=str(row.id),
        user_id=row.user_id,
        token_hash=row.token_hash,
        issued_at=_as_utc(row.issued_at),
        expires_at=_as_utc(row.expires_at),
        revoked_at=_as_utc(row.revoked_at) if row.revoked_at is not None else None,
    )


def _parse_id(token_id: str) -> int | None:
    return int(token_id) if str(token_id).isdigit() else None


@dataclass(slots=True)
class SqlRefreshTokenLedger(RefreshTokenLedger):
    """
    Ledger stored in the ``refresh_tokens`` table.

    Each call runs in its own Unit of Work so a rotation is committed before
    the replacement secret is handed out. ``consume`` relies on a single
    conditional ``UPDATE``; the database decides the one winner among
    concurrent callers.

    :param hasher: Digest applied to secrets before storage and lookup.
    :param uow_factory: Read-write Unit of Work factory.
    :param ro_uow_factory: Read-only Unit of Work factory.
    """

    hasher: TokenHasher = field(default_factory=Sha256TokenHasher)
    uow_factory: Callable[[], SQLAlchemyUnitOfWork] = SQLAlchemyUnitOfWork
    ro_uow_factory: Callable[[], SQLAlchemyReadOnlyUnitOfWork] = SQLAlchemyReadOnlyUnitOfWork

    def issue(self, *, user_id: int, ttl: timedelta, now: datetime) -> IssuedRefreshToken:
        now = _as_utc(now)
        raw = self.new_secret()
        expires_at = now + ttl
        with self.uow_factory() as uow:
            row = uow.refresh_tokens.add(
                RefreshToken(
                    user_id=user_id,
                    token_hash=self.hasher.hash(raw),
                    issued_at=now,
                    expires_at=expires_at,
                )
            )
            token_id = str(row.id)
        return IssuedRefreshToken(raw_secret=raw, token_id=token_id, expires_at=expires_at)

    def redeem(self, raw_secret: str, *, now: datetime) -> Redemption:
        with self.ro_uow_factory() as uow:
            row = uow.refresh_tokens.get_by_hash(self.hasher.hash(raw_secret))
            view = _to_view(row) if row is not None else None
        return Redemption(classify(view, _as_utc(now)), view)

    def consume(self, raw_secret: str, *, now: datetime) -> Redemption:
        now = _as_utc(now)
        token_hash = self.hasher.hash(raw_secret)
        with self.uow_factory() as uow:
            won = uow.refresh_tokens.revoke_live(token_hash, now=now) == 1
            row = uow.refresh_tokens.get_by_hash(token_hash)
            view = _to_view(row) if row is not None else None
        if won:
            return Redemption(RedeemResult.OK, view)
        result = classify(view, now)
        # Zero rows updated while the row still looks live means a concurrent
        # caller consumed it in between.
        if result is RedeemResult.OK:
            result = RedeemResult.REVOKED
        return Redemption(result, view)

    def revoke(self, token_id: str, *, at: datetime) -> bool:
        pk = _parse_id(token_id)
        if pk is None:
            return False
        with self.uow_factory() as uow:
            return uow.refresh_tokens.revoke_by_id(pk, at=_as_utc(at)) == 1

    def revoke_by_hash(self, token_hash: str, *, at: datetime) -> bool:
        with self.uow_factory() as uow:
            return uow.refresh_tokens.revoke_by_hash(token_hash, at=_as_utc(at)) == 1

    def get(self, token_id: str) -> RefreshTokenView | None:
        pk = _parse_id(token_id)
        if pk is None:
            return None
        with self.ro_uow_factory() as uow:
            row = uow.refresh_tokens.get(pk)
            return _to_view(row) if row is not None else None

    def purge(self, *, before: datetime) -> int:
        with self.uow_factory() as uow:
            return uow.refresh_tokens.purge(before=_as_utc(before))
