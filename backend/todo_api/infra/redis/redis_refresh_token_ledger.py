# comments in English; reST docstrings
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import redis  # type: ignore[import-untyped]

from todo_api.infra.hashing.sha256_token_hasher import Sha256TokenHasher
from todo_api.services._shared.ports import (
    IssuedRefreshToken,
    RedeemResult,
    Redemption,
    RefreshTokenLedger,
    RefreshTokenView,
    TokenHasher,
    classify,
)


def _b(value: bytes | str | None, default: str = "") -> str:
    if value is None:
        return default
    return value.decode() if isinstance(value, bytes | bytearray) else str(value)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _dt(raw: str) -> datetime | None:
    return datetime.fromisoformat(raw) if raw else None


@dataclass(slots=True)
class RedisRefreshTokenLedger(RefreshTokenLedger):
    """
    Redis-backed refresh token ledger with atomic consume.

    Layout
    ------
    ``rt:{hash}``
        Hash with ``id``, ``user_id``, ``issued_at``, ``expires_at`` and
        ``revoked_at`` (empty while unrevoked).
    ``rt:id:{id}``
        String pointing at the token hash.

    Keys outlive ``expires_at`` by ``retention`` so an expired secret is still
    reported as expired rather than unknown.

    :param r: A Redis client (already connected).
    :param hasher: Digest applied to secrets.
    :param retention: Extra lifetime granted to keys past expiry.
    :param max_attempts: Optimistic-lock retries before giving up.
    """

    r: redis.Redis
    hasher: TokenHasher = field(default_factory=Sha256TokenHasher)
    retention: timedelta = timedelta(days=1)
    max_attempts: int = 16

    # -------------------- helpers --------------------

    @staticmethod
    def _k(token_hash: str) -> str:
        return f"rt:{token_hash}"

    @staticmethod
    def _kid(token_id: str) -> str:
        return f"rt:id:{token_id}"

    def _ttl(self, expires_at: datetime, now: datetime) -> int:
        return max(1, int((expires_at - now + self.retention).total_seconds()))

    @staticmethod
    def _view(token_hash: str, h: Mapping[bytes, bytes]) -> RefreshTokenView | None:
        if not h:
            return None
        return RefreshTokenView(
            id=_b(h.get(b"id")),
            user_id=int(_b(h.get(b"user_id"), "0")),
            token_hash=token_hash,
            issued_at=datetime.fromisoformat(_b(h.get(b"issued_at"))),
            expires_at=datetime.fromisoformat(_b(h.get(b"expires_at"))),
            revoked_at=_dt(_b(h.get(b"revoked_at"))),
        )

    def _hash_for_id(self, token_id: str) -> str | None:
        raw = self.r.get(self._kid(token_id))
        return _b(raw) if raw else None

    def _transition(
        self, token_hash: str, *, at: datetime, require_live: bool
    ) -> tuple[bool, RefreshTokenView | None]:
        """Stamp ``revoked_at`` on an unrevoked entry under WATCH/MULTI.

        With ``require_live`` the entry must also be unexpired at ``at``.

        :returns: Whether this call changed the entry, plus the last snapshot.
        :raises RuntimeError: When concurrent writers keep winning the race.
        """
        key = self._k(token_hash)
        for _ in range(self.max_attempts):
            try:
                with self.r.pipeline() as p:
                    p.watch(key)
                    view = self._view(token_hash, p.hgetall(key))
                    if view is None or view.revoked:
                        p.unwatch()
                        return False, view
                    if require_live and not view.is_live(at):
                        p.unwatch()
                        return False, view
                    p.multi()
                    p.hset(key, "revoked_at", at.isoformat())
                    p.execute()
                    return True, RefreshTokenView(
                        id=view.id,
                        user_id=view.user_id,
                        token_hash=view.token_hash,
                        issued_at=view.issued_at,
                        expires_at=view.expires_at,
                        revoked_at=at,
                    )
            except redis.WatchError:
                # Concurrent modification detected; read again
                continue
        raise RuntimeError("Refresh token ledger is under contention; retry later")

    # -------------------- API ------------------------

    def issue(self, *, user_id: int, ttl: timedelta, now: datetime) -> IssuedRefreshToken:
        """
        Record the entry *before* the secret is handed to the client.

        There is no window where a secret exists without a server-side record.
        """
        now = _as_utc(now)
        raw = self.new_secret()
        token_hash = self.hasher.hash(raw)
        expires_at = now + ttl
        token_id = str(self.r.incr("rt:seq"))
        key_ttl = self._ttl(expires_at, now)

        pipe = self.r.pipeline(transaction=True)
        pipe.hset(
            self._k(token_hash),
            mapping={
                "id": token_id,
                "user_id": str(user_id),
                "issued_at": now.isoformat(),
                "expires_at": expires_at.isoformat(),
                "revoked_at": "",
            },
        )
        pipe.expire(self._k(token_hash), key_ttl)
        pipe.set(self._kid(token_id), token_hash, ex=key_ttl)
        pipe.execute()
        return IssuedRefreshToken(raw_secret=raw, token_id=token_id, expires_at=expires_at)

    def redeem(self, raw_secret: str, *, now: datetime) -> Redemption:
        token_hash = self.hasher.hash(raw_secret)
        view = self._view(token_hash, self.r.hgetall(self._k(token_hash)))
        return Redemption(classify(view, _as_utc(now)), view)

    def consume(self, raw_secret: str, *, now: datetime) -> Redemption:
        now = _as_utc(now)
        changed, view = self._transition(self.hasher.hash(raw_secret), at=now, require_live=True)
        if changed:
            return Redemption(RedeemResult.OK, view)
        return Redemption(classify(view, now), view)

    def revoke(self, token_id: str, *, at: datetime) -> bool:
        token_hash = self._hash_for_id(token_id)
        if token_hash is None:
            return False
        return self.revoke_by_hash(token_hash, at=at)

    def revoke_by_hash(self, token_hash: str, *, at: datetime) -> bool:
        changed, _ = self._transition(token_hash, at=_as_utc(at), require_live=False)
        return changed

    def get(self, token_id: str) -> RefreshTokenView | None:
        token_hash = self._hash_for_id(token_id)
        if token_hash is None:
            return None
        return self._view(token_hash, self.r.hgetall(self._k(token_hash)))

    def purge(self, *, before: datetime) -> int:
        before = _as_utc(before)
        removed = 0
        for id_key in self.r.scan_iter(match="rt:id:*"):
            token_hash = _b(self.r.get(id_key))
            view = self._view(token_hash, self.r.hgetall(self._k(token_hash))) if token_hash else None
            if view is None:
                # Hash already gone; only the pointer is left
                self.r.delete(id_key)
                continue
            stale = view.expires_at < before or (
                view.revoked_at is not None and view.revoked_at < before
            )
            if not stale:
                continue
            self.r.delete(self._k(token_hash), id_key)
            removed += 1
        return removed
