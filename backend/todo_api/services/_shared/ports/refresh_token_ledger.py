from __future__ import annotations

import secrets
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum, auto
from typing import Protocol

from todo_api.services._shared.ports.token_hasher import TokenHasher

#: Bytes of randomness in a refresh secret (384 bits).
SECRET_BYTES = 48


class RedeemResult(Enum):
    """Outcome of looking up (or consuming) a refresh secret."""

    OK = auto()
    NOT_FOUND = auto()
    REVOKED = auto()
    EXPIRED = auto()


@dataclass(frozen=True, slots=True)
class RefreshTokenView:
    """
    Read-model for a ledger entry.

    :ivar id: Ledger identifier (stringified so every backend agrees).
    :ivar user_id: Owner user id.
    :ivar token_hash: Digest of the secret; the secret itself is never kept.
    :ivar issued_at: Issuance instant (UTC).
    :ivar expires_at: Absolute expiry (UTC).
    :ivar revoked_at: Revocation instant, or ``None`` while unrevoked.
    """

    id: str
    user_id: int
    token_hash: str
    issued_at: datetime
    expires_at: datetime
    revoked_at: datetime | None = None

    @property
    def revoked(self) -> bool:
        return self.revoked_at is not None

    def is_live(self, now: datetime) -> bool:
        return self.revoked_at is None and self.expires_at > now


@dataclass(frozen=True, slots=True)
class Redemption:
    """Result of :meth:`RefreshTokenLedger.redeem` or ``consume``."""

    result: RedeemResult
    token: RefreshTokenView | None = None

    @property
    def ok(self) -> bool:
        return self.result is RedeemResult.OK


@dataclass(frozen=True, slots=True)
class IssuedRefreshToken:
    """A freshly issued refresh credential.

    ``raw_secret`` exists only here, on its way to the client; it is left
    out of ``repr`` so it cannot end up in a log line by accident.
    """

    raw_secret: str = field(repr=False)
    token_id: str
    expires_at: datetime


def classify(token: RefreshTokenView | None, now: datetime) -> RedeemResult:
    """Decide whether ``token`` may be redeemed at ``now``.

    Checks run in a fixed order: missing, then revoked, then expired. A token
    whose expiry equals ``now`` is already expired.
    """
    if token is None:
        return RedeemResult.NOT_FOUND
    if token.revoked_at is not None:
        return RedeemResult.REVOKED
    if token.expires_at <= now:
        return RedeemResult.EXPIRED
    return RedeemResult.OK


class RefreshTokenLedger(Protocol):
    """
    Durable record of issued refresh tokens.

    ``consume`` MUST be atomic: for one live secret, concurrent callers see
    exactly one ``OK`` and every other caller sees a failure. ``revoke`` and
    ``revoke_by_hash`` MUST only touch unrevoked entries so nothing is ever
    un-revoked or re-stamped.
    """

    hasher: TokenHasher

    def issue(self, *, user_id: int, ttl: timedelta, now: datetime) -> IssuedRefreshToken:
        """Store a new entry for ``user_id`` and return its secret once."""

    def redeem(self, raw_secret: str, *, now: datetime) -> Redemption:
        """Look the secret up and check validity without changing anything."""

    def consume(self, raw_secret: str, *, now: datetime) -> Redemption:
        """Atomically check validity and revoke; ``OK`` means this caller won."""

    def revoke(self, token_id: str, *, at: datetime) -> bool:
        """Revoke by id. :returns: ``True`` if this call revoked it."""

    def revoke_by_hash(self, token_hash: str, *, at: datetime) -> bool:
        """Revoke an unrevoked entry by digest. :returns: ``True`` if revoked now."""

    def get(self, token_id: str) -> RefreshTokenView | None:
        """Fetch a single entry snapshot (if present)."""

    def purge(self, *, before: datetime) -> int:
        """Drop entries that expired or were revoked before ``before``."""

    def new_secret(self) -> str:
        """Generate a fresh URL-safe refresh secret."""
        return secrets.token_urlsafe(SECRET_BYTES)


class InMemoryRefreshTokenLedger(RefreshTokenLedger):
    """
    In-memory ledger with atomic consume behavior.

    .. note::
       A single lock serialises every operation; meant for unit tests.
    """

    def __init__(self, hasher: TokenHasher) -> None:
        self.hasher = hasher
        self._by_hash: dict[str, RefreshTokenView] = {}
        self._hash_by_id: dict[str, str] = {}
        self._seq = 0
        self._lock = threading.Lock()

    def issue(self, *, user_id: int, ttl: timedelta, now: datetime) -> IssuedRefreshToken:
        raw = self.new_secret()
        token_hash = self.hasher.hash(raw)
        with self._lock:
            self._seq += 1
            token_id = f"rt-{self._seq}"
            self._by_hash[token_hash] = RefreshTokenView(
                id=token_id,
                user_id=user_id,
                token_hash=token_hash,
                issued_at=now,
                expires_at=now + ttl,
            )
            self._hash_by_id[token_id] = token_hash
        return IssuedRefreshToken(raw_secret=raw, token_id=token_id, expires_at=now + ttl)

    def redeem(self, raw_secret: str, *, now: datetime) -> Redemption:
        token = self._by_hash.get(self.hasher.hash(raw_secret))
        return Redemption(classify(token, now), token)

    def consume(self, raw_secret: str, *, now: datetime) -> Redemption:
        token_hash = self.hasher.hash(raw_secret)
        with self._lock:
            token = self._by_hash.get(token_hash)
            result = classify(token, now)
            if result is not RedeemResult.OK or token is None:
                return Redemption(result, token)
            consumed = replace(token, revoked_at=now)
            self._by_hash[token_hash] = consumed
            return Redemption(RedeemResult.OK, consumed)

    def revoke(self, token_id: str, *, at: datetime) -> bool:
        token_hash = self._hash_by_id.get(token_id)
        if token_hash is None:
            return False
        return self.revoke_by_hash(token_hash, at=at)

    def revoke_by_hash(self, token_hash: str, *, at: datetime) -> bool:
        with self._lock:
            token = self._by_hash.get(token_hash)
            if token is None or token.revoked_at is not None:
                return False
            self._by_hash[token_hash] = replace(token, revoked_at=at)
            return True

    def get(self, token_id: str) -> RefreshTokenView | None:
        token_hash = self._hash_by_id.get(token_id)
        return self._by_hash.get(token_hash) if token_hash else None

    def purge(self, *, before: datetime) -> int:
        with self._lock:
            stale = [
                token
                for token in self._by_hash.values()
                if token.expires_at < before
                or (token.revoked_at is not None and token.revoked_at < before)
            ]
            for token in stale:
                del self._by_hash[token.token_hash]
                del self._hash_by_id[token.id]
            return len(stale)
