"""Unit tests for the ledger value types and the in-memory ledger."""

from __future__ import annotations

import threading
from datetime import UTC, datetime, timedelta

import pytest

from todo_api.infra.hashing.sha256_token_hasher import Sha256TokenHasher
from todo_api.services._shared.ports import (
    InMemoryRefreshTokenLedger,
    RedeemResult,
    RefreshTokenView,
    classify,
)

NOW = datetime(2030, 1, 1, tzinfo=UTC)
TTL = timedelta(days=30)


@pytest.fixture()
def ledger() -> InMemoryRefreshTokenLedger:
    return InMemoryRefreshTokenLedger(Sha256TokenHasher())


def _view(**overrides) -> RefreshTokenView:
    base = dict(
        id="1", user_id=1, token_hash="h", issued_at=NOW, expires_at=NOW + TTL, revoked_at=None
    )
    base.update(overrides)
    return RefreshTokenView(**base)


class TestClassify:
    def test_order_is_missing_revoked_expired(self):
        assert classify(None, NOW) is RedeemResult.NOT_FOUND
        both = _view(revoked_at=NOW, expires_at=NOW - timedelta(seconds=1))
        assert classify(both, NOW) is RedeemResult.REVOKED
        assert classify(_view(expires_at=NOW), NOW) is RedeemResult.EXPIRED
        assert classify(_view(), NOW) is RedeemResult.OK


class TestInMemoryLedger:
    def test_issue_stores_hash_not_secret(self, ledger):
        issued = ledger.issue(user_id=7, ttl=TTL, now=NOW)

        view = ledger.get(issued.token_id)
        assert view is not None
        assert view.user_id == 7
        assert view.token_hash == ledger.hasher.hash(issued.raw_secret)
        assert view.token_hash != issued.raw_secret
        assert view.expires_at == NOW + TTL
        assert issued.raw_secret not in repr(issued)

    def test_secrets_are_unique_and_long(self, ledger):
        secrets_ = {ledger.issue(user_id=1, ttl=TTL, now=NOW).raw_secret for _ in range(50)}

        assert len(secrets_) == 50
        assert all(len(s) >= 64 for s in secrets_)

    def test_redeem_does_not_mutate(self, ledger):
        issued = ledger.issue(user_id=1, ttl=TTL, now=NOW)

        assert ledger.redeem(issued.raw_secret, now=NOW).ok
        assert ledger.redeem(issued.raw_secret, now=NOW).ok

    def test_consume_is_single_use(self, ledger):
        issued = ledger.issue(user_id=1, ttl=TTL, now=NOW)

        assert ledger.consume(issued.raw_secret, now=NOW).ok
        second = ledger.consume(issued.raw_secret, now=NOW)
        assert second.result is RedeemResult.REVOKED

    def test_consume_expired(self, ledger):
        issued = ledger.issue(user_id=1, ttl=TTL, now=NOW)

        result = ledger.consume(issued.raw_secret, now=NOW + TTL)
        assert result.result is RedeemResult.EXPIRED

    def test_consume_unknown(self, ledger):
        assert ledger.consume("nope", now=NOW).result is RedeemResult.NOT_FOUND

    def test_concurrent_consume_has_exactly_one_winner(self, ledger):
        issued = ledger.issue(user_id=1, ttl=TTL, now=NOW)
        barrier = threading.Barrier(8)
        results: list[RedeemResult] = []

        def worker():
            barrier.wait()
            results.append(ledger.consume(issued.raw_secret, now=NOW).result)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(RedeemResult.OK) == 1
        assert results.count(RedeemResult.REVOKED) == 7

    def test_revoke_is_idempotent(self, ledger):
        issued = ledger.issue(user_id=1, ttl=TTL, now=NOW)

        assert ledger.revoke(issued.token_id, at=NOW) is True
        assert ledger.revoke(issued.token_id, at=NOW + timedelta(hours=1)) is False
        assert ledger.get(issued.token_id).revoked_at == NOW
        assert ledger.revoke("rt-unknown", at=NOW) is False

    def test_purge(self, ledger):
        old = ledger.issue(user_id=1, ttl=timedelta(days=1), now=NOW - timedelta(days=40))
        live = ledger.issue(user_id=1, ttl=TTL, now=NOW)

        assert ledger.purge(before=NOW - timedelta(days=30)) == 1
        assert ledger.get(old.token_id) is None
        assert ledger.get(live.token_id) is not None
