# tests/unit/services/test_session_service.py
from __future__ import annotations

import logging
from datetime import timedelta

import pytest
from freezegun import freeze_time

from tests.factories.user import UserFactory
from todo_api.infra.hashing.sha256_token_hasher import Sha256TokenHasher
from todo_api.infra.sql.sql_refresh_token_ledger import SqlRefreshTokenLedger
from todo_api.models.user import User
from todo_api.services._shared.errors import (
    AuthenticationError,
    AuthFailure,
    ConflictError,
    InvalidInputError,
)
from todo_api.services._shared.ports import InMemoryRefreshTokenLedger, StubTokenProvider
from todo_api.services.auth.authenticator import RequestAuthenticator
from todo_api.services.auth.dto import (
    AuthTokenConfig,
    LoginIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
    SessionOut,
)
from todo_api.services.auth.service import SessionService


# ------------------------------ Fixtures ---------------------------------- #
@pytest.fixture()
def tokens() -> StubTokenProvider:
    return StubTokenProvider()


@pytest.fixture()
def ledger() -> InMemoryRefreshTokenLedger:
    return InMemoryRefreshTokenLedger(Sha256TokenHasher())


@pytest.fixture()
def service(session, tokens, ledger) -> SessionService:
    """SessionService wired to in-memory doubles (users still live in the DB)."""
    return SessionService(
        token_provider=tokens,
        ledger=ledger,
        token_cfg=AuthTokenConfig(
            access_expires=timedelta(minutes=15), refresh_expires=timedelta(days=30)
        ),
    )


@pytest.fixture()
def alice(service) -> None:
    service.register(RegisterIn(username="alice", password="secret123"))


# ----------------------------- Registration ------------------------------- #
class TestRegister:
    def test_creates_user_with_hashed_password(self, service, session):
        out = service.register(RegisterIn(username="alice", password="secret123"))

        assert out.username == "alice"
        user = session.get(User, out.id)
        assert user.password_hash != "secret123"
        assert user.verify_password("secret123")

    @pytest.mark.parametrize(
        "username,password,missing",
        [("", "pw", ["username"]), ("bob", "", ["password"]), ("", "", ["username", "password"])],
    )
    def test_missing_fields(self, service, username, password, missing):
        with pytest.raises(InvalidInputError) as exc:
            service.register(RegisterIn(username=username, password=password))
        assert list(exc.value.fields) == missing

    def test_duplicate_username(self, service, alice):
        with pytest.raises(ConflictError) as exc:
            service.register(RegisterIn(username="alice", password="other"))
        assert str(exc.value) == "User exists"

    def test_duplicate_detected_by_constraint_when_precheck_misses(
        self, service, alice, monkeypatch
    ):
        # Simulates a concurrent insert between the check and the flush.
        from todo_api.repositories.user import UserRepository

        monkeypatch.setattr(UserRepository, "exists_by_username", lambda self, u: False)
        with pytest.raises(ConflictError):
            service.register(RegisterIn(username="alice", password="other"))

    def test_usernames_are_case_sensitive(self, service, alice):
        out = service.register(RegisterIn(username="Alice", password="secret123"))
        assert out.username == "Alice"


# -------------------------------- Login ----------------------------------- #
class TestLogin:
    def test_issues_pair(self, service, alice, ledger, tokens):
        out = service.login(LoginIn(username="alice", password="secret123"))

        assert isinstance(out, SessionOut)
        assert out.username == "alice"
        assert tokens.verify(out.access_token)["username"] == "alice"
        redemption = ledger.redeem(out.refresh_token, now=service.now_utc())
        assert redemption.ok
        assert str(redemption.token.user_id) == tokens.verify(out.access_token)["sub"]

    def test_access_token_accepted_by_authenticator(self, service, alice, tokens):
        out = service.login(LoginIn(username="alice", password="secret123"))

        identity = RequestAuthenticator(tokens=tokens).authenticate(out.access_token)
        assert identity.username == "alice"

    def test_wrong_password_and_unknown_user_fail_identically(self, service, alice):
        with pytest.raises(AuthenticationError) as wrong:
            service.login(LoginIn(username="alice", password="nope"))
        with pytest.raises(AuthenticationError) as unknown:
            service.login(LoginIn(username="mallory", password="nope"))

        assert wrong.value.failure is unknown.value.failure is AuthFailure.INVALID_CREDENTIALS
        assert str(wrong.value) == str(unknown.value) == "Invalid credentials"

    def test_missing_fields(self, service):
        with pytest.raises(InvalidInputError):
            service.login(LoginIn(username="", password="x"))

    def test_each_login_gets_its_own_refresh_token(self, service, alice):
        a = service.login(LoginIn(username="alice", password="secret123"))
        b = service.login(LoginIn(username="alice", password="secret123"))

        assert a.refresh_token != b.refresh_token


# ------------------------------- Refresh ---------------------------------- #
class TestRotateRefresh:
    def test_rotates_and_blocks_reuse(self, service, alice):
        first = service.login(LoginIn(username="alice", password="secret123"))

        second = service.rotate_refresh(RefreshIn(refresh_token=first.refresh_token))
        assert second.refresh_token != first.refresh_token
        assert second.username == "alice"

        with pytest.raises(AuthenticationError) as exc:
            service.rotate_refresh(RefreshIn(refresh_token=first.refresh_token))
        assert exc.value.failure is AuthFailure.TOKEN_REVOKED

        # the replacement is still good
        assert service.rotate_refresh(RefreshIn(refresh_token=second.refresh_token))

    @pytest.mark.parametrize("raw", [None, ""])
    def test_missing_token(self, service, raw):
        with pytest.raises(AuthenticationError) as exc:
            service.rotate_refresh(RefreshIn(refresh_token=raw))
        assert exc.value.failure is AuthFailure.MISSING_TOKEN

    def test_unknown_token(self, service):
        with pytest.raises(AuthenticationError) as exc:
            service.rotate_refresh(RefreshIn(refresh_token="made-up"))
        assert exc.value.failure is AuthFailure.INVALID_TOKEN

    def test_expired_token(self, service, alice):
        with freeze_time("2030-01-01 00:00:00") as frozen:
            out = service.login(LoginIn(username="alice", password="secret123"))
            frozen.tick(timedelta(days=30))
            with pytest.raises(AuthenticationError) as exc:
                service.rotate_refresh(RefreshIn(refresh_token=out.refresh_token))
        assert exc.value.failure is AuthFailure.TOKEN_EXPIRED

    def test_user_missing(self, service, ledger):
        issued = ledger.issue(user_id=987654, ttl=timedelta(days=1), now=service.now_utc())

        with pytest.raises(AuthenticationError) as exc:
            service.rotate_refresh(RefreshIn(refresh_token=issued.raw_secret))
        assert exc.value.failure is AuthFailure.USER_MISSING

    def test_failures_share_one_message(self):
        messages = {
            AuthenticationError(f).message
            for f in (
                AuthFailure.INVALID_TOKEN,
                AuthFailure.TOKEN_REVOKED,
                AuthFailure.TOKEN_EXPIRED,
                AuthFailure.USER_MISSING,
            )
        }
        assert messages == {"Invalid refresh token"}

    def test_secret_never_logged(self, service, alice, caplog):
        caplog.set_level(logging.DEBUG)
        out = service.login(LoginIn(username="alice", password="secret123"))
        service.rotate_refresh(RefreshIn(refresh_token=out.refresh_token))
        with pytest.raises(AuthenticationError):
            service.rotate_refresh(RefreshIn(refresh_token=out.refresh_token))

        for record in caplog.records:
            rendered = record.getMessage() + repr(record.__dict__)
            assert out.refresh_token not in rendered
            assert "secret123" not in rendered


# ------------------------------- Logout ----------------------------------- #
class TestLogout:
    def test_revokes_presented_token(self, service, alice):
        out = service.login(LoginIn(username="alice", password="secret123"))

        service.logout(LogoutIn(refresh_token=out.refresh_token))

        with pytest.raises(AuthenticationError) as exc:
            service.rotate_refresh(RefreshIn(refresh_token=out.refresh_token))
        assert exc.value.failure is AuthFailure.TOKEN_REVOKED

    def test_only_presented_token_is_revoked(self, service, alice):
        a = service.login(LoginIn(username="alice", password="secret123"))
        b = service.login(LoginIn(username="alice", password="secret123"))

        service.logout(LogoutIn(refresh_token=a.refresh_token))

        assert service.rotate_refresh(RefreshIn(refresh_token=b.refresh_token))

    @pytest.mark.parametrize("raw", [None, "", "never-issued"])
    def test_noop_for_absent_or_unknown(self, service, raw):
        service.logout(LogoutIn(refresh_token=raw))

    def test_twice_is_fine(self, service, alice):
        out = service.login(LoginIn(username="alice", password="secret123"))

        service.logout(LogoutIn(refresh_token=out.refresh_token))
        service.logout(LogoutIn(refresh_token=out.refresh_token))


# ------------------------- With the SQL ledger ---------------------------- #
class TestWithSqlLedger:
    def test_full_rotation_cycle(self, session, tokens):
        UserFactory(username="dave", password="pw-dave")
        session.commit()
        service = SessionService(token_provider=tokens, ledger=SqlRefreshTokenLedger())

        first = service.login(LoginIn(username="dave", password="pw-dave"))
        second = service.rotate_refresh(RefreshIn(refresh_token=first.refresh_token))

        with pytest.raises(AuthenticationError) as exc:
            service.rotate_refresh(RefreshIn(refresh_token=first.refresh_token))
        assert exc.value.failure is AuthFailure.TOKEN_REVOKED

        service.logout(LogoutIn(refresh_token=second.refresh_token))
        with pytest.raises(AuthenticationError):
            service.rotate_refresh(RefreshIn(refresh_token=second.refresh_token))
