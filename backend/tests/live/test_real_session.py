# tests/live/test_real_session.py
from __future__ import annotations

import threading
from datetime import timedelta

from freezegun import freeze_time

from todo_api.infra.sql.sql_refresh_token_ledger import SqlRefreshTokenLedger
from todo_api.models.user import User
from todo_api.services._shared.ports import StubTokenProvider
from todo_api.services.auth.dto import LoginIn, RefreshIn, RegisterIn
from todo_api.services.auth.service import SessionService
from todo_api.uow import SQLAlchemyReadOnlyUnitOfWork as ROuow
from todo_api.uow import SQLAlchemyUnitOfWork as RWuow


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def test_write_after_read_only_scope(live_app):
    with live_app.app_context():
        with ROuow() as uow:
            assert uow.users.get_by_username("nobody") is None

        with RWuow() as uow:
            user = User(username="after-read")
            user.password = "pw"
            uow.users.add(user)

        with ROuow() as uow:
            assert uow.users.get_by_username("after-read") is not None


def test_login_and_rotation_through_service(live_app):
    with live_app.app_context():
        service = SessionService(token_provider=StubTokenProvider(), ledger=SqlRefreshTokenLedger())
        service.register(RegisterIn(username="alice", password="secret123"))

        first = service.login(LoginIn(username="alice", password="secret123"))
        second = service.rotate_refresh(RefreshIn(refresh_token=first.refresh_token))

        assert second.username == "alice"
        assert second.refresh_token != first.refresh_token


def test_session_lifecycle_over_http(live_client):
    with freeze_time("2030-06-01 08:00:00") as frozen:
        resp = live_client.post("/api/register", json={"username": "alice", "password": "secret123"})
        assert resp.status_code == 201

        resp = live_client.post("/api/login", json={"username": "alice", "password": "secret123"})
        assert resp.status_code == 200, resp.get_json()
        first = resp.get_json()

        assert live_client.get("/api/whoami", headers=_bearer(first["token"])).status_code == 200

        frozen.tick(timedelta(minutes=16))
        assert live_client.get("/api/whoami", headers=_bearer(first["token"])).status_code == 401

        resp = live_client.post("/api/refresh", json={"refreshToken": first["refreshToken"]})
        assert resp.status_code == 200, resp.get_json()
        second = resp.get_json()
        assert live_client.get("/api/whoami", headers=_bearer(second["token"])).status_code == 200

        replay = live_client.post("/api/refresh", json={"refreshToken": first["refreshToken"]})
        assert replay.status_code == 401
        assert replay.get_json()["error"] == "Invalid refresh token"


def test_concurrent_refresh_has_exactly_one_winner(live_app):
    client = live_app.test_client()
    client.post("/api/register", json={"username": "bob", "password": "pw-bob"})
    token = client.post(
        "/api/login", json={"username": "bob", "password": "pw-bob"}
    ).get_json()["refreshToken"]

    barrier = threading.Barrier(6)
    statuses: list[int] = []
    lock = threading.Lock()

    def worker():
        own_client = live_app.test_client()
        barrier.wait()
        status = own_client.post("/api/refresh", json={"refreshToken": token}).status_code
        with lock:
            statuses.append(status)

    threads = [threading.Thread(target=worker) for _ in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(statuses) == [200, 401, 401, 401, 401, 401]
