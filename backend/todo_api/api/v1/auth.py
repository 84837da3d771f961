"""Session endpoints: register, login, refresh, logout and whoami."""

from __future__ import annotations

from flask import Blueprint

from todo_api.api.deps import (
    current_identity,
    get_session_service,
    json_body,
    json_response,
    require_auth,
    timing,
)
from todo_api.schemas import (
    LoginSchema,
    LogoutSchema,
    RefreshSchema,
    RegisterSchema,
    SessionSchema,
    UserSchema,
)
from todo_api.services.auth.dto import LoginIn, LogoutIn, RefreshIn, RegisterIn

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_schema = RefreshSchema()
logout_schema = LogoutSchema()
session_schema = SessionSchema()
user_schema = UserSchema()


@bp.post("/register")
@timing
def register():
    """Create an account and return its public representation."""

    data = register_schema.load(json_body())
    user = get_session_service().register(RegisterIn(**data))
    return json_response(user_schema.dump(user), status=201)


@bp.post("/login")
@timing
def login():
    """Verify credentials and issue an access/refresh pair."""

    data = login_schema.load(json_body())
    session = get_session_service().login(LoginIn(**data))
    return json_response(session_schema.dump(session))


@bp.post("/refresh")
@timing
def refresh():
    """Rotate a refresh token into a new pair; the old one stops working."""

    data = refresh_schema.load(json_body())
    session = get_session_service().rotate_refresh(RefreshIn(**data))
    return json_response(session_schema.dump(session))


@bp.post("/logout")
@timing
def logout():
    """Revoke the presented refresh token. Always 204."""

    data = logout_schema.load(json_body())
    get_session_service().logout(LogoutIn(**data))
    return "", 204


@bp.get("/whoami")
@require_auth
@timing
def whoami():
    """Return the identity asserted by the access token."""

    identity = current_identity()
    return json_response(user_schema.dump({"id": identity.user_id, "username": identity.username}))
