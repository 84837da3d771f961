"""Authentication-related Marshmallow schemas.

Loaded payloads are plain dicts keyed by the Python names; the camelCase
wire names the browser client uses are mapped through ``data_key``.
"""

from __future__ import annotations

from typing import Any

from marshmallow import EXCLUDE, Schema, fields, post_load, validate


class CredentialsSchema(Schema):
    """Username/password pair; both must be non-empty strings."""

    username = fields.String(required=True, validate=validate.Length(min=1, max=150))
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=1))


class RegisterSchema(CredentialsSchema):
    """Input payload for account registration."""


class LoginSchema(CredentialsSchema):
    """Input payload for authenticating a user."""


class RefreshSchema(Schema):
    """Input payload for rotating a refresh token.

    An absent or null token loads as ``None`` and is rejected by the session
    service with its own message.
    """

    refresh_token = fields.String(data_key="refreshToken", load_default=None, allow_none=True)


class LogoutSchema(Schema):
    """Input payload for logout.

    Never fails: extra members are ignored and a token that is not a string
    loads as ``None``, which the session service treats as nothing to revoke.
    """

    class Meta:
        unknown = EXCLUDE

    refresh_token = fields.Raw(data_key="refreshToken", load_default=None, allow_none=True)

    @post_load
    def only_string_tokens(self, data: dict[str, Any], **_: Any) -> dict[str, Any]:
        if not isinstance(data.get("refresh_token"), str):
            data["refresh_token"] = None
        return data


class SessionSchema(Schema):
    """Response payload for login and refresh."""

    class Meta:
        ordered = True

    token = fields.String(attribute="access_token", required=True)
    refresh_token = fields.String(data_key="refreshToken", required=True)
    username = fields.String(required=True)


class UserSchema(Schema):
    """Public representation of a user (registration and whoami)."""

    class Meta:
        ordered = True

    id = fields.Integer(required=True)
    username = fields.String(required=True)
