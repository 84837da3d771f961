# todo_api/services/auth/authenticator.py
"""Bearer-token gate for protected requests.

Verification goes through the :class:`TokenProvider` only; no storage is
touched, so a protected request costs one signature check.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from todo_api.services._shared.errors import AuthenticationError, AuthFailure
from todo_api.services._shared.ports import TokenProvider, TokenVerificationError
from todo_api.services.auth.dto import Identity

logger = logging.getLogger(__name__)

BEARER_SCHEME = "Bearer"


@dataclass(slots=True)
class RequestAuthenticator:
    """Turn an ``Authorization`` header into an :class:`Identity`."""

    tokens: TokenProvider

    def authenticate_header(self, header: str | None) -> Identity:
        """
        Parse ``Bearer <token>`` and verify the token.

        :param header: Raw ``Authorization`` header value.
        :returns: Identity carried by the token.
        :raises AuthenticationError: ``NO_TOKEN``, ``MALFORMED_HEADER`` or
            ``INVALID_ACCESS_TOKEN``.
        """
        if not header:
            raise AuthenticationError(AuthFailure.NO_TOKEN)
        parts = header.split(" ")
        if len(parts) != 2 or parts[0] != BEARER_SCHEME or not parts[1]:
            raise AuthenticationError(AuthFailure.MALFORMED_HEADER)
        return self.authenticate(parts[1])

    def authenticate(self, token: str) -> Identity:
        """
        Verify an access token and extract the caller identity.

        :raises AuthenticationError: ``INVALID_ACCESS_TOKEN`` on any
            verification fault or unexpected claim shape.
        """
        try:
            claims = self.tokens.verify(token)
        except TokenVerificationError as exc:
            logger.info("Access token rejected", extra={"reason": exc.fault.name.lower()})
            raise AuthenticationError(AuthFailure.INVALID_ACCESS_TOKEN) from exc

        subject = claims.get("sub")
        username = claims.get("username")
        if not isinstance(subject, str) or not subject.isdigit() or not isinstance(username, str):
            logger.info("Access token rejected", extra={"reason": "bad_claims"})
            raise AuthenticationError(AuthFailure.INVALID_ACCESS_TOKEN)
        return Identity(user_id=int(subject), username=username)
