from __future__ import annotations

from datetime import UTC, datetime, timedelta
from enum import Enum, auto
from typing import Any, Protocol


class TokenFault(Enum):
    """Why an access token failed verification."""

    INVALID_SIGNATURE = auto()
    EXPIRED = auto()
    MALFORMED = auto()


class TokenVerificationError(Exception):
    """Raised by :meth:`TokenProvider.verify`; never carries the token itself."""

    def __init__(self, fault: TokenFault) -> None:
        super().__init__(fault.name.lower())
        self.fault = fault


class TokenProvider(Protocol):
    """Port for signing and verifying stateless access tokens."""

    def create_access_token(
        self,
        *,
        identity: str,
        additional_claims: dict[str, Any] | None = None,
        expires_delta: timedelta | None = None,
    ) -> str: ...

    def verify(self, token: str) -> dict[str, Any]:
        """Return the claims of a valid access token.

        :raises TokenVerificationError: On a bad signature, an expired token
            or anything that does not decode as an access token.
        """
        ...


class StubTokenProvider(TokenProvider):
    """Deterministic token provider used in unit tests.

    Tokens are opaque strings remembered in a dict; expiry is checked against
    the wall clock at verification time, so ``freezegun`` can move it.
    """

    def __init__(self) -> None:
        self._seq = 0
        self._issued: dict[str, dict[str, Any]] = {}

    def create_access_token(
        self,
        *,
        identity: str,
        additional_claims: dict[str, Any] | None = None,
        expires_delta: timedelta | None = None,
    ) -> str:
        self._seq += 1
        token = f"access.{identity}.{self._seq}"
        now = datetime.now(UTC)
        payload: dict[str, Any] = {
            "sub": identity,
            "type": "access",
            "iat": int(now.timestamp()),
            "exp": int((now + (expires_delta or timedelta(minutes=15))).timestamp()),
        }
        if additional_claims:
            payload.update(additional_claims)
        self._issued[token] = payload
        return token

    def verify(self, token: str) -> dict[str, Any]:
        payload = self._issued.get(token)
        if payload is None:
            raise TokenVerificationError(TokenFault.MALFORMED)
        if payload["exp"] <= int(datetime.now(UTC).timestamp()):
            raise TokenVerificationError(TokenFault.EXPIRED)
        return dict(payload)
