# todo_api/infra/jwt/flask_jwt_token_provider.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, cast

import jwt as pyjwt
from flask_jwt_extended import create_access_token as _create_access
from flask_jwt_extended import decode_token as _decode
from flask_jwt_extended.exceptions import JWTDecodeError

from todo_api.services._shared.ports import TokenFault, TokenProvider, TokenVerificationError

ACCESS_TOKEN_TYPE = "access"


@dataclass(slots=True)
class JWTTokenProvider(TokenProvider):
    """
    Adapter for Flask-JWT-Extended (HS256 over ``JWT_SECRET_KEY``).

    .. note::
       Requires an active Flask app context with proper JWT settings.
    """

    def create_access_token(
        self,
        *,
        identity: str,
        additional_claims: dict[str, Any] | None = None,
        expires_delta: timedelta | None = None,
    ) -> str:
        # ``expires_delta=None`` falls back to JWT_ACCESS_TOKEN_EXPIRES.
        return cast(
            str,
            _create_access(
                identity=identity,
                additional_claims=additional_claims or {},
                expires_delta=expires_delta,
                fresh=False,
            ),
        )

    def verify(self, token: str) -> dict[str, Any]:
        # Order matters: both specific errors subclass InvalidTokenError.
        try:
            claims = cast(dict[str, Any], _decode(token))
        except pyjwt.ExpiredSignatureError as exc:
            raise TokenVerificationError(TokenFault.EXPIRED) from exc
        except pyjwt.InvalidSignatureError as exc:
            raise TokenVerificationError(TokenFault.INVALID_SIGNATURE) from exc
        except (pyjwt.InvalidTokenError, JWTDecodeError) as exc:
            raise TokenVerificationError(TokenFault.MALFORMED) from exc

        if claims.get("type") != ACCESS_TOKEN_TYPE:
            raise TokenVerificationError(TokenFault.MALFORMED)
        return claims
