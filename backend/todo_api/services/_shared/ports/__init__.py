"""
todo_api.services._shared.ports
===============================

*Ports* (hexagonal interfaces) for the token machinery the session layer
depends on. Concrete adapters live under ``todo_api.infra``.

Modules
-------
- :mod:`token_provider`:
    :class:`~.TokenProvider`, signing and verifying access tokens.
- :mod:`token_hasher`:
    :class:`~.TokenHasher`, one-way digest of refresh secrets.
- :mod:`refresh_token_ledger`:
    :class:`~.RefreshTokenLedger` and its value types, plus an in-memory
    implementation used by tests.
"""

from __future__ import annotations

from .refresh_token_ledger import (
    InMemoryRefreshTokenLedger,
    IssuedRefreshToken,
    RedeemResult,
    Redemption,
    RefreshTokenLedger,
    RefreshTokenView,
    classify,
)
from .token_hasher import TokenHasher
from .token_provider import (
    StubTokenProvider,
    TokenFault,
    TokenProvider,
    TokenVerificationError,
)

__all__ = [
    "TokenProvider",
    "TokenFault",
    "TokenVerificationError",
    "StubTokenProvider",
    "TokenHasher",
    "RefreshTokenLedger",
    "RefreshTokenView",
    "IssuedRefreshToken",
    "RedeemResult",
    "Redemption",
    "InMemoryRefreshTokenLedger",
    "classify",
]
