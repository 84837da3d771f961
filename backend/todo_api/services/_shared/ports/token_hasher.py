from __future__ import annotations

from typing import Protocol


class TokenHasher(Protocol):
    """Port for the one-way digest applied to refresh secrets before storage.

    Implementations MUST be deterministic (same secret, same digest) so the
    ledger can look rows up by digest, and MUST NOT be reversible.
    """

    def hash(self, secret: str) -> str: ...
