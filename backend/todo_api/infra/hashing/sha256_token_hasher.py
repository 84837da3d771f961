# todo_api/infra/hashing/sha256_token_hasher.py
from __future__ import annotations

import hashlib
from dataclasses import dataclass

from todo_api.services._shared.ports import TokenHasher


@dataclass(frozen=True, slots=True)
class Sha256TokenHasher(TokenHasher):
    """SHA-256 hex digest of a refresh secret.

    Refresh secrets carry 384 random bits, so an unsalted fast hash is
    enough: the digest cannot be brute-forced back into a usable secret.
    """

    def hash(self, secret: str) -> str:
        return hashlib.sha256(secret.encode("utf-8")).hexdigest()
