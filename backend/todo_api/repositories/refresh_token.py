"""Refresh-token repository with the ledger's conditional updates."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import delete, or_, select, update

from todo_api.models.refresh_token import RefreshToken
from todo_api.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Persistence for :class:`RefreshToken` rows.

    Every state change is a single conditional ``UPDATE`` so that the row
    filter, not a prior read, decides whether a caller wins.
    """

    model = RefreshToken

    def _filterable_fields(self):
        return {"user_id": RefreshToken.user_id, "token_hash": RefreshToken.token_hash}

    def get_by_hash(self, token_hash: str) -> RefreshToken | None:
        """Return the row for ``token_hash``, bypassing stale identity-map state."""
        stmt = (
            select(RefreshToken)
            .where(RefreshToken.token_hash == token_hash)
            .execution_options(populate_existing=True)
        )
        return cast(RefreshToken | None, self.session.execute(stmt).scalars().first())

    def revoke_live(self, token_hash: str, *, now: datetime) -> int:
        """Revoke the row only if it is still live at ``now``.

        :returns: Number of rows updated; ``1`` for exactly one concurrent caller.
        """
        stmt = (
            update(RefreshToken)
            .where(
                RefreshToken.token_hash == token_hash,
                RefreshToken.revoked_at.is_(None),
                RefreshToken.expires_at > now,
            )
            .values(revoked_at=now)
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def revoke_by_id(self, token_id: int, *, at: datetime) -> int:
        """Revoke an unrevoked row by id; already revoked rows are left alone."""
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.id == token_id, RefreshToken.revoked_at.is_(None))
            .values(revoked_at=at)
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def revoke_by_hash(self, token_hash: str, *, at: datetime) -> int:
        """Revoke an unrevoked row by digest; never rewrites an earlier revocation."""
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.token_hash == token_hash, RefreshToken.revoked_at.is_(None))
            .values(revoked_at=at)
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def purge(self, *, before: datetime) -> int:
        """Delete rows that expired or were revoked before ``before``."""
        stmt = (
            delete(RefreshToken)
            .where(
                or_(
                    RefreshToken.expires_at < before,
                    RefreshToken.revoked_at < before,
                )
            )
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)
