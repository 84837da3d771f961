"""Refresh-token ledger rows."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from todo_api.core.extensions import db

from .base import PKMixin, ReprMixin


class RefreshToken(PKMixin, ReprMixin, db.Model):
    """
    One issued refresh credential.

    Only the SHA-256 digest of the secret is stored. A row is *live* while
    ``revoked_at`` is ``NULL`` and ``expires_at`` lies in the future; once
    revoked or expired it never becomes live again.

    Fields
    ------
    user_id : int
        Owning user.
    token_hash : str
        Hex digest of the raw secret handed to the client.
    issued_at : datetime
        Issuance instant (UTC).
    expires_at : datetime
        Absolute expiry instant (UTC).
    revoked_at : datetime | None
        Revocation instant, set by rotation or logout.
    """

    __tablename__ = "refresh_tokens"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    token_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("token_hash", name="uq_refresh_tokens_token_hash"),
        Index("ix_refresh_tokens_user_id", "user_id"),
    )
