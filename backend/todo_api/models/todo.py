"""To-do items owned by a user."""

from __future__ import annotations

from datetime import date

from sqlalchemy import JSON, Boolean, Date, ForeignKey, Index, String, false
from sqlalchemy.orm import Mapped, mapped_column, validates

from todo_api.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin


class Todo(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """A single task in a user's private list."""

    __tablename__ = "todos"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    text: Mapped[str] = mapped_column(String(1000), nullable=False)
    done: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    __table_args__ = (Index("ix_todos_user_id", "user_id"),)

    @validates("text")
    def _validate_text(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Todo text is required.")
        return value
