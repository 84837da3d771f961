"""Todo repository; every query is scoped to the owning user."""

from __future__ import annotations

from typing import cast

from sqlalchemy import select

from todo_api.models.todo import Todo
from todo_api.repositories.base import BaseRepository


class TodoRepository(BaseRepository[Todo]):
    model = Todo

    def _filterable_fields(self):
        return {"user_id": Todo.user_id, "done": Todo.done}

    def _updatable_fields(self):
        return {"text", "done", "due_date", "tags"}

    def list_for_owner(self, owner_id: int) -> list[Todo]:
        """Return the owner's todos in creation order."""
        stmt = select(Todo).where(Todo.user_id == owner_id).order_by(Todo.id)
        return list(self.session.execute(stmt).scalars())

    def get_owned(self, owner_id: int, todo_id: int) -> Todo | None:
        """Return the todo only when ``owner_id`` owns it."""
        stmt = select(Todo).where(Todo.id == todo_id, Todo.user_id == owner_id)
        return cast(Todo | None, self.session.execute(stmt).scalars().first())
