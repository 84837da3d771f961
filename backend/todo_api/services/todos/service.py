# todo_api/services/todos/service.py
"""Per-user todo list operations.

Every query is filtered by the caller's user id (``ctx.actor_id``); a todo
owned by someone else is indistinguishable from a missing one.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from todo_api.models.todo import Todo
from todo_api.repositories.todo import TodoRepository
from todo_api.services._shared.base import BaseService
from todo_api.services._shared.errors import (
    AuthenticationError,
    AuthFailure,
    InvalidInputError,
    NotFoundError,
)
from todo_api.services.todos.dto import TodoCreateIn, TodoOut, TodoUpdateIn

logger = logging.getLogger(__name__)

_UPDATABLE = ("text", "done", "due_date", "tags")


def normalize_tags(raw: Any) -> list[str]:
    """Coerce client tag input into a clean list of strings.

    Accepts a list, a JSON-encoded list or a comma-separated string; blanks
    are dropped and every entry is stripped. Anything else yields ``[]``.
    """
    if not raw:
        return []
    if isinstance(raw, list | tuple):
        return [str(t).strip() for t in raw if str(t).strip()]
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except ValueError:
            return [t.strip() for t in raw.split(",") if t.strip()]
        if isinstance(parsed, list):
            return normalize_tags(parsed)
    return []


def todo_to_out(todo: Todo) -> TodoOut:
    return TodoOut(
        id=todo.id,
        text=todo.text,
        done=bool(todo.done),
        due_date=todo.due_date,
        tags=normalize_tags(todo.tags),
    )


class TodoService(BaseService):
    """CRUD over the authenticated user's todos."""

    def _owner(self) -> int:
        if self.ctx.actor_id is None:
            raise AuthenticationError(AuthFailure.NO_TOKEN)
        return self.ctx.actor_id

    def list_todos(self) -> list[TodoOut]:
        owner_id = self._owner()
        with self.ro_uow() as uow:
            repo: TodoRepository = uow.todos
            return [todo_to_out(t) for t in repo.list_for_owner(owner_id)]

    def create(self, dto: TodoCreateIn) -> TodoOut:
        """Create a todo for the caller.

        :raises InvalidInputError: When ``text`` is blank.
        """
        owner_id = self._owner()
        if not dto.text or not dto.text.strip():
            raise InvalidInputError("Missing text", fields=["text"])

        with self.rw_uow() as uow:
            repo: TodoRepository = uow.todos
            todo = repo.add(
                Todo(
                    user_id=owner_id,
                    text=dto.text,
                    done=False,
                    due_date=dto.due_date,
                    tags=normalize_tags(dto.tags),
                )
            )
            out = todo_to_out(todo)

        logger.info("Todo created", extra={"user_id": owner_id})
        return out

    def update(self, dto: TodoUpdateIn) -> TodoOut:
        """Apply the provided fields to one of the caller's todos.

        :raises NotFoundError: When the todo does not exist or is not owned.
        :raises InvalidInputError: When ``text`` is provided but blank.
        """
        owner_id = self._owner()
        with self.rw_uow() as uow:
            repo: TodoRepository = uow.todos
            todo = repo.get_owned(owner_id, dto.todo_id)
            if todo is None:
                raise NotFoundError("Todo", dto.todo_id)

            updates: dict[str, object] = {}
            for name in _UPDATABLE:
                if name not in dto.provided:
                    continue
                value = getattr(dto, name)
                if name in ("text", "done") and value is None:
                    # null for a required column keeps the current value
                    continue
                updates[name] = normalize_tags(value) if name == "tags" else value

            if "text" in updates and not str(updates["text"]).strip():
                raise InvalidInputError("Missing text", fields=["text"])
            if updates:
                repo.assign_updates(todo, updates)
            out = todo_to_out(todo)

        logger.info("Todo updated", extra={"user_id": owner_id})
        return out

    def delete(self, todo_id: int) -> None:
        """Delete one of the caller's todos; a missing id is a no-op."""
        owner_id = self._owner()
        with self.rw_uow() as uow:
            repo: TodoRepository = uow.todos
            todo = repo.get_owned(owner_id, todo_id)
            if todo is not None:
                repo.delete(todo)
        logger.info("Todo deleted", extra={"user_id": owner_id})
