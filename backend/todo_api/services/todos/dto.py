# todo_api/services/todos/dto.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date


@dataclass(frozen=True, slots=True)
class TodoCreateIn:
    """
    Input DTO for creating a todo.

    :param text: Task text (required, non-blank).
    :param due_date: Optional due date.
    :param tags: Normalized tag list.
    """

    text: str
    due_date: date | None = None
    tags: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class TodoUpdateIn:
    """
    Partial update of a todo.

    Only the names in ``provided`` are applied, so an explicit ``None`` for
    ``due_date`` clears the date while an absent key leaves it unchanged.
    """

    todo_id: int
    provided: frozenset[str] = frozenset()
    text: str | None = None
    done: bool | None = None
    due_date: date | None = None
    tags: list[str] | None = None


@dataclass(frozen=True, slots=True)
class TodoOut:
    """Public view of a todo."""

    id: int
    text: str
    done: bool
    due_date: date | None
    tags: list[str]
