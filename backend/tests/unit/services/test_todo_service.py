# tests/unit/services/test_todo_service.py
from __future__ import annotations

from datetime import date

import pytest

from tests.factories.todo import TodoFactory
from tests.factories.user import UserFactory
from todo_api.models.todo import Todo
from todo_api.services._shared.base import ServiceContext
from todo_api.services._shared.errors import (
    AuthenticationError,
    AuthFailure,
    InvalidInputError,
    NotFoundError,
)
from todo_api.services.todos.dto import TodoCreateIn, TodoUpdateIn
from todo_api.services.todos.service import TodoService, normalize_tags


def _service_for(user_id: int | None) -> TodoService:
    return TodoService(ctx=ServiceContext(actor_id=user_id))


@pytest.fixture()
def owner(session):
    user = UserFactory()
    session.commit()
    return user


# ----------------------------- normalize_tags ----------------------------- #
@pytest.mark.parametrize(
    "raw,expected",
    [
        (None, []),
        ("", []),
        ([], []),
        (["work", " home ", ""], ["work", "home"]),
        (("a", "b"), ["a", "b"]),
        ('["x", " y"]', ["x", "y"]),
        ("red, green,,blue ", ["red", "green", "blue"]),
        ('{"not": "a list"}', []),
        (42, []),
    ],
)
def test_normalize_tags(raw, expected):
    assert normalize_tags(raw) == expected


# ------------------------------- Service ---------------------------------- #
def test_requires_authenticated_caller(session):
    with pytest.raises(AuthenticationError) as exc:
        _service_for(None).list_todos()
    assert exc.value.failure is AuthFailure.NO_TOKEN


def test_create_and_list(owner):
    svc = _service_for(owner.id)

    created = svc.create(TodoCreateIn(text="Buy milk", due_date=date(2030, 1, 2), tags="a,b"))

    assert created.done is False
    assert created.tags == ["a", "b"]
    assert [t.id for t in svc.list_todos()] == [created.id]


def test_create_rejects_blank_text(owner):
    with pytest.raises(InvalidInputError) as exc:
        _service_for(owner.id).create(TodoCreateIn(text="   "))
    assert exc.value.fields == ("text",)


def test_list_is_scoped_to_owner(session, owner):
    TodoFactory(user_id=owner.id, text="mine")
    TodoFactory(text="someone else's")
    session.commit()

    texts = [t.text for t in _service_for(owner.id).list_todos()]

    assert texts == ["mine"]


def test_update_applies_only_provided_fields(session, owner):
    todo = TodoFactory(user_id=owner.id, text="draft", tags=["x"])
    session.commit()

    out = _service_for(owner.id).update(
        TodoUpdateIn(todo_id=todo.id, provided=frozenset({"done"}), done=True, text="ignored")
    )

    assert out.done is True
    assert out.text == "draft"
    assert out.tags == ["x"]


def test_update_null_text_keeps_value_but_null_due_date_clears(session, owner):
    todo = TodoFactory(user_id=owner.id, text="keep", due_date=date(2030, 5, 1))
    session.commit()

    out = _service_for(owner.id).update(
        TodoUpdateIn(
            todo_id=todo.id, provided=frozenset({"text", "due_date"}), text=None, due_date=None
        )
    )

    assert out.text == "keep"
    assert out.due_date is None


def test_update_foreign_todo_is_not_found(session, owner):
    foreign = TodoFactory(text="not yours")
    session.commit()

    with pytest.raises(NotFoundError):
        _service_for(owner.id).update(
            TodoUpdateIn(todo_id=foreign.id, provided=frozenset({"text"}), text="hijack")
        )
    assert session.get(Todo, foreign.id).text == "not yours"


def test_update_blank_text_rejected(session, owner):
    todo = TodoFactory(user_id=owner.id)
    session.commit()

    with pytest.raises(InvalidInputError):
        _service_for(owner.id).update(
            TodoUpdateIn(todo_id=todo.id, provided=frozenset({"text"}), text="  ")
        )


def test_delete_own_and_ignore_missing_or_foreign(session, owner):
    mine = TodoFactory(user_id=owner.id)
    foreign = TodoFactory()
    session.commit()
    svc = _service_for(owner.id)

    svc.delete(mine.id)
    svc.delete(foreign.id)
    svc.delete(123456)

    assert session.get(Todo, mine.id) is None
    assert session.get(Todo, foreign.id) is not None
