"""Todo endpoints; every route acts on the caller's own list."""

from __future__ import annotations

from flask import Blueprint

from todo_api.api.deps import get_todo_service, json_body, json_response, require_auth, timing
from todo_api.schemas import TodoCreateSchema, TodoSchema, TodoUpdateSchema
from todo_api.services.todos.dto import TodoCreateIn, TodoUpdateIn

bp = Blueprint("todos", __name__)

create_schema = TodoCreateSchema()
update_schema = TodoUpdateSchema()
todo_schema = TodoSchema()
todos_schema = TodoSchema(many=True)


@bp.get("")
@require_auth
@timing
def list_todos():
    """List the caller's todos in creation order."""

    return json_response(todos_schema.dump(get_todo_service().list_todos()))


@bp.post("")
@require_auth
@timing
def create_todo():
    """Create a todo and return it."""

    data = create_schema.load(json_body())
    todo = get_todo_service().create(TodoCreateIn(**data))
    return json_response(todo_schema.dump(todo), status=201)


@bp.put("/<int:todo_id>")
@require_auth
@timing
def update_todo(todo_id: int):
    """Apply a partial update; 404 if the todo is not the caller's."""

    data = update_schema.load(json_body())
    dto = TodoUpdateIn(todo_id=todo_id, provided=frozenset(data), **data)
    todo = get_todo_service().update(dto)
    return json_response(todo_schema.dump(todo))


@bp.delete("/<int:todo_id>")
@require_auth
@timing
def delete_todo(todo_id: int):
    """Delete a todo. Succeeds even if nothing matched."""

    get_todo_service().delete(todo_id)
    return "", 204
