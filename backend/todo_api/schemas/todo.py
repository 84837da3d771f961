"""Todo resource schemas."""

from __future__ import annotations

from typing import Any

from marshmallow import Schema, fields, pre_load, validate

from todo_api.services.todos.service import normalize_tags


class TagsField(fields.Field):
    """Accept a list, a JSON list string or a comma-separated string."""

    def _serialize(self, value: Any, attr: str | None, obj: Any, **kwargs: Any) -> list[str]:
        return normalize_tags(value)

    def _deserialize(
        self, value: Any, attr: str | None, data: Any, **kwargs: Any
    ) -> list[str]:
        return normalize_tags(value)


class _TodoInSchema(Schema):
    @pre_load
    def blank_due_date(self, data: Any, **_: Any) -> Any:
        # The client posts "" from an empty date input.
        if isinstance(data, dict) and data.get("dueDate") == "":
            data = {**data, "dueDate": None}
        return data


class TodoCreateSchema(_TodoInSchema):
    """Payload for creating a todo."""

    text = fields.String(
        required=True,
        validate=validate.Length(min=1, max=1000),
        error_messages={"required": "Missing text"},
    )
    due_date = fields.Date(data_key="dueDate", load_default=None, allow_none=True)
    tags = TagsField(load_default=list, allow_none=True)


class TodoUpdateSchema(_TodoInSchema):
    """Partial update; absent members keep their current value."""

    text = fields.String(allow_none=True, validate=validate.Length(min=1, max=1000))
    done = fields.Boolean(allow_none=True)
    due_date = fields.Date(data_key="dueDate", allow_none=True)
    tags = TagsField(allow_none=True)


class TodoSchema(Schema):
    """Public representation of a todo."""

    class Meta:
        ordered = True

    id = fields.Integer(required=True)
    text = fields.String(required=True)
    done = fields.Boolean(required=True)
    due_date = fields.Date(data_key="dueDate", allow_none=True)
    tags = TagsField()
