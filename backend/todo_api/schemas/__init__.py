"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import LoginSchema, LogoutSchema, RefreshSchema, RegisterSchema, SessionSchema, UserSchema
from .todo import TagsField, TodoCreateSchema, TodoSchema, TodoUpdateSchema

__all__ = [
    "LoginSchema",
    "RegisterSchema",
    "RefreshSchema",
    "LogoutSchema",
    "SessionSchema",
    "UserSchema",
    "TagsField",
    "TodoCreateSchema",
    "TodoUpdateSchema",
    "TodoSchema",
]
