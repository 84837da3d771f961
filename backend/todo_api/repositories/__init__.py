"""Repository package exposing persistence-layer access for all models."""

from __future__ import annotations

from todo_api.repositories.base import BaseRepository
from todo_api.repositories.refresh_token import RefreshTokenRepository
from todo_api.repositories.todo import TodoRepository
from todo_api.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "RefreshTokenRepository",
    "TodoRepository",
    "UserRepository",
]
