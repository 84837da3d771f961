from todo_api.models.refresh_token import RefreshToken
from todo_api.models.todo import Todo
from todo_api.models.user import User

__all__ = [
    "RefreshToken",
    "Todo",
    "User",
]
