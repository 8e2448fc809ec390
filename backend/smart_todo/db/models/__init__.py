"""ORM models exposed for metadata discovery."""
from smart_todo.db.models.todo import Todo
from smart_todo.db.models.user import User

__all__ = [
    "Todo",
    "User",
]
