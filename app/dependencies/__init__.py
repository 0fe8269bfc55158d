from app.dependencies.auth import get_current_user, get_token
from app.dependencies.todos import get_owned_todo_id, get_sub_todo_id

__all__ = [
    "get_current_user",
    "get_token",
    "get_owned_todo_id",
    "get_sub_todo_id",
]
