from app.db_handlers.base import BaseDBHandler, check_local_db
from app.db_handlers.todo import TodoDBHandler
from app.db_handlers.user import UserDBHandler

__all__ = [
    "BaseDBHandler",
    "check_local_db",
    "TodoDBHandler",
    "UserDBHandler",
]
