"""
Database models for the todo service.

Architecture: User → Todo → embedded SubTodos.
"""

from app.models.todo import Todo
from app.models.user import User

__all__ = [
    "User",
    "Todo",
]
