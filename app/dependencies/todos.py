import uuid

from fastapi import Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_app_db
from app.db_handlers.todo import TodoDBHandler
from app.dependencies.auth import get_current_user
from app.exceptions import NotFound
from app.models import User
from app.utils.identifiers import parse_identifier


async def get_owned_todo_id(
    todo_id: str = Path(..., alias="todoId", description="The ID of the todo"),
    db: AsyncSession = Depends(get_app_db),
    current_user: User = Depends(get_current_user),
) -> uuid.UUID:
    """
    Dependency validating a todo id and its ownership.

    Raises InvalidIdentifier (400) for a malformed id, before any storage
    access, and NotFound (404) when the todo does not exist or belongs to
    another user.
    """
    todo_uuid = parse_identifier(todo_id, "todo")

    todo_handler = TodoDBHandler()
    todo = await todo_handler.get_owned_todo(todo_uuid, current_user.id, db=db)
    if todo is None:
        raise NotFound("Couldn't find a todo with this id.")

    return todo_uuid


def get_sub_todo_id(
    sub_todo_id: str = Path(..., alias="subTodoId", description="The ID of the subTodo"),
) -> uuid.UUID:
    """Validate the sub-todo path parameter."""
    return parse_identifier(sub_todo_id, "subTodo")
