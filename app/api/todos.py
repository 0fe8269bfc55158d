"""
Todo API Routes - CRUD endpoints for todos and their embedded sub-todos.

Every route requires an authenticated user. Path identifiers are validated
and ownership is checked by dependencies before the handlers touch storage;
request bodies go through the request validation layer.
"""

import uuid
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_app_db
from app.db_handlers import TodoDBHandler
from app.dependencies.auth import get_current_user
from app.dependencies.todos import get_owned_todo_id, get_sub_todo_id
from app.models import User
from app.schemas import (
    ApiResponse,
    DeletedCount,
    SubTodo,
    TodoPage,
    TodoResponse,
    TodoStatistics,
)
from app.services.pagination import build_sort_plan, plan_page
from app.services.request_validation import (
    parse_sub_todo_create,
    parse_sub_todo_update,
    parse_todo_create,
    parse_todo_update,
)
from app.services.statistics import get_statistics
from app.utils.logger import setup_logger

logger = setup_logger("api.todos")

router = APIRouter(prefix="/api/v1/todos", tags=["Todos"])


@router.get("", response_model=ApiResponse[TodoPage])
async def list_todos(
    request: Request,
    per_page: str | None = Query(None, alias="perPage", description="Page size"),
    page: str | None = Query(None, description="1-based page number"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_app_db),
    todo_db_handler: TodoDBHandler = Depends(),
):
    """
    List the current user's todos, one page at a time.

    Sort directives are read from the ``created_at``, ``completed_at`` and
    ``sequence`` query parameters, applied in the order they appear.
    """
    window = plan_page(per_page, page)
    sort = build_sort_plan(request.query_params.multi_items())

    todo_page = await todo_db_handler.list_todos(current_user.id, sort, window, db=db)
    return ApiResponse(status=True, message="Todos fetched successfully.", data=todo_page)


@router.get("/statistics", response_model=ApiResponse[TodoStatistics])
async def read_statistics(current_user: User = Depends(get_current_user)):
    """Completion statistics for the current user."""
    statistics = await get_statistics(current_user.id)
    return ApiResponse(
        status=True, message="Statistics fetched successfully.", data=statistics
    )


@router.delete("/delete-all", response_model=ApiResponse[DeletedCount])
async def delete_all_todos(
    current_user: User = Depends(get_current_user),
    todo_db_handler: TodoDBHandler = Depends(),
):
    deleted_count = await todo_db_handler.delete_all_todos(current_user.id)
    return ApiResponse(
        status=True,
        message="Todos deleted successfully.",
        data=DeletedCount(deleted_count=deleted_count),
    )


@router.get("/get/{todoId}", response_model=ApiResponse[TodoResponse])
async def get_todo(
    todo_id: uuid.UUID = Depends(get_owned_todo_id),
    db: AsyncSession = Depends(get_app_db),
    todo_db_handler: TodoDBHandler = Depends(),
):
    todo = await todo_db_handler.get_todo(todo_id, db=db)
    return ApiResponse(
        status=True,
        message="Todo fetched successfully.",
        data=TodoResponse.model_validate(todo),
    )


@router.get(
    "/get-sub-todo/{todoId}/{subTodoId}", response_model=ApiResponse[SubTodo]
)
async def get_sub_todo(
    current_user: User = Depends(get_current_user),
    sub_todo_id: uuid.UUID = Depends(get_sub_todo_id),
    todo_id: uuid.UUID = Depends(get_owned_todo_id),
    db: AsyncSession = Depends(get_app_db),
    todo_db_handler: TodoDBHandler = Depends(),
):
    sub_todo = await todo_db_handler.get_sub_todo(todo_id, sub_todo_id, db=db)
    return ApiResponse(
        status=True, message="SubTodo fetched successfully.", data=sub_todo
    )


@router.post("/new", response_model=ApiResponse[TodoResponse])
async def create_todo(
    body: Any = Body(None),
    current_user: User = Depends(get_current_user),
    todo_db_handler: TodoDBHandler = Depends(),
):
    """Create a todo, optionally with its first sub-todos."""
    payload = parse_todo_create(body)
    todo = await todo_db_handler.create_todo(current_user.id, payload)
    return ApiResponse(
        status=True,
        message="Todo created successfully.",
        data=TodoResponse.model_validate(todo),
    )


@router.post("/new-sub-todo/{todoId}", response_model=ApiResponse[TodoResponse])
async def create_sub_todo(
    body: Any = Body(None),
    todo_id: uuid.UUID = Depends(get_owned_todo_id),
    todo_db_handler: TodoDBHandler = Depends(),
):
    """Append a sub-todo; the response carries the whole parent todo."""
    payload = parse_sub_todo_create(body)
    todo = await todo_db_handler.create_sub_todo(todo_id, payload)
    return ApiResponse(
        status=True,
        message="SubTodo created successfully.",
        data=TodoResponse.model_validate(todo),
    )


@router.put("/update/{todoId}", response_model=ApiResponse[TodoResponse])
async def update_todo(
    body: Any = Body(None),
    todo_id: uuid.UUID = Depends(get_owned_todo_id),
    todo_db_handler: TodoDBHandler = Depends(),
):
    """
    Partially update a todo.

    Supplied fields override the stored ones; omitted or null fields are kept.
    A ``subTodos`` list replaces the current sub-todos.
    """
    payload = parse_todo_update(body)
    todo = await todo_db_handler.update_todo(todo_id, payload)
    return ApiResponse(
        status=True,
        message="Todo updated successfully.",
        data=TodoResponse.model_validate(todo),
    )


@router.api_route(
    "/update-sub-todo/{todoId}/{subTodoId}",
    methods=["PUT", "PATCH"],
    response_model=ApiResponse[SubTodo],
)
async def update_sub_todo(
    body: Any = Body(None),
    current_user: User = Depends(get_current_user),
    sub_todo_id: uuid.UUID = Depends(get_sub_todo_id),
    todo_id: uuid.UUID = Depends(get_owned_todo_id),
    todo_db_handler: TodoDBHandler = Depends(),
):
    """
    Partially update a sub-todo.

    Rejected while the parent todo is CANCELED. Moving the sub-todo to
    IN_PROGRESS or COMPLETED moves the parent to IN_PROGRESS.
    """
    payload = parse_sub_todo_update(body)
    sub_todo = await todo_db_handler.update_sub_todo(todo_id, sub_todo_id, payload)
    return ApiResponse(
        status=True, message="SubTodo updated successfully.", data=sub_todo
    )


@router.delete("/delete/{todoId}", response_model=ApiResponse[TodoResponse])
async def delete_todo(
    todo_id: uuid.UUID = Depends(get_owned_todo_id),
    todo_db_handler: TodoDBHandler = Depends(),
):
    todo = await todo_db_handler.delete_todo(todo_id)
    return ApiResponse(
        status=True,
        message="Todo deleted successfully.",
        data=TodoResponse.model_validate(todo),
    )


@router.delete(
    "/delete-sub-todo/{todoId}/{subTodoId}", response_model=ApiResponse[SubTodo]
)
async def delete_sub_todo(
    current_user: User = Depends(get_current_user),
    sub_todo_id: uuid.UUID = Depends(get_sub_todo_id),
    todo_id: uuid.UUID = Depends(get_owned_todo_id),
    todo_db_handler: TodoDBHandler = Depends(),
):
    removed = await todo_db_handler.delete_sub_todo(todo_id, sub_todo_id)
    logger.info(f"User {current_user.id} removed subTodo {sub_todo_id}")
    return ApiResponse(
        status=True, message="SubTodo deleted successfully.", data=removed
    )
