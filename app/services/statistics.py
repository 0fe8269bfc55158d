"""
Completion statistics for a user's todos.

The arithmetic lives in ``compute_statistics`` (pure, clock injected); the
``get_statistics`` coroutine gathers the counts from storage.
"""

import uuid
from datetime import datetime

from app.constants import MILLISECONDS_PER_DAY, Status
from app.db_handlers.todo import TodoDBHandler
from app.db_handlers.user import UserDBHandler
from app.exceptions import NotFound
from app.models import Todo
from app.schemas import TodoResponse, TodoStatistics
from app.utils.clock import ensure_utc, round_half_up, utc_now
from app.utils.logger import setup_logger

logger = setup_logger("statistics")


def completion_rate(completed: int, total: int) -> str:
    if total == 0:
        return f"{0:.2f}"
    return f"{completed / total * 100:.2f}"


def days_since(moment: datetime, now: datetime) -> int:
    elapsed_ms = (ensure_utc(now) - ensure_utc(moment)).total_seconds() * 1000
    return round_half_up(elapsed_ms / MILLISECONDS_PER_DAY)


def average_completion_rate(completed: int, days: int) -> float:
    """Completed todos per day since sign-up, one decimal."""
    if days <= 0:
        return 0
    return round_half_up(completed / days * 10) / 10


def compute_statistics(
    *,
    total_todos: int,
    completed_todos: int,
    signup_date: datetime,
    last_completed_todo: Todo | None,
    now: datetime | None = None,
) -> TodoStatistics:
    now = now or utc_now()
    days = days_since(signup_date, now)
    return TodoStatistics(
        total_todos=total_todos,
        completed_todos=completed_todos,
        completion_rate=completion_rate(completed_todos, total_todos),
        signup_date=ensure_utc(signup_date),
        days_since_sign_up=days,
        average_completion_rate=average_completion_rate(completed_todos, days),
        last_completed_todo=(
            TodoResponse.model_validate(last_completed_todo)
            if last_completed_todo is not None
            else None
        ),
    )


async def get_statistics(
    owner_id: uuid.UUID,
    *,
    todo_handler: TodoDBHandler | None = None,
    user_handler: UserDBHandler | None = None,
    now: datetime | None = None,
) -> TodoStatistics:
    """Aggregate the owner's todo statistics; NotFound when the owner does not exist."""
    todo_handler = todo_handler or TodoDBHandler()
    user_handler = user_handler or UserDBHandler()

    user = await user_handler.get(owner_id)
    if user is None:
        logger.warning(f"Statistics requested for unknown user {owner_id}")
        raise NotFound("Couldn't find the user.")

    total_todos = await todo_handler.count_todos(owner_id)
    completed_todos = await todo_handler.count_todos(owner_id, Status.COMPLETED)
    last_completed = await todo_handler.get_last_completed_todo(owner_id)

    return compute_statistics(
        total_todos=total_todos,
        completed_todos=completed_todos,
        signup_date=user.created_at,
        last_completed_todo=last_completed,
        now=now,
    )
