"""
Request validation for todo, sub-todo and user payloads.

Each ``parse_*`` function takes the raw JSON body and returns the matching
schema or raises ``ValidationError`` with a readable message. Nothing here
touches storage.
"""

from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.constants import STATUSES
from app.exceptions import ValidationError
from app.schemas import (
    SubTodoCreate,
    SubTodoUpdate,
    TodoCreate,
    TodoUpdate,
    UserLogin,
    UserRegister,
)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

STATUS_MESSAGE = "Status can only be one of the following: " + ", ".join(STATUSES) + "."


def describe_errors(exc: PydanticValidationError) -> str:
    """Flatten pydantic (or FastAPI request) validation errors into one message."""
    messages: list[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        if error.get("type") == "enum" and location.endswith("status"):
            message = STATUS_MESSAGE
        elif error.get("type") == "value_error":
            message = str(error.get("ctx", {}).get("error", error.get("msg")))
        elif error.get("type") == "missing":
            message = f"'{location}' is required."
        else:
            message = f"'{location}': {error.get('msg')}" if location else error.get("msg")
        if message not in messages:
            messages.append(message)
    return " ".join(messages)


def _parse(schema: type[SchemaT], body: Any) -> SchemaT:
    if not isinstance(body, dict):
        raise ValidationError("The request body must be a JSON object.")
    try:
        return schema.model_validate(body)
    except PydanticValidationError as e:
        raise ValidationError(describe_errors(e)) from e


def parse_todo_create(body: Any) -> TodoCreate:
    return _parse(TodoCreate, body)


def parse_sub_todo_create(body: Any) -> SubTodoCreate:
    return _parse(SubTodoCreate, body)


def parse_todo_update(body: Any) -> TodoUpdate:
    return _parse(TodoUpdate, body)


def parse_sub_todo_update(body: Any) -> SubTodoUpdate:
    return _parse(SubTodoUpdate, body)


def parse_user_registration(body: Any) -> UserRegister:
    return _parse(UserRegister, body)


def parse_user_login(body: Any) -> UserLogin:
    return _parse(UserLogin, body)
