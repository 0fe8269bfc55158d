import uuid
from datetime import datetime
from typing import ClassVar, Generic, TypeVar

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from app.constants import (
    SUB_TODO_UPDATE_FIELDS,
    TODO_UPDATE_FIELDS,
    Status,
)

DataT = TypeVar("DataT")


# --- Response envelope ---
class ApiResponse(BaseModel, Generic[DataT]):
    status: bool = Field(..., description="Whether the request succeeded")
    message: str = Field(..., description="Human readable outcome")
    data: DataT | None = Field(None, description="Payload, when there is one")


# --- Users ---
class UserRegister(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr = Field(..., description="Email used to log in")
    password: str = Field(
        ..., min_length=6, max_length=100, description="Password for the new account"
    )

    @field_validator("email")
    @classmethod
    def lower_case_email(cls, v: str) -> str:
        return v.lower()


class UserLogin(BaseModel):
    email: EmailStr = Field(..., description="Email for login")
    password: str = Field(..., min_length=1, description="Password for login")

    @field_validator("email")
    @classmethod
    def lower_case_email(cls, v: str) -> str:
        return v.lower()


class UserInfo(BaseModel):
    id: uuid.UUID = Field(..., description="User unique identifier")
    first_name: str | None = None
    last_name: str | None = None
    email: str
    created_at: datetime = Field(..., description="Account creation timestamp")

    model_config = ConfigDict(from_attributes=True)


class AuthenticatedUser(UserInfo):
    token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")


# --- Sub-todo documents ---
class SubTodo(BaseModel):
    """A sub-todo as stored inside its parent todo and returned to clients."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    todo: str
    created_at: datetime
    updated_at: datetime
    deadline: datetime | None = None
    completed_at: datetime | None = None
    sequence: int = 0
    status: Status = Status.NOT_STARTED

    model_config = ConfigDict(from_attributes=True, use_enum_values=False)


# --- Request payloads ---
class SubTodoCreate(BaseModel):
    todo: str = Field(..., min_length=1)
    deadline: datetime
    sequence: int
    status: Status = Status.NOT_STARTED

    model_config = ConfigDict(extra="ignore")


class SubTodoReplacement(SubTodoCreate):
    """Entry of a ``subTodos`` list sent with a todo update; ``id`` keeps an existing one."""

    id: uuid.UUID | None = None


class TodoCreate(BaseModel):
    todo: str = Field(..., min_length=1)
    deadline: datetime
    sequence: int
    status: Status = Status.NOT_STARTED
    sub_todos: list[SubTodoCreate] = Field(default_factory=list, alias="subTodos")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class _PartialUpdate(BaseModel):
    """Partial update: omitted or null fields keep their stored value."""

    recognized_fields: ClassVar[tuple[str, ...]] = ()

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def require_one_field(cls, data):
        if not isinstance(data, dict):
            return data
        recognized = cls.recognized_fields
        field_names = {
            field.alias: name for name, field in cls.model_fields.items() if field.alias
        }
        if not any(
            data.get(key) is not None or data.get(field_names.get(key, key)) is not None
            for key in recognized
        ):
            raise ValueError(
                "Please fill in at least one field to update ("
                + ", ".join(recognized)
                + ")."
            )
        return data

    def supplied_fields(self) -> dict:
        return self.model_dump(exclude_none=True)


class TodoUpdate(_PartialUpdate):
    recognized_fields: ClassVar[tuple[str, ...]] = TODO_UPDATE_FIELDS

    todo: str | None = Field(None, min_length=1)
    deadline: datetime | None = None
    sequence: int | None = None
    status: Status | None = None
    sub_todos: list[SubTodoReplacement] | None = Field(None, alias="subTodos")

    @field_validator("sub_todos")
    @classmethod
    def unique_sub_todo_ids(cls, v):
        if v is None:
            return v
        ids = [entry.id for entry in v if entry.id is not None]
        if len(ids) != len(set(ids)):
            raise ValueError("Each subTodo id can only appear once in subTodos.")
        return v


class SubTodoUpdate(_PartialUpdate):
    recognized_fields: ClassVar[tuple[str, ...]] = SUB_TODO_UPDATE_FIELDS

    todo: str | None = Field(None, min_length=1)
    deadline: datetime | None = None
    sequence: int | None = None
    status: Status | None = None


# --- Todo responses ---
class TodoResponse(BaseModel):
    id: uuid.UUID
    todo: str
    author: uuid.UUID
    created_at: datetime
    updated_at: datetime
    deadline: datetime | None = None
    completed_at: datetime | None = None
    sequence: int
    status: Status
    sub_todos: list[SubTodo] = Field(
        default_factory=list,
        validation_alias=AliasChoices("sub_todos", "subTodos"),
        serialization_alias="subTodos",
    )

    model_config = ConfigDict(from_attributes=True)


class TodoPage(BaseModel):
    items: list[TodoResponse]
    current_page: int
    per_page: int
    total_count: int
    page_count: int
    is_last_page: bool

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TodoStatistics(BaseModel):
    total_todos: int
    completed_todos: int
    completion_rate: str = Field(..., description="Percentage with two decimals")
    signup_date: datetime
    days_since_sign_up: int
    average_completion_rate: float
    last_completed_todo: TodoResponse | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DeletedCount(BaseModel):
    deleted_count: int

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
