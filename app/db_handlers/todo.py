from __future__ import annotations

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants import Status
from app.db_handlers.base import BaseDBHandler, check_local_db
from app.exceptions import NotFound
from app.models.todo import Todo
from app.schemas import (
    SubTodo,
    SubTodoCreate,
    SubTodoReplacement,
    SubTodoUpdate,
    TodoCreate,
    TodoPage,
    TodoResponse,
    TodoUpdate,
)
from app.services.pagination import PageWindow, summarize_page
from app.services.status_engine import (
    build_sub_todo_machine,
    build_todo_machine,
    ensure_parent_accepts_sub_todo_mutation,
)
from app.utils.clock import utc_now
from app.utils.logger import setup_logger
from app.utils.retry_utils import retry_on_version_conflict

logger = setup_logger("todo_db_handler")


def load_sub_todos(todo: Todo) -> list[SubTodo]:
    return [SubTodo.model_validate(doc) for doc in todo.sub_todos or []]


def dump_sub_todos(sub_todos: list[SubTodo]) -> list[dict]:
    return [sub_todo.model_dump(mode="json") for sub_todo in sub_todos]


def _find_sub_todo(sub_todos: list[SubTodo], sub_todo_id: uuid.UUID) -> int | None:
    for index, sub_todo in enumerate(sub_todos):
        if sub_todo.id == sub_todo_id:
            return index
    return None


def _entry_changes(current: SubTodo, entry: SubTodoReplacement) -> bool:
    return (
        current.todo != entry.todo
        or current.deadline != entry.deadline
        or current.sequence != entry.sequence
        or current.status != entry.status
    )


class TodoDBHandler(BaseDBHandler[Todo]):
    """
    Storage operations on todo documents and their embedded sub-todos.

    Ownership is checked before these methods are called; reads that list or
    aggregate are filtered by ``owner_id``. Every read-merge-write runs under
    ``retry_on_version_conflict`` so a concurrent write to the same todo makes
    the merge start over from the fresh document.
    """

    def __init__(self):
        super().__init__(Todo)
        self.todo_machine = build_todo_machine()
        self.sub_todo_machine = build_sub_todo_machine()

    # --- Reads ---
    @check_local_db
    async def list_todos(
        self,
        owner_id: uuid.UUID,
        sort: dict[str, int],
        window: PageWindow,
        *,
        db: AsyncSession = None,
    ) -> TodoPage:
        """Return one page of the owner's todos ordered by ``sort``."""
        order_by = [
            getattr(Todo, field).asc() if direction > 0 else getattr(Todo, field).desc()
            for field, direction in sort.items()
        ]
        # Stable order between pages when the sort keys tie
        order_by.append(Todo.id.asc())

        total_count = await self.count_todos(owner_id, db=db)
        stmt = (
            select(Todo)
            .where(Todo.author == owner_id)
            .order_by(*order_by)
            .offset(window.skip)
            .limit(window.limit)
        )
        result = await db.execute(stmt)
        todos = result.scalars().all()

        page_count, is_last_page = summarize_page(window, total_count)
        return TodoPage(
            items=[TodoResponse.model_validate(todo) for todo in todos],
            current_page=window.page,
            per_page=window.per_page,
            total_count=total_count,
            page_count=page_count,
            is_last_page=is_last_page,
        )

    @check_local_db
    async def get_todo(self, todo_id: uuid.UUID, *, db: AsyncSession = None) -> Todo:
        todo = await self.get(todo_id, db=db)
        if todo is None:
            logger.warning(f"Todo {todo_id} not found")
            raise NotFound("Couldn't find a todo with this id.")
        return todo

    @check_local_db
    async def get_owned_todo(
        self, todo_id: uuid.UUID, owner_id: uuid.UUID, *, db: AsyncSession = None
    ) -> Todo | None:
        """Get a todo only if it belongs to ``owner_id``."""
        stmt = select(Todo).where(Todo.id == todo_id, Todo.author == owner_id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @check_local_db
    async def get_sub_todo(
        self,
        todo_id: uuid.UUID,
        sub_todo_id: uuid.UUID,
        *,
        db: AsyncSession = None,
    ) -> SubTodo:
        todo = await self.get_todo(todo_id, db=db)
        sub_todos = load_sub_todos(todo)
        index = _find_sub_todo(sub_todos, sub_todo_id)
        if index is None:
            logger.warning(f"SubTodo {sub_todo_id} not found in todo {todo_id}")
            raise NotFound("Couldn't find a subTodo with this id in the todo.")
        return sub_todos[index]

    @check_local_db
    async def count_todos(
        self,
        owner_id: uuid.UUID,
        status: Status | None = None,
        *,
        db: AsyncSession = None,
    ) -> int:
        stmt = select(func.count()).select_from(Todo).where(Todo.author == owner_id)
        if status is not None:
            stmt = stmt.where(Todo.status == Status(status).value)
        result = await db.execute(stmt)
        return result.scalar_one()

    @check_local_db
    async def get_last_completed_todo(
        self, owner_id: uuid.UUID, *, db: AsyncSession = None
    ) -> Todo | None:
        """The owner's COMPLETED todo with the latest ``completed_at``."""
        stmt = (
            select(Todo)
            .where(
                Todo.author == owner_id,
                Todo.status == Status.COMPLETED.value,
                Todo.completed_at.is_not(None),
            )
            .order_by(Todo.completed_at.desc())
            .limit(1)
        )
        result = await db.execute(stmt)
        return result.scalars().first()

    # --- Creation ---
    def _new_sub_todo(self, payload: SubTodoCreate, now) -> SubTodo:
        sub_todo = SubTodo(
            id=uuid.uuid4(),
            todo=payload.todo,
            created_at=now,
            updated_at=now,
            deadline=payload.deadline,
            sequence=payload.sequence,
        )
        self.sub_todo_machine.initialize(sub_todo, payload.status, now)
        return sub_todo

    @check_local_db
    async def create_todo(
        self, owner_id: uuid.UUID, payload: TodoCreate, *, db: AsyncSession = None
    ) -> Todo:
        now = utc_now()
        todo = Todo(
            id=uuid.uuid4(),
            todo=payload.todo,
            author=owner_id,
            created_at=now,
            updated_at=now,
            deadline=payload.deadline,
            sequence=payload.sequence,
            status=Status.NOT_STARTED.value,
        )
        self.todo_machine.initialize(todo, payload.status, now)
        todo.sub_todos = dump_sub_todos(
            [self._new_sub_todo(sub, now) for sub in payload.sub_todos]
        )

        db.add(todo)
        await db.commit()
        await db.refresh(todo)
        logger.info(f"Created todo {todo.id} for user {owner_id}")
        return todo

    @retry_on_version_conflict()
    @check_local_db
    async def create_sub_todo(
        self, todo_id: uuid.UUID, payload: SubTodoCreate, *, db: AsyncSession = None
    ) -> Todo:
        """Append a sub-todo to the parent's list and return the parent."""
        todo = await self.get_todo(todo_id, db=db)
        now = utc_now()
        sub_todo = self._new_sub_todo(payload, now)

        todo.sub_todos = [*(todo.sub_todos or []), sub_todo.model_dump(mode="json")]
        todo.updated_at = now
        await db.commit()
        await db.refresh(todo)
        logger.info(f"Appended subTodo {sub_todo.id} to todo {todo_id}")
        return todo

    # --- Updates ---
    def _replace_sub_todos(
        self, todo: Todo, entries: list[SubTodoReplacement], now
    ) -> list[SubTodo]:
        """
        Build the new sub-todo list of ``todo`` from a ``subTodos`` update.

        An entry naming an existing id keeps that sub-todo's history. When it
        changes anything, the CANCELED-parent guard applies and its status runs
        through the sub-todo machine with the parent attached. Any other entry
        becomes a new sub-todo with a server-assigned id.
        """
        existing_by_id = {sub_todo.id: sub_todo for sub_todo in load_sub_todos(todo)}
        replaced: list[SubTodo] = []
        for entry in entries:
            current = existing_by_id.get(entry.id) if entry.id else None
            if current is None:
                replaced.append(self._new_sub_todo(entry, now))
                continue
            if not _entry_changes(current, entry):
                replaced.append(current)
                continue
            ensure_parent_accepts_sub_todo_mutation(todo)
            sub_todo = current.model_copy()
            sub_todo.todo = entry.todo
            sub_todo.deadline = entry.deadline
            sub_todo.sequence = entry.sequence
            sub_todo.updated_at = now
            self.sub_todo_machine.transition(sub_todo, entry.status, now, parent=todo)
            replaced.append(sub_todo)
        return replaced

    @retry_on_version_conflict()
    @check_local_db
    async def update_todo(
        self, todo_id: uuid.UUID, payload: TodoUpdate, *, db: AsyncSession = None
    ) -> Todo:
        """Merge the supplied fields into the stored todo."""
        todo = await self.get_todo(todo_id, db=db)
        now = utc_now()

        if payload.todo is not None:
            todo.todo = payload.todo
        if payload.deadline is not None:
            todo.deadline = payload.deadline
        if payload.sequence is not None:
            todo.sequence = payload.sequence
        if payload.sub_todos is not None:
            todo.sub_todos = dump_sub_todos(
                self._replace_sub_todos(todo, payload.sub_todos, now)
            )
        # Applied after the sub-todos so an explicit status wins over promotion
        if payload.status is not None:
            self.todo_machine.transition(todo, payload.status, now)

        todo.updated_at = now
        await db.commit()
        await db.refresh(todo)
        logger.info(
            f"Updated todo {todo_id} fields: {sorted(payload.supplied_fields())}"
        )
        return todo

    @retry_on_version_conflict()
    @check_local_db
    async def update_sub_todo(
        self,
        todo_id: uuid.UUID,
        sub_todo_id: uuid.UUID,
        payload: SubTodoUpdate,
        *,
        db: AsyncSession = None,
    ) -> SubTodo:
        """
        Merge the supplied fields into one sub-todo.

        Rejected with Forbidden, before anything is written, when the parent
        is CANCELED. A status change runs the sub-todo machine with the parent
        attached, which may move the parent to IN_PROGRESS.
        """
        todo = await self.get_todo(todo_id, db=db)
        ensure_parent_accepts_sub_todo_mutation(todo)

        sub_todos = load_sub_todos(todo)
        index = _find_sub_todo(sub_todos, sub_todo_id)
        if index is None:
            logger.warning(f"SubTodo {sub_todo_id} not found in todo {todo_id}")
            raise NotFound("Couldn't find a subTodo with this id in the todo.")

        now = utc_now()
        sub_todo = sub_todos[index]
        if payload.todo is not None:
            sub_todo.todo = payload.todo
        if payload.deadline is not None:
            sub_todo.deadline = payload.deadline
        if payload.sequence is not None:
            sub_todo.sequence = payload.sequence
        if payload.status is not None:
            self.sub_todo_machine.transition(sub_todo, payload.status, now, parent=todo)
        sub_todo.updated_at = now

        todo.sub_todos = dump_sub_todos(sub_todos)
        todo.updated_at = now
        await db.commit()
        await db.refresh(todo)
        logger.info(f"Updated subTodo {sub_todo_id} of todo {todo_id}")
        return load_sub_todos(todo)[index]

    # --- Deletes ---
    @check_local_db
    async def delete_todo(self, todo_id: uuid.UUID, *, db: AsyncSession = None) -> Todo:
        """Delete a todo; its embedded sub-todos go with it."""
        todo = await self.remove(todo_id, db=db)
        if todo is None:
            logger.warning(f"Todo {todo_id} not found for deletion")
            raise NotFound("Couldn't find a todo with this id.")
        logger.info(f"Deleted todo {todo_id}")
        return todo

    @check_local_db
    async def delete_all_todos(
        self, owner_id: uuid.UUID, *, db: AsyncSession = None
    ) -> int:
        deleted_count = await self.remove_by_attributes(author=owner_id, db=db)
        logger.info(f"Deleted {deleted_count} todos of user {owner_id}")
        return deleted_count

    @retry_on_version_conflict()
    @check_local_db
    async def delete_sub_todo(
        self,
        todo_id: uuid.UUID,
        sub_todo_id: uuid.UUID,
        *,
        db: AsyncSession = None,
    ) -> SubTodo:
        todo = await self.get_todo(todo_id, db=db)
        sub_todos = load_sub_todos(todo)
        index = _find_sub_todo(sub_todos, sub_todo_id)
        if index is None:
            logger.warning(f"SubTodo {sub_todo_id} not found in todo {todo_id}")
            raise NotFound("Couldn't find a subTodo with this id in the todo.")

        removed = sub_todos.pop(index)
        todo.sub_todos = dump_sub_todos(sub_todos)
        todo.updated_at = utc_now()
        await db.commit()
        logger.info(f"Removed subTodo {sub_todo_id} from todo {todo_id}")
        return removed
