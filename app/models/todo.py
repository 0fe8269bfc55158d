"""
Todo model: one row per todo document, sub-todos embedded.

Architecture:
    User → Todo → [SubTodo, SubTodo, ...]

The sub-todos are stored in order inside the ``sub_todos`` JSON column, so a
todo and its sub-todos are read and written together and deleting the row
deletes them too. ``version`` is the optimistic concurrency counter used for
the read-merge-write updates.
"""

from sqlalchemy import JSON, Column, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB

from app.constants import Status
from app.models.base import Base, TimestampMixin, TZDateTime, UUIDMixin


class Todo(Base, UUIDMixin, TimestampMixin):
    """A user's todo with its embedded, ordered list of sub-todos."""

    __tablename__ = "todos"
    __table_args__ = (
        Index("ix_todos_author", "author"),
        Index("ix_todos_author_status", "author", "status"),
    )

    todo = Column(Text, nullable=False, comment="Todo text")

    author = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        comment="Owning user",
    )

    deadline = Column(TZDateTime(), nullable=True, comment="Due date")

    completed_at = Column(
        TZDateTime(),
        nullable=True,
        comment="Set when the todo transitions to COMPLETED",
    )

    sequence = Column(
        Integer, nullable=False, default=0, comment="Caller supplied display order"
    )

    status = Column(
        String(20),
        nullable=False,
        default=Status.NOT_STARTED.value,
        comment="NOT_STARTED, IN_PROGRESS, COMPLETED or CANCELED",
    )

    sub_todos = Column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=list,
        comment="Ordered sub-todo documents",
    )

    version = Column(Integer, nullable=False, comment="Optimistic lock counter")

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Todo(id={self.id}, status='{self.status}', author={self.author})>"
