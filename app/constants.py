"""
Shared constant table for todo validation, sorting and status handling.

Every component that needs the status list, the sortable fields or the
direction tokens imports them from here instead of redefining them.
"""

from enum import Enum


class Status(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"


STATUSES: tuple[str, ...] = tuple(status.value for status in Status)

# Sub-todo statuses that move the parent todo into IN_PROGRESS
PARENT_PROMOTING_STATUSES = frozenset({Status.IN_PROGRESS, Status.COMPLETED})

# Query parameters accepted as sort directives, mapped to Todo columns
SORTABLE_FIELDS: tuple[str, ...] = ("created_at", "completed_at", "sequence")

SORT_DIRECTIONS: dict[str, int] = {
    "asc": 1,
    "ascending": 1,
    "1": 1,
    "desc": -1,
    "descending": -1,
    "-1": -1,
}

DEFAULT_SORT: dict[str, int] = {"created_at": 1}

TODO_UPDATE_FIELDS: tuple[str, ...] = (
    "todo",
    "sequence",
    "status",
    "subTodos",
    "deadline",
)
SUB_TODO_UPDATE_FIELDS: tuple[str, ...] = ("todo", "sequence", "status", "deadline")

MILLISECONDS_PER_DAY = 86_400_000
