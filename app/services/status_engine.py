"""
Status consistency engine for todos and sub-todos.

Each todo and each sub-todo follows the same status machine:

    NOT_STARTED → IN_PROGRESS → COMPLETED | CANCELED

Terminal states are not enforced and nothing is reverted automatically.
Every transition to COMPLETED, including a repeated one, stamps
``completed_at`` with the transition time; leaving COMPLETED does not clear
the stamp. Side effects between a sub-todo and its parent are post-transition
hooks registered on the sub-todo machine, so each rule can be exercised on
its own.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from app.constants import PARENT_PROMOTING_STATUSES, Status
from app.exceptions import Forbidden
from app.utils.clock import utc_now
from app.utils.logger import setup_logger

logger = setup_logger("status_engine")


class StatusBearing(Protocol):
    status: Any
    completed_at: datetime | None


@dataclass(frozen=True)
class StatusTransition:
    item: StatusBearing
    previous: Status
    current: Status
    at: datetime
    parent: StatusBearing | None = None

    @property
    def changed(self) -> bool:
        return self.previous is not self.current


TransitionHook = Callable[[StatusTransition], None]


class StatusMachine:
    """Applies status changes and fires post-transition hooks."""

    def __init__(self, hooks: list[TransitionHook] | None = None):
        self._hooks: list[TransitionHook] = list(hooks or [])

    def register(self, hook: TransitionHook) -> TransitionHook:
        self._hooks.append(hook)
        return hook

    def initialize(
        self, item: StatusBearing, status: Status | str, now: datetime | None = None
    ) -> None:
        """Set the status of a freshly created item; hooks do not fire."""
        status = Status(status)
        _store_status(item, status)
        item.completed_at = (now or utc_now()) if status is Status.COMPLETED else None

    def transition(
        self,
        item: StatusBearing,
        new_status: Status | str,
        now: datetime | None = None,
        *,
        parent: StatusBearing | None = None,
    ) -> StatusTransition:
        """Move ``item`` to ``new_status`` and run the registered hooks."""
        now = now or utc_now()
        previous = Status(item.status)
        current = Status(new_status)

        _store_status(item, current)
        if current is Status.COMPLETED:
            item.completed_at = now

        transition = StatusTransition(
            item=item, previous=previous, current=current, at=now, parent=parent
        )
        for hook in self._hooks:
            hook(transition)
        return transition


def _store_status(item: StatusBearing, status: Status) -> None:
    # ORM rows keep the plain string, sub-todo documents the enum
    item.status = status if isinstance(item.status, Status) else status.value


def promote_parent_on_progress(transition: StatusTransition) -> None:
    """A sub-todo entering IN_PROGRESS or COMPLETED puts its parent IN_PROGRESS."""
    parent = transition.parent
    if parent is None or transition.current not in PARENT_PROMOTING_STATUSES:
        return
    if Status(parent.status) is Status.IN_PROGRESS:
        return
    logger.debug(
        f"Promoting parent from {parent.status} to IN_PROGRESS after sub-todo moved to {transition.current.value}"
    )
    _store_status(parent, Status.IN_PROGRESS)


def ensure_parent_accepts_sub_todo_mutation(parent: StatusBearing) -> None:
    """Raise Forbidden when the parent todo is CANCELED."""
    if Status(parent.status) is Status.CANCELED:
        raise Forbidden("You can't update a subTodo for a canceled todo.")


def build_todo_machine() -> StatusMachine:
    return StatusMachine()


def build_sub_todo_machine() -> StatusMachine:
    return StatusMachine(hooks=[promote_parent_on_progress])
