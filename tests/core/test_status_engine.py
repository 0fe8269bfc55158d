from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

import pytest

from app.constants import Status
from app.exceptions import Forbidden
from app.schemas import SubTodo
from app.services.status_engine import (
    StatusMachine,
    build_sub_todo_machine,
    build_todo_machine,
    ensure_parent_accepts_sub_todo_mutation,
)

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def make_row(status: str = "NOT_STARTED", completed_at=None):
    # Stands in for an ORM row, which stores the status as a plain string
    return SimpleNamespace(status=status, completed_at=completed_at)


def make_sub_todo(status: Status = Status.NOT_STARTED) -> SubTodo:
    return SubTodo(todo="step", created_at=NOW, updated_at=NOW, status=status)


def test_initialize_without_completion_leaves_completed_at_empty():
    row = make_row()
    build_todo_machine().initialize(row, Status.NOT_STARTED, NOW)
    assert row.status == "NOT_STARTED"
    assert row.completed_at is None


def test_initialize_completed_stamps_completed_at():
    row = make_row()
    build_todo_machine().initialize(row, "COMPLETED", NOW)
    assert row.status == "COMPLETED"
    assert row.completed_at == NOW


def test_transition_to_completed_stamps_completed_at():
    row = make_row("IN_PROGRESS")
    transition = build_todo_machine().transition(row, Status.COMPLETED, NOW)
    assert row.status == "COMPLETED"
    assert row.completed_at == NOW
    assert transition.changed


def test_repeated_completion_restamps_completed_at():
    row = make_row("COMPLETED", completed_at=NOW)
    later = NOW + timedelta(hours=1)
    build_todo_machine().transition(row, Status.COMPLETED, later)
    assert row.completed_at == later


def test_repeated_sub_todo_completion_restamps_completed_at():
    sub_todo = make_sub_todo(Status.COMPLETED)
    sub_todo.completed_at = NOW
    later = NOW + timedelta(minutes=5)
    build_sub_todo_machine().transition(sub_todo, Status.COMPLETED, later)
    assert sub_todo.completed_at == later


def test_leaving_completed_does_not_clear_completed_at():
    row = make_row("COMPLETED", completed_at=NOW)
    build_todo_machine().transition(row, Status.IN_PROGRESS, NOW + timedelta(hours=1))
    assert row.status == "IN_PROGRESS"
    assert row.completed_at == NOW


def test_sub_todo_keeps_enum_status():
    sub_todo = make_sub_todo()
    build_sub_todo_machine().transition(sub_todo, "CANCELED", NOW)
    assert sub_todo.status is Status.CANCELED


@pytest.mark.parametrize("new_status", [Status.IN_PROGRESS, Status.COMPLETED])
def test_sub_todo_progress_promotes_parent(new_status):
    parent = make_row("NOT_STARTED")
    build_sub_todo_machine().transition(make_sub_todo(), new_status, NOW, parent=parent)
    assert parent.status == "IN_PROGRESS"
    # The parent is never completed by its sub-todos
    assert parent.completed_at is None


def test_completed_parent_is_moved_back_to_in_progress():
    parent = make_row("COMPLETED", completed_at=NOW)
    build_sub_todo_machine().transition(
        make_sub_todo(), Status.IN_PROGRESS, NOW, parent=parent
    )
    assert parent.status == "IN_PROGRESS"


@pytest.mark.parametrize("new_status", [Status.NOT_STARTED, Status.CANCELED])
def test_other_sub_todo_statuses_leave_parent_alone(new_status):
    parent = make_row("NOT_STARTED")
    build_sub_todo_machine().transition(make_sub_todo(), new_status, NOW, parent=parent)
    assert parent.status == "NOT_STARTED"


def test_canceled_parent_rejects_sub_todo_mutation():
    with pytest.raises(Forbidden) as exc_info:
        ensure_parent_accepts_sub_todo_mutation(make_row("CANCELED"))
    assert exc_info.value.message == "You can't update a subTodo for a canceled todo."


@pytest.mark.parametrize("status", ["NOT_STARTED", "IN_PROGRESS", "COMPLETED"])
def test_other_parent_statuses_accept_sub_todo_mutation(status):
    ensure_parent_accepts_sub_todo_mutation(make_row(status))


def test_registered_hooks_receive_the_transition():
    seen = []
    machine = StatusMachine()
    machine.register(seen.append)

    row = make_row("NOT_STARTED")
    machine.transition(row, Status.IN_PROGRESS, NOW)

    assert len(seen) == 1
    assert seen[0].previous is Status.NOT_STARTED
    assert seen[0].current is Status.IN_PROGRESS
    assert seen[0].at == NOW
