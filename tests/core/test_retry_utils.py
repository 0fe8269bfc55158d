import pytest
from sqlalchemy.orm.exc import StaleDataError

from app.exceptions import Conflict
from app.utils.retry_utils import retry_on_version_conflict


class FakeSession:
    def __init__(self):
        self.rollbacks = 0

    async def rollback(self):
        self.rollbacks += 1


@pytest.mark.asyncio
async def test_retry_reruns_until_the_write_goes_through():
    calls = []

    @retry_on_version_conflict(max_attempts=3)
    async def merge():
        calls.append(1)
        if len(calls) < 3:
            raise StaleDataError("version mismatch")
        return "merged"

    assert await merge() == "merged"
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_retry_raises_conflict_when_attempts_run_out():
    calls = []

    @retry_on_version_conflict(max_attempts=2)
    async def merge():
        calls.append(1)
        raise StaleDataError("version mismatch")

    with pytest.raises(Conflict) as exc_info:
        await merge()
    assert len(calls) == 2
    assert exc_info.value.status_code == 409
    assert isinstance(exc_info.value.__cause__, StaleDataError)


@pytest.mark.asyncio
async def test_retry_rolls_back_a_caller_supplied_session():
    session = FakeSession()
    calls = []

    @retry_on_version_conflict(max_attempts=3)
    async def merge(*, db=None):
        calls.append(1)
        if len(calls) == 1:
            raise StaleDataError("version mismatch")
        return db

    assert await merge(db=session) is session
    assert session.rollbacks == 1


@pytest.mark.asyncio
async def test_retry_does_not_touch_other_errors():
    @retry_on_version_conflict(max_attempts=3)
    async def merge():
        raise ValueError("boom")

    with pytest.raises(ValueError):
        await merge()
