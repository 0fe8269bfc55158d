"""
Compare-and-swap retry for read-merge-write operations on todo documents.

Todo rows carry a version counter (``version_id_col``). When another request
writes the same document between our read and our flush, SQLAlchemy raises
``StaleDataError``; the decorated operation is then re-run from the read, so
the merge is applied to the latest document instead of overwriting it.
"""

from functools import wraps

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.config import settings
from app.exceptions import Conflict
from app.utils.logger import setup_logger

logger = setup_logger("retry_utils")


def retry_on_version_conflict(max_attempts: int | None = None):
    """
    Decorator re-running an async document update when its version check fails.

    Each attempt must perform its own read. When the caller supplied the
    session (``db=`` keyword), it is rolled back before the next attempt;
    otherwise ``check_local_db`` opens a fresh session per attempt. After the
    last failed attempt ``Conflict`` is raised.
    """

    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            attempts = max_attempts or settings.update_conflict_retries
            db_session: AsyncSession | None = kwargs.get("db")
            last_exception_seen = None

            for attempt in range(1, attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except StaleDataError as e:
                    last_exception_seen = e
                    logger.warning(
                        f"Version conflict in '{func.__name__}' (attempt {attempt}/{attempts}): {e}"
                    )
                    if db_session is not None:
                        await db_session.rollback()

            logger.error(
                f"'{func.__name__}' gave up after {attempts} conflicting attempts."
            )
            raise Conflict() from last_exception_seen

        return wrapper

    return decorator
