from __future__ import annotations

from functools import wraps
from typing import Any, Generic, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.db import AppAsyncSessionLocal
from app.exceptions import TodoAppError
from app.models.base import Base
from app.utils.logger import setup_logger

logger = setup_logger("db_handlers")


ModelType = TypeVar("ModelType", bound=Base)


def check_local_db(func):
    """
    Database session decorator with transaction management.

    When the caller passes ``db=`` the call joins that session and the caller
    owns the transaction. Otherwise a session is opened for the call,
    committed on success and rolled back on any error. Storage errors are not
    retried; they surface to the caller on first occurrence.
    """

    @wraps(func)
    async def wrapper(*args, **kwargs):
        if kwargs.get("db"):
            return await func(*args, **kwargs)

        async with AppAsyncSessionLocal() as db:
            kwargs["db"] = db
            try:
                result = await func(*args, **kwargs)
                await db.commit()
                return result
            except (TodoAppError, StaleDataError):
                # Expected outcomes: business errors and version conflicts retried upstream
                await db.rollback()
                raise
            except Exception as e:
                await db.rollback()
                logger.error(
                    f"Transaction failed in {func.__name__}: {e}",
                    exc_info=True,
                )
                raise

    return wrapper


class BaseDBHandler(Generic[ModelType]):
    """Generic handler for database operations with basic CRUD methods."""

    def __init__(self, model: type[ModelType]):
        self.model = model

    @check_local_db
    async def create(
        self, obj_dict: dict[str, Any], *, db: AsyncSession = None
    ) -> ModelType:
        """Create a new record in the database."""

        db_obj = self.model(**obj_dict)
        try:
            db.add(db_obj)
            await db.commit()
            await db.refresh(db_obj)
            return db_obj
        except IntegrityError as e:
            await db.rollback()
            logger.warning(f"IntegrityError creating {self.model.__name__}: {e}")
            # Re-raise IntegrityError so calling code can handle it specifically
            raise
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Error creating {self.model.__name__}: {e}", exc_info=True)
            raise

    @check_local_db
    async def get(self, id: Any, *, db: AsyncSession = None) -> ModelType | None:
        """Get a single record by its primary key."""
        stmt = select(self.model).where(self.model.id == id)
        result = await db.execute(stmt)
        return result.scalars().first()

    @check_local_db
    async def remove(self, id: Any, *, db: AsyncSession = None) -> ModelType | None:
        """Remove a record from the database by its primary key."""
        obj = await self.get(id=id, db=db)
        if obj:
            try:
                await db.delete(obj)
                await db.commit()
                return obj
            except SQLAlchemyError as e:
                await db.rollback()
                logger.error(
                    f"Error removing {self.model.__name__} with id {id}: {e}",
                    exc_info=True,
                )
                raise
        return None

    @check_local_db
    async def remove_by_attributes(self, *, db: AsyncSession = None, **kwargs) -> int:
        """Remove every record matching a set of attributes and return the count."""
        stmt = delete(self.model).filter_by(**kwargs)
        try:
            result = await db.execute(stmt)
            await db.commit()
            return result.rowcount or 0
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(
                f"Error bulk removing {self.model.__name__} ({kwargs}): {e}",
                exc_info=True,
            )
            raise
