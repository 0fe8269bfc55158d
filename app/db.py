import argparse
import asyncio
from collections.abc import AsyncGenerator

from sqlalchemy import inspect, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app import models  # noqa: F401
from app.config import settings
from app.models.base import Base
from app.utils.logger import setup_logger

logger = setup_logger("db")


def normalize_database_url(url: str) -> str:
    """Map plain driver URLs onto their async drivers."""
    if url.startswith("postgresql+asyncpg://") or url.startswith("sqlite+aiosqlite://"):
        return url
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    raise ValueError(f"Unsupported TODO_DATABASE_URL prefix: {url}")


def build_engine(url: str):
    url = normalize_database_url(url)
    if url.startswith("sqlite"):
        # A connection per session; aiosqlite connections are bound to one event loop
        return create_async_engine(
            url,
            poolclass=NullPool,
            echo=settings.db_echo,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(
        url,
        pool_pre_ping=True,
        pool_size=20,
        max_overflow=30,
        pool_timeout=60,
        pool_recycle=300,
        echo=settings.db_echo,
        connect_args={
            "timeout": 30,
            "server_settings": {"search_path": f"{settings.db_schema}, public"},
        },
    )


settings.app_database_url = normalize_database_url(settings.app_database_url)
logger.debug(f"Application DB URL: {settings.app_database_url}")
app_engine = build_engine(settings.app_database_url)

AppAsyncSessionLocal = async_sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=app_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# --- Dependency for FastAPI ---
async def get_app_db() -> AsyncGenerator[AsyncSession, None]:
    async with AppAsyncSessionLocal() as session:
        yield session


async def init_db():
    """Create the schema (PostgreSQL) and every registered table."""
    if not Base.metadata.tables:
        logger.warning("Base.metadata.tables is EMPTY! No tables will be created.")
    else:
        logger.debug(f"Tables registered: {list(Base.metadata.tables.keys())}")

    async with app_engine.begin() as conn:
        if not settings.is_sqlite:
            await conn.execute(text(f"CREATE SCHEMA IF NOT EXISTS {settings.db_schema}"))
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database schema initialized.")


async def close_db():
    """Closes database connections."""
    logger.info("Closing database connections.")
    await app_engine.dispose()
    logger.info("Database connections closed.")


async def list_tables() -> list[str]:
    async with app_engine.connect() as conn:
        table_names = await conn.run_sync(
            lambda sync_conn: inspect(sync_conn).get_table_names()
        )
    logger.info(f"Tables in application database: {table_names}")
    return table_names


async def reset_db():
    """Drop and recreate every table. Destroys all data."""
    logger.warning("Resetting the application database. THIS IS A DESTRUCTIVE OPERATION.")
    async with app_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await init_db()
    logger.info("Application database has been reset and re-initialized.")


async def check_db_connection(engine_to_check=None, db_name="Application DB"):
    """Performs a simple query to check actual DB connectivity."""
    if engine_to_check is None:
        engine_to_check = app_engine

    async with engine_to_check.connect() as conn:
        try:
            result = await conn.execute(text("SELECT 1"))
            if result.scalar_one() != 1:
                raise RuntimeError(
                    f"Test query to {db_name} returned an unexpected result."
                )
        except Exception as e:
            logger.error(
                f"Failed to execute test query on {db_name}: {e}", exc_info=True
            )
            raise RuntimeError(
                f"Database connectivity check failed for {db_name}."
            ) from e

    logger.info(f"Successfully connected to {db_name} and executed a test query.")
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Todo application database utility"
    )
    parser.add_argument(
        "action",
        choices=["init", "reset", "list-tables"],
        help="'init' to create missing tables, "
        "'reset' to drop and recreate every table, "
        "'list-tables' to show the tables of the application database.",
    )
    args = parser.parse_args()

    if args.action == "init":
        asyncio.run(init_db())
    elif args.action == "reset":
        confirm = input(
            "WARNING: This will delete all data of the application database. Are you sure? (yes/no): "
        )
        if confirm.lower() == "yes":
            asyncio.run(reset_db())
        else:
            logger.info("Database reset cancelled by user.")
    elif args.action == "list-tables":
        asyncio.run(list_tables())
    logger.info("Database utility script finished.")
