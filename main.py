#!/usr/bin/env python3

"""
Main application entry point for the todo API service.

Architecture: FastAPI application with an async SQLAlchemy database and JWT authentication.
Key Features: Lifecycle management, database health checks, error envelopes, CORS configuration.
"""

import asyncio
import sys

# Add this block to switch asyncio event loop policy on Windows
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

import errno
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.api.todos import router as todos_router
from app.api.users import router as users_router
from app.config import settings
from app.db import check_db_connection, close_db, init_db
from app.exceptions import Internal, TodoAppError
from app.services.request_validation import describe_errors
from app.utils.logger import setup_logger

logger = setup_logger("main")


def envelope(status_code: int, message: str, data=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": False, "message": message, "data": data},
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Initialize the database on startup and release its connections on shutdown.
    """
    logger.info("Application startup...")
    try:
        logger.info("Initializing database...")
        await init_db()
        logger.info("Database initialization complete.")

        logger.info("Checking database connectivity...")
        if await check_db_connection():
            logger.info("Database connectivity confirmed.")
        else:
            logger.critical("Database connectivity check failed.")
            raise SystemExit("Database connection failed.")

    except Exception as e:
        logger.critical(f"Startup error: {e}")
        raise SystemExit(f"Startup failed: {e}") from e

    logger.info("Todo API startup successful.")

    yield

    logger.info("Todo API shutdown...")
    await close_db()
    logger.info("Shutdown complete.")


def create_app():
    app = FastAPI(title="Todo API", lifespan=lifespan)

    @app.exception_handler(TodoAppError)
    async def todo_app_error_handler(request: Request, exc: TodoAppError):
        if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return envelope(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(
        request: Request, exc: RequestValidationError
    ):
        # Path/query/body shape errors raised by FastAPI itself
        return envelope(status.HTTP_400_BAD_REQUEST, describe_errors(exc))

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error(
            f"Storage error on {request.method} {request.url.path}: {exc}",
            exc_info=exc,
        )
        return envelope(Internal.status_code, Internal.default_message)

    @app.exception_handler(OSError)
    async def oserror_exception_handler(request: Request, exc: OSError):
        logger.error(
            f"OSError caught: {exc}, errno: {exc.errno}, winerror: {getattr(exc, 'winerror', None)}"
        )
        is_timeout_or_refused = False
        if hasattr(exc, "winerror") and exc.winerror == 121:
            is_timeout_or_refused = True
        elif exc.errno in [errno.ETIMEDOUT, errno.ECONNREFUSED]:
            is_timeout_or_refused = True

        if is_timeout_or_refused:
            logger.error(
                f"Returning 503 due to DB connection issue: {settings.db_unavailable_hint}"
            )
            return envelope(
                status.HTTP_503_SERVICE_UNAVAILABLE, settings.db_unavailable_hint
            )
        return envelope(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            f"An unexpected OS error occurred: {exc}",
        )

    @app.get("/")
    async def read_root():
        """API health check endpoint."""
        return {"status": True, "message": "Todo API is running!", "data": None}

    app.include_router(users_router)
    app.include_router(todos_router)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    return app


app = create_app()


def main():
    """
    Start the FastAPI application with uvicorn.
    """
    port = int(settings.server_port)
    host = settings.server_host

    logger.info(f"Starting Todo API server on {host}:{port}")

    try:
        uvicorn.run(app, host=host, port=port, workers=settings.server_workers)
    except Exception as e:
        logger.error(f"Error starting server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
