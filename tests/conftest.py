"""
This file contains shared fixtures and configuration for the test suite.

Pytest will automatically discover and use the fixtures defined in this file.

The application settings are read at import time, so the test database URL is
set in the environment before anything from ``app`` is imported. Every test
runs against a freshly reset SQLite database (aiosqlite driver).
"""

import asyncio
import os
import tempfile
from collections.abc import Generator

import pytest

_TEST_DB_DIR = tempfile.mkdtemp(prefix="todo-api-tests-")
os.environ["TODO_DATABASE_URL"] = (
    f"sqlite+aiosqlite:///{os.path.join(_TEST_DB_DIR, 'test.db')}"
)
os.environ["LOG_TO_FILE"] = "false"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.db import reset_db  # noqa: E402
from app.db_handlers import UserDBHandler  # noqa: E402
from app.models import User  # noqa: E402
from app.utils.auth import get_password_hash  # noqa: E402

TEST_PASSWORD = "secret123"


def run_sync(coro):
    """Run a coroutine on a private loop, leaving the current event loop untouched."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@pytest.fixture(autouse=True)
def reset_database() -> None:
    """
    Drops and recreates every table before each test.
    """
    run_sync(reset_db())


@pytest.fixture
def app() -> FastAPI:
    """
    Create a new application instance for the test.
    """
    # Import the factory function here to ensure it's fresh for the test.
    from main import create_app

    return create_app()


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """
    Fixture to get a test client for making API requests.
    The TestClient handles the application's lifespan events (startup/shutdown).
    """
    with TestClient(app) as c:
        yield c


def _create_user(email: str = "jane@example.com") -> User:
    return run_sync(
        UserDBHandler().create(
            {
                "first_name": "Jane",
                "last_name": "Doe",
                "email": email,
                "hashed_password": get_password_hash(TEST_PASSWORD),
            }
        )
    )


@pytest.fixture
def user() -> User:
    """A stored user for tests that talk to the handlers directly."""
    return _create_user()


def _register(client: TestClient, email: str = "jane@example.com") -> dict:
    response = client.post(
        "/api/v1/users/register",
        json={
            "first_name": "Jane",
            "last_name": "Doe",
            "email": email,
            "password": TEST_PASSWORD,
        },
    )
    assert response.status_code == 200, response.text
    return response.json()["data"]


@pytest.fixture
def auth_headers(client: TestClient) -> dict[str, str]:
    """Headers of a freshly registered user."""
    return {"x-access-token": _register(client)["token"]}


@pytest.fixture
def other_auth_headers(client: TestClient) -> dict[str, str]:
    """Headers of a second, unrelated user."""
    return {"x-access-token": _register(client, "john@example.com")["token"]}


@pytest.fixture
def register_user(client: TestClient):
    """Register a user through the API and return its ``data`` payload."""

    def _register_user(email: str = "jane@example.com") -> dict:
        return _register(client, email)

    return _register_user
