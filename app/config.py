"""
Centralized configuration management using pydantic-settings.
This module provides a single source of truth for all application configuration.
"""


import os

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.utils.logger import setup_logger

load_dotenv(override=False)


logger = setup_logger("core_config")

DEFAULT_JWT_SECRET = "your-secret-key-change-this-in-production"


class Settings(BaseSettings):
    """
    Application settings managed by pydantic-settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        # Allow override from environment variables
        env_prefix="",
    )

    # ===== Database Configuration =====
    app_database_url: str = Field(
        default="sqlite+aiosqlite:///./todos.db",
        alias="TODO_DATABASE_URL",
        description="Application database URL (postgresql:// or sqlite+aiosqlite://)",
    )

    db_schema: str = Field(
        default="todo_app",
        alias="TODO_DB_SCHEMA",
        description="PostgreSQL schema placed first on the search_path",
    )

    db_echo: bool = Field(
        default=False,
        alias="TODO_DB_ECHO",
        description="Echo SQL statements to the log",
    )

    # ===== Authentication Configuration =====
    jwt_secret_key: str = Field(
        default=DEFAULT_JWT_SECRET,
        alias="JWT_SECRET_KEY",
        description="Secret used to sign access tokens",
    )

    jwt_algorithm: str = Field(
        default="HS256",
        alias="JWT_ALGORITHM",
        description="Signing algorithm for access tokens",
    )

    access_token_expire_minutes: int = Field(
        default=1440,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
        description="Access token lifetime in minutes (24 hours default)",
    )

    # ===== Todo Document Configuration =====
    update_conflict_retries: int = Field(
        default=3,
        ge=1,
        alias="UPDATE_CONFLICT_RETRIES",
        description="Attempts for a read-merge-write before reporting a version conflict",
    )

    # ===== Server Configuration =====
    server_host: str = Field(
        default="0.0.0.0", alias="SERVER_HOST", description="Server host address"
    )

    server_port: int = Field(
        default=3000, alias="SERVER_PORT", description="Server port number"
    )

    server_workers: int = Field(
        default=1, alias="SERVER_WORKERS", description="Number of uvicorn workers"
    )

    # ===== CORS Configuration =====
    cors_allow_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        alias="CORS_ALLOW_ORIGINS",
        description="CORS allowed origins",
    )

    cors_allow_credentials: bool = Field(
        default=False,
        alias="CORS_ALLOW_CREDENTIALS",
        description="Whether to allow credentials in CORS requests",
    )

    cors_allow_methods: list[str] = Field(
        default_factory=lambda: ["GET", "POST", "PATCH", "PUT", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
        description="CORS allowed methods",
    )

    cors_allow_headers: list[str] = Field(
        default_factory=lambda: [
            "x-access-token",
            "Authorization",
            "Origin",
            "X-Requested-With",
            "Content-Type",
            "Accept",
        ],
        alias="CORS_ALLOW_HEADERS",
        description="CORS allowed headers",
    )

    # User-facing hint for database connection errors
    db_unavailable_hint: str = os.getenv(
        "DB_UNAVAILABLE_HINT",
        "Database connection failed. The server may be offline or network connectivity is down.",
    )

    @model_validator(mode="after")
    def validate_settings(self) -> "Settings":
        """Validate settings and log warnings for missing critical configurations."""

        if self.jwt_secret_key == DEFAULT_JWT_SECRET:
            logger.warning(
                "JWT_SECRET_KEY environment variable not set, using the development default."
            )

        if self.app_database_url.startswith("sqlite"):
            logger.debug(f"Using SQLite database: {self.app_database_url}")
        else:
            logger.debug(f"Using database schema: {self.db_schema}")

        return self

    @property
    def is_sqlite(self) -> bool:
        return self.app_database_url.startswith("sqlite")


# Global settings instance
settings = Settings()
