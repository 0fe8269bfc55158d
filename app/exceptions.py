"""
Error taxonomy for the todo service.

Core components raise these; the exception handlers registered in
``main.create_app`` turn them into the ``{status, message, data}`` envelope.
"""

from fastapi import status


class TodoAppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(TodoAppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "The request payload is invalid."


class InvalidIdentifier(TodoAppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "The supplied identifier is malformed."


class NotFound(TodoAppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "The requested resource was not found."


class Forbidden(TodoAppError):
    # A rejected business rule, reported as a bad request
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "This operation is not allowed."


class Unauthorized(TodoAppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid Token"

    def __init__(self, message: str | None = None, *, status_code: int | None = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class Conflict(TodoAppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "The resource was modified concurrently, please retry."


class Internal(TodoAppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "An unexpected storage error occurred."


__all__ = [
    "TodoAppError",
    "ValidationError",
    "InvalidIdentifier",
    "NotFound",
    "Forbidden",
    "Unauthorized",
    "Conflict",
    "Internal",
]
