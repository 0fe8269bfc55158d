"""
Authentication dependencies for FastAPI route protection.

The token is read from the ``x-access-token`` header, or from an
``Authorization: Bearer`` header. A missing token is rejected with 403, an
invalid or expired one (or one naming an unknown user) with 401.
"""

import uuid

from fastapi import Depends, status
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_app_db
from app.db_handlers.user import UserDBHandler
from app.exceptions import Unauthorized
from app.models import User
from app.utils.auth import extract_user_id_from_token

access_token_header = APIKeyHeader(name="x-access-token", auto_error=False)
bearer_security = HTTPBearer(auto_error=False)


def get_token(
    header_token: str | None = Depends(access_token_header),
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_security),
) -> str:
    """Pick the access token from the supported headers."""
    if header_token:
        return header_token
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    raise Unauthorized(
        "A token is required for authentication",
        status_code=status.HTTP_403_FORBIDDEN,
    )


async def get_current_user(
    token: str = Depends(get_token),
    db: AsyncSession = Depends(get_app_db),
) -> User:
    """
    Dependency to get the current authenticated user from JWT token.
    """
    subject = extract_user_id_from_token(token)
    if subject is None:
        raise Unauthorized("Invalid Token")

    try:
        user_id = uuid.UUID(subject)
    except ValueError as e:
        raise Unauthorized("Invalid Token") from e

    user_handler = UserDBHandler()
    user = await user_handler.get(user_id, db=db)
    if user is None:
        raise Unauthorized("User not found")

    return user
