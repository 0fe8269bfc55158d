# User API routes for registration, login and profile lookup

from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.exc import IntegrityError

from app.db_handlers import UserDBHandler
from app.dependencies.auth import get_current_user
from app.exceptions import Unauthorized, ValidationError
from app.models import User
from app.schemas import ApiResponse, AuthenticatedUser, UserInfo
from app.services.request_validation import (
    parse_user_login,
    parse_user_registration,
)
from app.utils.auth import create_access_token, get_password_hash, verify_password
from app.utils.logger import setup_logger

logger = setup_logger("api.users")

router = APIRouter(prefix="/api/v1/users", tags=["Users"])

REGISTRATION_FAILED = "Couldn't Create a New User. Please check your data!"
INVALID_CREDENTIALS = "Invalid Credentials, Please Try Again."


def _authenticated(user: User) -> AuthenticatedUser:
    token = create_access_token(data={"sub": str(user.id), "email": user.email})
    return AuthenticatedUser(
        **UserInfo.model_validate(user).model_dump(), token=token
    )


@router.post("/register", response_model=ApiResponse[AuthenticatedUser])
async def register_user(
    body: Any = Body(None),
    user_db_handler: UserDBHandler = Depends(),
):
    """Register a new user and return it with an access token."""
    user_data = parse_user_registration(body)

    existing_user = await user_db_handler.get_user_by_email(user_data.email)
    if existing_user:
        logger.warning("Registration attempted with an email already in use")
        raise ValidationError(REGISTRATION_FAILED)

    # Password is hashed with bcrypt before storage
    try:
        user = await user_db_handler.create(
            {
                "first_name": user_data.first_name,
                "last_name": user_data.last_name,
                "email": user_data.email,
                "hashed_password": get_password_hash(user_data.password),
            }
        )
    except IntegrityError as e:
        # Lost a race against another registration for the same email
        raise ValidationError(REGISTRATION_FAILED) from e

    logger.info(f"Registered user {user.id}")
    return ApiResponse(
        status=True, message="User registered successfully.", data=_authenticated(user)
    )


@router.post("/login", response_model=ApiResponse[AuthenticatedUser])
async def login_user(
    body: Any = Body(None),
    user_db_handler: UserDBHandler = Depends(),
):
    """Authenticate user and return JWT token for API access."""
    credentials = parse_user_login(body)
    user = await user_db_handler.get_user_by_email(credentials.email)

    if not user or not verify_password(credentials.password, user.hashed_password):
        raise Unauthorized(INVALID_CREDENTIALS)

    return ApiResponse(
        status=True, message="Logged in successfully.", data=_authenticated(user)
    )


@router.get("/me", response_model=ApiResponse[UserInfo])
async def get_current_user_info(
    current_user: User = Depends(get_current_user),
):
    """Retrieve current authenticated user's profile information."""
    return ApiResponse(
        status=True,
        message="User fetched successfully.",
        data=UserInfo.model_validate(current_user),
    )
