"""Authentication endpoints."""

import asyncio

from fastapi import APIRouter, status

from ntando.api.deps import ContextDep, CurrentUserDep
from ntando.core.exceptions import AuthenticationError
from ntando.core.security import hash_password, verify_password
from ntando.models.user import Credentials, TokenResponse, User, UserResponse
from ntando.utils.logging import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
)
async def register(data: Credentials, context: ContextDep) -> TokenResponse:
    """Register a new user and return a signed token."""
    hashed = await asyncio.to_thread(hash_password, data.password)
    user = await context.users.create_user(User(email=data.email, hashed_password=hashed))

    logger.info("auth.registered", user_id=user.id)
    return TokenResponse(
        message="User created successfully",
        token=context.tokens.issue(user.id),
        user=UserResponse.from_user(user),
    )


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Log in",
)
async def login(data: Credentials, context: ContextDep) -> TokenResponse:
    """Exchange email and password for a signed token."""
    user = await context.users.get_user_by_email(data.email)
    if user is None:
        raise AuthenticationError("Invalid credentials")

    valid = await asyncio.to_thread(verify_password, data.password, user.hashed_password)
    if not valid:
        logger.info("auth.login_rejected", user_id=user.id)
        raise AuthenticationError("Invalid credentials")

    return TokenResponse(
        message="Login successful",
        token=context.tokens.issue(user.id),
        user=UserResponse.from_user(user),
    )


@router.get("/me", response_model=UserResponse, summary="Current user")
async def me(user: CurrentUserDep) -> UserResponse:
    return UserResponse.from_user(user)
