"""Dependency injection for API endpoints."""

from typing import Annotated

from fastapi import Depends, Header, Request

from ntando.core.context import AppContext
from ntando.core.exceptions import (
    AuthenticationError,
    InvalidTokenError,
    RateLimitExceededError,
    UserNotFoundError,
)
from ntando.models.deployment import Deployment
from ntando.models.user import User


def get_context(request: Request) -> AppContext:
    """Get the application context built by the lifespan."""
    return request.app.state.context


async def get_current_user(
    context: Annotated[AppContext, Depends(get_context)],
    authorization: Annotated[str | None, Header()] = None,
) -> User:
    """Resolve the bearer token to a user (401 when missing, 403 when invalid)."""
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Access token required")

    user_id = context.tokens.verify(token.strip())
    try:
        return await context.users.get_user(user_id)
    except UserNotFoundError as e:
        raise InvalidTokenError() from e


async def enforce_rate_limit(
    request: Request,
    context: Annotated[AppContext, Depends(get_context)],
) -> None:
    """Reject the request with 429 once its client is over the limit."""
    if context.rate_limiter is None:
        return
    client = request.client.host if request.client else "unknown"
    retry_after = context.rate_limiter.hit(client)
    if retry_after is not None:
        raise RateLimitExceededError(retry_after)


async def get_owned_deployment(
    deployment_id: str,
    context: Annotated[AppContext, Depends(get_context)],
    user: Annotated[User, Depends(get_current_user)],
) -> Deployment:
    """Get one of the caller's deployments or raise 404."""
    return await context.deployments.get_deployment(deployment_id, owner_id=user.id)


# Type aliases for cleaner signatures
ContextDep = Annotated[AppContext, Depends(get_context)]
CurrentUserDep = Annotated[User, Depends(get_current_user)]
DeploymentDep = Annotated[Deployment, Depends(get_owned_deployment)]
