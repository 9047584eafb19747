"""Deployment endpoints."""

import asyncio
import json
from datetime import timedelta
from typing import Annotated, Any, AsyncIterator

from fastapi import APIRouter, File, Form, Query, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sse_starlette.sse import EventSourceResponse

from ntando.api.deps import ContextDep, CurrentUserDep, DeploymentDep
from ntando.core.context import AppContext
from ntando.core.events import TERMINAL_EVENTS, Event
from ntando.models.deployment import (
    DeployAccepted,
    Deployment,
    DeploymentCreate,
    DeploymentResponse,
    DeploymentStatus,
    DomainAvailability,
    utcnow,
)
from ntando.utils.logging import get_logger

router = APIRouter()
logger = get_logger(__name__)

KEEPALIVE_SECONDS = 30.0


class MessageResponse(BaseModel):
    message: str


@router.post(
    "/deploy",
    response_model=DeployAccepted,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start a deployment",
    description="Create a deployment from uploaded files or a repository. Returns immediately while the deployment runs in background.",
)
async def deploy(
    context: ContextDep,
    user: CurrentUserDep,
    project_name: Annotated[str | None, Form()] = None,
    domain: Annotated[str | None, Form()] = None,
    repository_url: Annotated[str | None, Form()] = None,
    branch: Annotated[str | None, Form()] = None,
    build_command: Annotated[str | None, Form()] = None,
    output_dir: Annotated[str | None, Form()] = None,
    files: Annotated[list[UploadFile] | None, File()] = None,
) -> DeployAccepted:
    """Validate the request, persist a ``building`` record and start the runner."""
    try:
        data = DeploymentCreate(
            project_name=project_name,
            domain=domain,
            repository_url=repository_url,
            branch=branch,
            build_command=build_command,
            output_dir=output_dir,
        )
    except PydanticValidationError as e:
        raise RequestValidationError(e.errors(include_url=False)) from e

    uploads = files or []
    context.uploads.validate(uploads)

    deployment = Deployment.from_request(user.id, data)
    await context.deployments.create_deployment(deployment)
    logger.info(
        "deployment.created",
        deployment_id=deployment.id,
        domain=deployment.domain,
        files=len(uploads),
    )

    if uploads:
        try:
            await context.uploads.save(deployment.id, uploads)
        except Exception as e:
            await context.deployments.update_status(
                deployment.id, DeploymentStatus.ERROR, error=str(e)
            )
            raise

    context.runner.start(deployment)

    estimated = context.provider.estimated_seconds
    return DeployAccepted(
        deployment_id=deployment.id,
        domain=deployment.domain,
        status=deployment.status,
        estimated_seconds=estimated,
        estimated_completion_at=utcnow() + timedelta(seconds=estimated),
    )


@router.get(
    "/domains/{domain}",
    response_model=DomainAvailability,
    summary="Check whether a domain is free",
)
async def check_domain(
    domain: str,
    context: ContextDep,
    user: CurrentUserDep,
) -> DomainAvailability:
    """Advisory check; the deploy call is what actually claims the domain."""
    domain = domain.strip().lower().rstrip(".")
    existing = await context.deployments.find_by_domain(domain)
    return DomainAvailability(domain=domain, available=existing is None)


@router.get(
    "/deployments",
    response_model=list[DeploymentResponse],
    summary="List your deployments",
)
async def list_deployments(
    context: ContextDep,
    user: CurrentUserDep,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> list[DeploymentResponse]:
    """List the caller's deployments, newest first."""
    deployments = await context.deployments.list_deployments(user.id, limit=limit)
    return [DeploymentResponse.from_deployment(d) for d in deployments]


@router.get(
    "/deployments/{deployment_id}",
    response_model=DeploymentResponse,
    summary="Get deployment details",
)
async def get_deployment(deployment: DeploymentDep) -> DeploymentResponse:
    return DeploymentResponse.from_deployment(deployment)


@router.delete(
    "/deployments/{deployment_id}",
    response_model=MessageResponse,
    summary="Delete a deployment",
)
async def delete_deployment(
    deployment_id: str,
    context: ContextDep,
    user: CurrentUserDep,
) -> MessageResponse:
    """Delete one of the caller's deployments and its uploaded files."""
    deployment = await context.deployments.delete_deployment(deployment_id, owner_id=user.id)
    await context.uploads.remove(deployment.id)

    logger.info("deployment.deleted", deployment_id=deployment.id, domain=deployment.domain)
    return MessageResponse(message="Deployment deleted successfully")


async def deployment_events(
    context: AppContext,
    deployment_id: str,
    keepalive: float = KEEPALIVE_SECONDS,
) -> AsyncIterator[dict[str, Any]]:
    """Yield SSE payloads for a deployment until it reaches a terminal status."""
    queue = context.events.subscribe(deployment_id)
    try:
        # Read after subscribing so a transition in between is not lost
        deployment = await context.deployments.get_deployment(deployment_id)
        yield {
            "event": "connected",
            "data": json.dumps(
                {"deployment_id": deployment.id, "status": deployment.status.value}
            ),
        }
        if deployment.status.is_terminal:
            return

        while True:
            try:
                event: Event = await asyncio.wait_for(queue.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                yield {"event": "keepalive", "data": "{}"}
                continue

            yield {"event": event.event_type, "data": json.dumps(event.to_payload())}
            if event.event_type in TERMINAL_EVENTS:
                break
    finally:
        context.events.unsubscribe(deployment_id, queue)


@router.get(
    "/deployments/{deployment_id}/events",
    summary="Stream deployment status changes (SSE)",
)
async def stream_deployment_events(
    deployment: DeploymentDep,
    context: ContextDep,
) -> EventSourceResponse:
    return EventSourceResponse(deployment_events(context, deployment.id))
