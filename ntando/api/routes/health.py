"""Health check endpoints."""

from datetime import datetime

from fastapi import APIRouter
from pydantic import BaseModel

from ntando import __version__
from ntando.api.deps import ContextDep
from ntando.models.deployment import utcnow

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    version: str
    environment: str
    timestamp: datetime
    uptime: float


@router.get("/health", response_model=HealthResponse)
async def health_check(context: ContextDep) -> HealthResponse:
    """Liveness probe reporting process uptime in seconds."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=context.settings.app_env,
        timestamp=utcnow(),
        uptime=round(context.uptime, 3),
    )
