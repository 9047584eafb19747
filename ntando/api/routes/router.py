"""Main router for the ``/api`` surface."""

from fastapi import APIRouter, Depends

from ntando.api.deps import enforce_rate_limit
from ntando.api.routes import analytics, auth, deployments, health

router = APIRouter(prefix="/api")

# Health checks are not rate limited
limited = [Depends(enforce_rate_limit)]

# Include sub-routers
router.include_router(health.router, tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"], dependencies=limited)
router.include_router(deployments.router, tags=["deployments"], dependencies=limited)
router.include_router(
    analytics.router, prefix="/analytics", tags=["analytics"], dependencies=limited
)
