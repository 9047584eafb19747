"""Analytics endpoint.

The numbers are illustrative: stored counters plus random noise.
"""

import random

from fastapi import APIRouter

from ntando.api.deps import DeploymentDep
from ntando.models.deployment import DeploymentAnalytics

router = APIRouter()


@router.get(
    "/{deployment_id}",
    response_model=DeploymentAnalytics,
    summary="Usage numbers for a deployment",
)
async def get_analytics(deployment: DeploymentDep) -> DeploymentAnalytics:
    metrics = deployment.metrics
    return DeploymentAnalytics(
        deployment_id=deployment.id,
        visitors=metrics.visitors + random.randint(0, 99),
        bandwidth=metrics.bandwidth + random.randint(0, 999),
        uptime=round(99.5 + random.random() * 0.4, 2),
        page_views=random.randint(0, 999),
        unique_visitors=random.randint(0, 499),
        avg_load_time=f"{1 + random.random() * 3:.2f}s",
    )
