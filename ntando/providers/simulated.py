"""Simulated hosting provider.

Sites report ``live`` once a fixed build time has elapsed since creation, and
are dropped after that status has been polled.
No network calls are made.
"""

import math
import time
from typing import Callable
from uuid import uuid4

from ntando.core.exceptions import ProviderError
from ntando.models.deployment import Deployment
from ntando.providers.base import ProviderSite, SiteStatus
from ntando.utils.logging import get_logger

logger = get_logger(__name__)


class SimulatedProvider:
    """In-process stand-in for a hosting provider."""

    def __init__(
        self,
        build_seconds: float = 15.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._build_seconds = build_seconds
        self._clock = clock
        self._sites: dict[str, tuple[float, str]] = {}
        self.custom_domains: dict[str, str] = {}

    @property
    def estimated_seconds(self) -> int:
        return max(1, math.ceil(self._build_seconds))

    async def create_site(self, deployment: Deployment) -> ProviderSite:
        site_id = f"srv-{uuid4().hex[:20]}"
        self._sites[site_id] = (self._clock(), deployment.public_url)
        logger.info(
            "simulated_provider.site_created",
            site_id=site_id,
            domain=deployment.domain,
        )
        return self._site(site_id)

    async def get_site(self, site_id: str) -> ProviderSite:
        """Report the site's status; a site is forgotten once reported live."""
        site = self._site(site_id)
        if site.status == SiteStatus.LIVE:
            del self._sites[site_id]
        return site

    def _site(self, site_id: str) -> ProviderSite:
        if site_id not in self._sites:
            raise ProviderError(f"Unknown site: {site_id}", status=404)
        created_at, url = self._sites[site_id]
        if self._clock() - created_at >= self._build_seconds:
            return ProviderSite(id=site_id, url=url, status=SiteStatus.LIVE)
        return ProviderSite(id=site_id, url=url, status=SiteStatus.PENDING)

    async def add_custom_domain(self, site_id: str, domain: str) -> None:
        if site_id not in self._sites:
            raise ProviderError(f"Unknown site: {site_id}", status=404)
        self.custom_domains[site_id] = domain

    async def close(self) -> None:
        self._sites.clear()
