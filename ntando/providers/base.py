"""Hosting provider interface."""

from enum import Enum
from typing import Protocol

from pydantic import BaseModel

from ntando.models.deployment import Deployment


class SiteStatus(str, Enum):
    """Site status as reported by a hosting provider."""

    PENDING = "pending"
    LIVE = "live"
    FAILED = "failed"

    @classmethod
    def from_provider(cls, raw: str | None) -> "SiteStatus":
        """Map a provider-specific status string."""
        value = (raw or "").lower()
        if value in ("live", "ready"):
            return cls.LIVE
        if value in ("failed", "error"):
            return cls.FAILED
        return cls.PENDING


class ProviderSite(BaseModel):
    """A site created at the hosting provider."""

    id: str
    url: str | None = None
    status: SiteStatus = SiteStatus.PENDING


class HostingProvider(Protocol):
    @property
    def estimated_seconds(self) -> int: ...

    async def create_site(self, deployment: Deployment) -> ProviderSite: ...

    async def get_site(self, site_id: str) -> ProviderSite: ...

    async def add_custom_domain(self, site_id: str, domain: str) -> None: ...

    async def close(self) -> None: ...
