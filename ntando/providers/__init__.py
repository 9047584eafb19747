"""Hosting providers."""

from ntando.config import Settings
from ntando.providers.base import HostingProvider, ProviderSite, SiteStatus
from ntando.providers.render import RenderProvider
from ntando.providers.simulated import SimulatedProvider


def build_provider(settings: Settings) -> HostingProvider:
    """Build the hosting provider selected by ``HOSTING_PROVIDER``."""
    if settings.hosting_provider == "render":
        return RenderProvider(
            api_key=settings.render_api_key,
            base_url=settings.render_base_url,
            template_repo=settings.render_template_repo,
        )
    return SimulatedProvider(build_seconds=settings.simulated_build_seconds)


__all__ = [
    "HostingProvider",
    "ProviderSite",
    "SiteStatus",
    "RenderProvider",
    "SimulatedProvider",
    "build_provider",
]
