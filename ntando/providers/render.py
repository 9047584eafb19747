"""Render.com REST API client."""

from typing import Any

import httpx

from ntando.core.exceptions import ProviderError
from ntando.models.deployment import Deployment
from ntando.providers.base import ProviderSite, SiteStatus
from ntando.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://api.render.com/v1"


class RenderProvider:
    """Creates static sites on Render and reports their status."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        template_repo: str = "https://github.com/ntando-computer/template-static-site",
        timeout: float = 30.0,
    ):
        self._template_repo = template_repo
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=timeout,
        )

    @property
    def estimated_seconds(self) -> int:
        return 30

    async def close(self) -> None:
        await self._client.aclose()

    async def create_site(self, deployment: Deployment) -> ProviderSite:
        payload = {
            "name": deployment.project_name,
            "type": "static_site",
            "repo": deployment.repository_url or self._template_repo,
            "branch": deployment.branch,
            "buildCommand": deployment.build_command or "npm run build",
            "publishDir": f"./{deployment.output_dir}",
            "envVars": [{"key": "NODE_ENV", "value": "production"}],
        }
        data = await self._request("POST", "/services", json=payload)
        site = _parse_site(data)
        logger.info(
            "render.site_created",
            site_id=site.id,
            deployment_id=deployment.id,
        )
        return site

    async def get_site(self, site_id: str) -> ProviderSite:
        data = await self._request("GET", f"/services/{site_id}")
        return _parse_site(data)

    async def add_custom_domain(self, site_id: str, domain: str) -> None:
        await self._request(
            "POST",
            f"/services/{site_id}/custom-domains",
            json={"name": domain},
        )
        logger.info("render.custom_domain_added", site_id=site_id, domain=domain)

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "render.request_failed",
                method=method,
                path=path,
                status_code=e.response.status_code,
                body=e.response.text[:500],
            )
            raise ProviderError(
                f"{method} {path} returned {e.response.status_code}",
                status=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            logger.error("render.request_failed", method=method, path=path, error=str(e))
            raise ProviderError(f"{method} {path} failed: {e}") from e
        try:
            return response.json()
        except ValueError as e:
            logger.error("render.invalid_response", method=method, path=path, body=response.text[:500])
            raise ProviderError(f"{method} {path} returned a non-JSON body") from e


def _parse_site(data: dict[str, Any]) -> ProviderSite:
    # Create returns {"service": {...}, "deployId": ...}; get returns the service
    service = data.get("service", data)
    details = service.get("serviceDetails") or {}
    try:
        site_id = service["id"]
    except KeyError as e:
        raise ProviderError("Response is missing the service id") from e
    return ProviderSite(
        id=site_id,
        url=service.get("url") or details.get("url"),
        status=SiteStatus.from_provider(service.get("status")),
    )
