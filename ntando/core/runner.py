"""Deployment runner.

Drives each deployment through ``building -> deploying -> live | error``:

1. mark the record ``deploying``
2. unpack uploaded archives
3. create the site at the hosting provider (and register a custom domain)
4. poll the provider at a fixed interval, with a fixed attempt budget

Each deployment runs in its own asyncio task. Any failure past the request
boundary marks the record ``error``; running out of attempts does too, and so
does cancellation at shutdown.
"""

import asyncio
from typing import Awaitable, Callable

from ntando.core.events import EventBus
from ntando.core.exceptions import (
    DeploymentNotFoundError,
    InvalidTransitionError,
    ProviderError,
)
from ntando.core.packaging import UploadStorage
from ntando.models.deployment import Deployment, DeploymentStatus
from ntando.providers.base import HostingProvider, ProviderSite, SiteStatus
from ntando.storage.base import DeploymentStore
from ntando.utils.logging import get_logger

INTERRUPTED_MESSAGE = "Deployment interrupted by server shutdown"


class DeploymentRunner:
    """Owns the background tasks that move deployments through their lifecycle."""

    def __init__(
        self,
        store: DeploymentStore,
        provider: HostingProvider,
        uploads: UploadStorage,
        events: EventBus,
        poll_interval: float = 5.0,
        max_attempts: int = 30,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.store = store
        self.provider = provider
        self.uploads = uploads
        self.events = events
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self._sleep = sleep
        self._tasks: dict[str, asyncio.Task[None]] = {}
        self.logger = get_logger("runner")

    @property
    def active(self) -> list[str]:
        """Ids of deployments with a running task."""
        return list(self._tasks)

    def start(self, deployment: Deployment) -> asyncio.Task[None]:
        """Schedule the lifecycle of a freshly created deployment."""
        task = asyncio.create_task(self.run(deployment.id), name=f"deploy-{deployment.id}")
        self._tasks[deployment.id] = task
        task.add_done_callback(lambda t: self._on_done(deployment.id, t))
        return task

    async def drain(self) -> None:
        """Wait for every running deployment to finish."""
        while self._tasks:
            await asyncio.gather(*self._tasks.values(), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel every running deployment, marking each one ``error``."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if tasks:
            self.logger.info("runner.shutdown", cancelled=len(tasks))

    async def run(self, deployment_id: str) -> None:
        """Run one deployment to a terminal status."""
        self.logger.info("runner.started", deployment_id=deployment_id)
        try:
            deployment = await self._transition(deployment_id, DeploymentStatus.DEPLOYING)

            extracted = await self.uploads.unpack(deployment_id)
            if extracted:
                self.logger.info(
                    "runner.archive_extracted",
                    deployment_id=deployment_id,
                    files=extracted,
                )

            site = await self.provider.create_site(deployment)
            deployment = await self.store.set_provider_service(deployment_id, site.id)

            if not deployment.is_platform_domain:
                await self.provider.add_custom_domain(site.id, deployment.domain)

            await self._monitor(deployment, site)

        except asyncio.CancelledError:
            await self._fail(deployment_id, INTERRUPTED_MESSAGE)
            raise
        except DeploymentNotFoundError:
            # Deleted while in flight
            self.logger.info("runner.deployment_removed", deployment_id=deployment_id)
        except Exception as e:
            self.logger.error(
                "runner.failed",
                deployment_id=deployment_id,
                error=str(e),
                exc_info=True,
            )
            await self._fail(deployment_id, str(e))

    async def _monitor(self, deployment: Deployment, site: ProviderSite) -> None:
        for attempt in range(1, self.max_attempts + 1):
            await self._sleep(self.poll_interval)
            try:
                site = await self.provider.get_site(site.id)
            except ProviderError as e:
                self.logger.warning(
                    "runner.poll.failed",
                    deployment_id=deployment.id,
                    attempt=attempt,
                    error=e.message,
                )
                continue

            if site.status == SiteStatus.LIVE:
                await self._transition(
                    deployment.id,
                    DeploymentStatus.LIVE,
                    url=site.url or deployment.public_url,
                )
                return
            if site.status == SiteStatus.FAILED:
                await self._fail(deployment.id, "Hosting provider reported a failed build")
                return

            self.logger.debug(
                "runner.poll.pending",
                deployment_id=deployment.id,
                attempt=attempt,
            )

        await self._fail(
            deployment.id,
            f"Deployment did not become live after {self.max_attempts} status checks",
        )

    async def _transition(
        self,
        deployment_id: str,
        status: DeploymentStatus,
        url: str | None = None,
        error: str | None = None,
    ) -> Deployment:
        deployment = await self.store.update_status(deployment_id, status, url=url, error=error)
        self.logger.info(
            "deployment.notification",
            deployment_id=deployment.id,
            domain=deployment.domain,
            status=status.value,
        )
        await self.events.publish_status_changed(deployment)
        if status == DeploymentStatus.LIVE:
            await self.events.publish_deployment_live(deployment)
        elif status == DeploymentStatus.ERROR:
            await self.events.publish_deployment_failed(deployment)
        return deployment

    async def _fail(self, deployment_id: str, message: str) -> None:
        try:
            await self._transition(deployment_id, DeploymentStatus.ERROR, error=message)
        except DeploymentNotFoundError:
            self.logger.info("runner.deployment_removed", deployment_id=deployment_id)
        except InvalidTransitionError as e:
            self.logger.warning("runner.already_terminal", deployment_id=deployment_id, error=e.message)

    def _on_done(self, deployment_id: str, task: asyncio.Task[None]) -> None:
        self._tasks.pop(deployment_id, None)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.logger.error(
                "runner.task_crashed",
                deployment_id=deployment_id,
                error=str(exc),
            )
