"""Application context.

Holds everything a request handler needs: settings, stores, the hosting
provider, the event bus, the rate limiter and the deployment runner. It is built once in the
FastAPI lifespan and torn down at shutdown.
"""

import time
from pathlib import Path

from pymongo import AsyncMongoClient

from ntando.config import Settings
from ntando.core.events import EventBus
from ntando.core.packaging import UploadStorage
from ntando.core.ratelimit import ClientRateLimiter
from ntando.core.runner import INTERRUPTED_MESSAGE, DeploymentRunner
from ntando.core.security import TokenService
from ntando.providers import HostingProvider, build_provider
from ntando.storage.base import DeploymentStore, UserStore
from ntando.storage.memory import MemoryDeploymentStore, MemoryUserStore
from ntando.storage.mongo import MongoDeploymentStore, MongoUserStore
from ntando.utils.logging import get_logger

logger = get_logger(__name__)


class AppContext:
    """Process-wide dependencies with explicit startup and shutdown."""

    def __init__(
        self,
        settings: Settings,
        users: UserStore,
        deployments: DeploymentStore,
        provider: HostingProvider,
        mongo_client: AsyncMongoClient | None = None,
    ):
        self.settings = settings
        self.users = users
        self.deployments = deployments
        self.provider = provider
        self.tokens = TokenService.from_settings(settings)
        self.events = EventBus()
        self.rate_limiter = ClientRateLimiter.from_settings(settings)
        self.uploads = UploadStorage(
            root=Path(settings.upload_dir),
            max_files=settings.max_upload_files,
            max_bytes=settings.max_upload_bytes,
        )
        self.runner = DeploymentRunner(
            store=deployments,
            provider=provider,
            uploads=self.uploads,
            events=self.events,
            poll_interval=settings.poll_interval_seconds,
            max_attempts=settings.poll_max_attempts,
        )
        self._mongo_client = mongo_client
        self.started_at = time.monotonic()

    @classmethod
    def from_settings(cls, settings: Settings) -> "AppContext":
        """Build the context for the configured storage backend and provider."""
        provider = build_provider(settings)
        if settings.storage_backend == "memory":
            return cls(
                settings,
                users=MemoryUserStore(),
                deployments=MemoryDeploymentStore(),
                provider=provider,
            )

        client: AsyncMongoClient = AsyncMongoClient(settings.mongodb_uri, tz_aware=True)
        database = client[settings.mongodb_database]
        return cls(
            settings,
            users=MongoUserStore(database),
            deployments=MongoDeploymentStore(database),
            provider=provider,
            mongo_client=client,
        )

    @property
    def uptime(self) -> float:
        return time.monotonic() - self.started_at

    async def startup(self) -> None:
        self.started_at = time.monotonic()
        self.uploads.root.mkdir(parents=True, exist_ok=True)
        if isinstance(self.users, MongoUserStore):
            await self.users.ensure_indexes()
        if isinstance(self.deployments, MongoDeploymentStore):
            await self.deployments.ensure_indexes()
        # Runner tasks do not survive a restart
        stranded = await self.deployments.fail_unfinished(INTERRUPTED_MESSAGE)
        if stranded:
            logger.warning("context.unfinished_deployments_failed", count=stranded)
        logger.info(
            "context.started",
            storage=self.settings.storage_backend,
            provider=self.settings.hosting_provider,
        )

    async def shutdown(self) -> None:
        await self.runner.shutdown()
        await self.provider.close()
        if self._mongo_client is not None:
            await self._mongo_client.close()
        logger.info("context.stopped")
