"""Event system for Server-Sent Events (SSE)."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ntando.models.deployment import Deployment, utcnow

TERMINAL_EVENTS = ("deployment_live", "deployment_failed")


@dataclass
class Event:
    """An SSE event."""

    event_type: str
    data: dict[str, Any]
    timestamp: datetime = field(default_factory=utcnow)

    def to_payload(self) -> dict[str, Any]:
        return {**self.data, "timestamp": self.timestamp.isoformat()}


class EventBus:
    """Simple event bus for deployment events.

    Each subscriber gets its own queue, so several clients can follow the
    same deployment.
    """

    def __init__(self):
        self._subscribers: dict[str, set[asyncio.Queue[Event]]] = {}

    def subscribe(self, deployment_id: str) -> asyncio.Queue[Event]:
        """Subscribe to events for a deployment."""
        queue: asyncio.Queue[Event] = asyncio.Queue()
        self._subscribers.setdefault(deployment_id, set()).add(queue)
        return queue

    def unsubscribe(self, deployment_id: str, queue: asyncio.Queue[Event]) -> None:
        """Unsubscribe a queue from deployment events."""
        queues = self._subscribers.get(deployment_id)
        if queues is None:
            return
        queues.discard(queue)
        if not queues:
            del self._subscribers[deployment_id]

    def subscriber_count(self, deployment_id: str) -> int:
        return len(self._subscribers.get(deployment_id, ()))

    async def publish(self, deployment_id: str, event: Event) -> None:
        """Publish an event for a deployment."""
        for queue in list(self._subscribers.get(deployment_id, ())):
            await queue.put(event)

    async def publish_status_changed(self, deployment: Deployment) -> None:
        """Publish a status change."""
        await self.publish(
            deployment.id,
            Event(
                event_type="status_changed",
                data={"deployment_id": deployment.id, "status": deployment.status.value},
            ),
        )

    async def publish_deployment_live(self, deployment: Deployment) -> None:
        """Publish a deployment live event."""
        await self.publish(
            deployment.id,
            Event(
                event_type="deployment_live",
                data={"deployment_id": deployment.id, "url": deployment.url},
            ),
        )

    async def publish_deployment_failed(self, deployment: Deployment) -> None:
        """Publish a deployment failed event."""
        await self.publish(
            deployment.id,
            Event(
                event_type="deployment_failed",
                data={"deployment_id": deployment.id, "error": deployment.error},
            ),
        )
