"""Unit tests for the event bus and the SSE stream."""

import json

import pytest

from ntando.api.routes.deployments import deployment_events
from ntando.core.context import AppContext
from ntando.core.events import Event, EventBus
from ntando.models.deployment import DeploymentStatus


class TestEventBus:
    """Tests for the in-process pub/sub."""

    @pytest.mark.asyncio
    async def test_publish_reaches_every_subscriber(self):
        bus = EventBus()
        first = bus.subscribe("dep-1")
        second = bus.subscribe("dep-1")
        other = bus.subscribe("dep-2")

        await bus.publish("dep-1", Event(event_type="status_changed", data={"status": "deploying"}))

        assert first.get_nowait().data == {"status": "deploying"}
        assert second.get_nowait().event_type == "status_changed"
        assert other.empty()

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        bus = EventBus()
        queue = bus.subscribe("dep-1")
        assert bus.subscriber_count("dep-1") == 1

        bus.unsubscribe("dep-1", queue)
        bus.unsubscribe("dep-1", queue)

        assert bus.subscriber_count("dep-1") == 0
        await bus.publish("dep-1", Event(event_type="status_changed", data={}))
        assert queue.empty()

    @pytest.mark.asyncio
    async def test_deployment_events(self, make_deployment):
        bus = EventBus()
        deployment = make_deployment(url="https://demo.ntl.cloud")
        queue = bus.subscribe(deployment.id)

        await bus.publish_status_changed(deployment)
        await bus.publish_deployment_live(deployment)

        changed = queue.get_nowait()
        live = queue.get_nowait()
        assert changed.data == {"deployment_id": deployment.id, "status": "building"}
        assert live.event_type == "deployment_live"
        assert live.data["url"] == "https://demo.ntl.cloud"

    def test_payload_carries_timestamp(self):
        event = Event(event_type="status_changed", data={"status": "live"})

        payload = event.to_payload()

        assert payload["status"] == "live"
        assert payload["timestamp"] == event.timestamp.isoformat()


class TestDeploymentEventStream:
    """Tests for the SSE generator behind /deployments/{id}/events."""

    @pytest.mark.asyncio
    async def test_stream_until_live(self, context: AppContext, make_deployment):
        deployment = await context.deployments.create_deployment(make_deployment())
        stream = deployment_events(context, deployment.id)

        connected = await anext(stream)
        assert connected["event"] == "connected"
        assert json.loads(connected["data"])["status"] == "building"

        deploying = await context.deployments.update_status(deployment.id, DeploymentStatus.DEPLOYING)
        await context.events.publish_status_changed(deploying)
        live = await context.deployments.update_status(
            deployment.id, DeploymentStatus.LIVE, url="https://demo.ntl.cloud"
        )
        await context.events.publish_status_changed(live)
        await context.events.publish_deployment_live(live)

        received = [item async for item in stream]

        assert [item["event"] for item in received] == [
            "status_changed",
            "status_changed",
            "deployment_live",
        ]
        assert json.loads(received[-1]["data"])["url"] == "https://demo.ntl.cloud"
        assert context.events.subscriber_count(deployment.id) == 0

    @pytest.mark.asyncio
    async def test_stream_of_finished_deployment(self, context: AppContext, make_deployment):
        deployment = await context.deployments.create_deployment(make_deployment())
        await context.deployments.update_status(deployment.id, DeploymentStatus.ERROR, error="boom")

        received = [item async for item in deployment_events(context, deployment.id)]

        assert len(received) == 1
        assert json.loads(received[0]["data"])["status"] == "error"
        assert context.events.subscriber_count(deployment.id) == 0

    @pytest.mark.asyncio
    async def test_keepalive(self, context: AppContext, make_deployment):
        deployment = await context.deployments.create_deployment(make_deployment())
        stream = deployment_events(context, deployment.id, keepalive=0.01)

        await anext(stream)
        keepalive = await anext(stream)
        await stream.aclose()

        assert keepalive == {"event": "keepalive", "data": "{}"}
        assert context.events.subscriber_count(deployment.id) == 0
