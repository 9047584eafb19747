"""Integration tests for the MongoDB stores.

They need a MongoDB server and are skipped when none is reachable.
"""

import asyncio
import os
from datetime import datetime, timedelta, timezone
from typing import AsyncIterator
from uuid import uuid4

import pytest
from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from ntando.core.exceptions import (
    DeploymentNotFoundError,
    DomainTakenError,
    EmailTakenError,
    InvalidTransitionError,
)
from ntando.models.deployment import DeploymentStatus
from ntando.models.user import User
from ntando.storage.mongo import MongoDeploymentStore, MongoUserStore

MONGODB_URI = os.getenv("MONGODB_URI_TEST", "mongodb://localhost:27017")

pytestmark = pytest.mark.mongodb


@pytest.fixture
async def database() -> AsyncIterator[AsyncDatabase]:
    if "localhost" not in MONGODB_URI and "127.0.0.1" not in MONGODB_URI:
        raise ValueError("Only local testing is supported")

    client: AsyncMongoClient = AsyncMongoClient(
        MONGODB_URI, tz_aware=True, serverSelectionTimeoutMS=500
    )
    try:
        await client.admin.command("ping")
    except PyMongoError:
        await client.close()
        pytest.skip(f"MongoDB is not reachable at {MONGODB_URI}")

    db = client[f"ntando_test_{uuid4().hex[:8]}"]
    yield db
    await client.drop_database(db.name)
    await client.close()


@pytest.fixture
async def store(database: AsyncDatabase) -> MongoDeploymentStore:
    store = MongoDeploymentStore(database)
    await store.ensure_indexes()
    return store


@pytest.fixture
async def users(database: AsyncDatabase) -> MongoUserStore:
    users = MongoUserStore(database)
    await users.ensure_indexes()
    return users


class TestMongoDeploymentStore:
    """Tests for deployment persistence and its conditional updates."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, store, make_deployment):
        deployment = await store.create_deployment(make_deployment())

        result = await store.get_deployment(deployment.id)

        assert result.id == deployment.id
        assert result.domain == "demo.ntl.cloud"
        assert result.status == DeploymentStatus.BUILDING
        assert await store.find_by_domain("demo.ntl.cloud") is not None
        assert await store.find_by_domain("other.ntl.cloud") is None

    @pytest.mark.asyncio
    async def test_duplicate_domain(self, store, make_deployment):
        original = await store.create_deployment(make_deployment(owner_id="owner-1"))

        with pytest.raises(DomainTakenError) as exc_info:
            await store.create_deployment(make_deployment(owner_id="owner-2"))

        assert exc_info.value.details == {"domain": "demo.ntl.cloud"}
        assert (await store.find_by_domain("demo.ntl.cloud")).id == original.id

    @pytest.mark.asyncio
    async def test_get_scoped_to_owner(self, store, make_deployment):
        deployment = await store.create_deployment(make_deployment(owner_id="owner-1"))

        with pytest.raises(DeploymentNotFoundError):
            await store.get_deployment(deployment.id, owner_id="owner-2")

    @pytest.mark.asyncio
    async def test_list_newest_first(self, store, make_deployment):
        start = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for index, name in enumerate(["one", "two", "three"]):
            await store.create_deployment(
                make_deployment(f"{name}.ntl.cloud", created_at=start + timedelta(minutes=index))
            )
        await store.create_deployment(make_deployment("other.ntl.cloud", owner_id="owner-2"))

        result = await store.list_deployments("owner-1", limit=2)

        assert [d.domain for d in result] == ["three.ntl.cloud", "two.ntl.cloud"]

    @pytest.mark.asyncio
    async def test_update_status_moves_forward(self, store, make_deployment):
        deployment = await store.create_deployment(make_deployment())

        await store.update_status(deployment.id, DeploymentStatus.DEPLOYING)
        result = await store.update_status(
            deployment.id, DeploymentStatus.LIVE, url="https://demo.ntl.cloud"
        )

        assert result.status == DeploymentStatus.LIVE
        assert result.url == "https://demo.ntl.cloud"

    @pytest.mark.asyncio
    async def test_update_status_refuses_regression(self, store, make_deployment):
        deployment = await store.create_deployment(
            make_deployment(status=DeploymentStatus.LIVE)
        )

        with pytest.raises(InvalidTransitionError) as exc_info:
            await store.update_status(deployment.id, DeploymentStatus.DEPLOYING)

        assert exc_info.value.details["current"] == "live"
        assert (await store.get_deployment(deployment.id)).status == DeploymentStatus.LIVE

    @pytest.mark.asyncio
    async def test_update_status_missing(self, store):
        with pytest.raises(DeploymentNotFoundError):
            await store.update_status("missing", DeploymentStatus.DEPLOYING)

    @pytest.mark.asyncio
    async def test_concurrent_terminal_updates(self, store, make_deployment):
        deployment = await store.create_deployment(
            make_deployment(status=DeploymentStatus.DEPLOYING)
        )

        results = await asyncio.gather(
            store.update_status(deployment.id, DeploymentStatus.LIVE),
            store.update_status(deployment.id, DeploymentStatus.ERROR, error="failed"),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, InvalidTransitionError)]
        assert len(failures) == 1
        final = await store.get_deployment(deployment.id)
        assert final.status.is_terminal

    @pytest.mark.asyncio
    async def test_set_provider_service(self, store, make_deployment):
        deployment = await store.create_deployment(make_deployment())

        result = await store.set_provider_service(deployment.id, "srv-1")

        assert result.provider_service_id == "srv-1"
        with pytest.raises(DeploymentNotFoundError):
            await store.set_provider_service("missing", "srv-1")

    @pytest.mark.asyncio
    async def test_delete_scoped_to_owner(self, store, make_deployment):
        deployment = await store.create_deployment(make_deployment(owner_id="owner-1"))

        with pytest.raises(DeploymentNotFoundError):
            await store.delete_deployment(deployment.id, owner_id="owner-2")
        assert (await store.get_deployment(deployment.id)).id == deployment.id

        deleted = await store.delete_deployment(deployment.id, owner_id="owner-1")

        assert deleted.id == deployment.id
        assert await store.find_by_domain("demo.ntl.cloud") is None
        await store.create_deployment(make_deployment(owner_id="owner-2"))

    @pytest.mark.asyncio
    async def test_fail_unfinished(self, store, make_deployment):
        building = await store.create_deployment(make_deployment("one.ntl.cloud"))
        live = await store.create_deployment(
            make_deployment("two.ntl.cloud", status=DeploymentStatus.LIVE)
        )

        assert await store.fail_unfinished("interrupted") == 1

        result = await store.get_deployment(building.id)
        assert result.status == DeploymentStatus.ERROR
        assert result.error == "interrupted"
        assert (await store.get_deployment(live.id)).status == DeploymentStatus.LIVE


class TestMongoUserStore:
    """Tests for user persistence."""

    @pytest.mark.asyncio
    async def test_create_and_lookup(self, users):
        user = await users.create_user(User(email="alice@ntando.io", hashed_password="hash"))

        assert (await users.get_user(user.id)).email == "alice@ntando.io"
        assert (await users.get_user_by_email("alice@ntando.io")).id == user.id
        assert await users.get_user_by_email("bob@ntando.io") is None

    @pytest.mark.asyncio
    async def test_duplicate_email(self, users):
        await users.create_user(User(email="alice@ntando.io", hashed_password="hash"))

        with pytest.raises(EmailTakenError):
            await users.create_user(User(email="alice@ntando.io", hashed_password="other"))
