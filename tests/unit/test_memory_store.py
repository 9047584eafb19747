"""Unit tests for the in-memory stores."""

from datetime import datetime, timezone

import pytest

from ntando.core.exceptions import (
    DeploymentNotFoundError,
    DomainTakenError,
    EmailTakenError,
    InvalidTransitionError,
    UserDeletionNotAllowedError,
    UserNotFoundError,
)
from ntando.models.deployment import DeploymentStatus
from ntando.models.user import User
from ntando.storage.memory import MemoryDeploymentStore, MemoryUserStore


@pytest.fixture
def store() -> MemoryDeploymentStore:
    return MemoryDeploymentStore()


@pytest.fixture
def users() -> MemoryUserStore:
    return MemoryUserStore()


class TestMemoryDeploymentStore:
    """Tests for deployment persistence."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, store, make_deployment):
        deployment = await store.create_deployment(make_deployment())

        fetched = await store.get_deployment(deployment.id)
        assert fetched == deployment

    @pytest.mark.asyncio
    async def test_duplicate_domain_rejected(self, store, make_deployment):
        first = await store.create_deployment(make_deployment(project_name="first"))

        with pytest.raises(DomainTakenError) as exc_info:
            await store.create_deployment(make_deployment(owner_id="owner-2", project_name="second"))

        assert exc_info.value.domain == "demo.ntl.cloud"
        assert (await store.find_by_domain("demo.ntl.cloud")).id == first.id
        assert await store.list_deployments("owner-2") == []

    @pytest.mark.asyncio
    async def test_returned_records_are_copies(self, store, make_deployment):
        deployment = await store.create_deployment(make_deployment())

        fetched = await store.get_deployment(deployment.id)
        fetched.status = DeploymentStatus.LIVE

        assert (await store.get_deployment(deployment.id)).status == DeploymentStatus.BUILDING

    @pytest.mark.asyncio
    async def test_get_with_foreign_owner(self, store, make_deployment):
        deployment = await store.create_deployment(make_deployment())

        with pytest.raises(DeploymentNotFoundError):
            await store.get_deployment(deployment.id, owner_id="someone-else")

    @pytest.mark.asyncio
    async def test_list_is_scoped_and_newest_first(self, store, make_deployment):
        older = await store.create_deployment(
            make_deployment("alpha.ntl.cloud", created_at=datetime(2026, 1, 1, tzinfo=timezone.utc))
        )
        newer = await store.create_deployment(
            make_deployment("beta.ntl.cloud", created_at=datetime(2026, 2, 1, tzinfo=timezone.utc))
        )
        await store.create_deployment(make_deployment("gamma.ntl.cloud", owner_id="owner-2"))

        listed = await store.list_deployments("owner-1")

        assert [d.id for d in listed] == [newer.id, older.id]
        assert [d.id for d in await store.list_deployments("owner-1", limit=1)] == [newer.id]

    @pytest.mark.asyncio
    async def test_find_by_domain_missing(self, store):
        assert await store.find_by_domain("nope.ntl.cloud") is None

    @pytest.mark.asyncio
    async def test_status_moves_forward(self, store, make_deployment):
        deployment = await store.create_deployment(make_deployment())

        deploying = await store.update_status(deployment.id, DeploymentStatus.DEPLOYING)
        live = await store.update_status(
            deployment.id, DeploymentStatus.LIVE, url="https://demo.ntl.cloud"
        )

        assert deploying.status == DeploymentStatus.DEPLOYING
        assert live.status == DeploymentStatus.LIVE
        assert live.url == "https://demo.ntl.cloud"
        assert live.updated_at >= deployment.updated_at

    @pytest.mark.asyncio
    async def test_status_cannot_regress(self, store, make_deployment):
        deployment = await store.create_deployment(make_deployment())
        await store.update_status(deployment.id, DeploymentStatus.DEPLOYING)
        await store.update_status(deployment.id, DeploymentStatus.ERROR, error="boom")

        with pytest.raises(InvalidTransitionError):
            await store.update_status(deployment.id, DeploymentStatus.LIVE)
        with pytest.raises(InvalidTransitionError):
            await store.update_status(deployment.id, DeploymentStatus.DEPLOYING)

        fetched = await store.get_deployment(deployment.id)
        assert fetched.status == DeploymentStatus.ERROR
        assert fetched.error == "boom"

    @pytest.mark.asyncio
    async def test_update_missing(self, store):
        with pytest.raises(DeploymentNotFoundError):
            await store.update_status("missing", DeploymentStatus.DEPLOYING)

    @pytest.mark.asyncio
    async def test_set_provider_service(self, store, make_deployment):
        deployment = await store.create_deployment(make_deployment())

        updated = await store.set_provider_service(deployment.id, "srv-123")

        assert updated.provider_service_id == "srv-123"

    @pytest.mark.asyncio
    async def test_delete_frees_domain(self, store, make_deployment):
        deployment = await store.create_deployment(make_deployment())

        deleted = await store.delete_deployment(deployment.id, owner_id="owner-1")

        assert deleted.id == deployment.id
        assert await store.find_by_domain("demo.ntl.cloud") is None
        with pytest.raises(DeploymentNotFoundError):
            await store.get_deployment(deployment.id)
        # The domain can be claimed again
        await store.create_deployment(make_deployment(owner_id="owner-2"))

    @pytest.mark.asyncio
    async def test_delete_foreign_or_absent(self, store, make_deployment):
        deployment = await store.create_deployment(make_deployment())

        with pytest.raises(DeploymentNotFoundError):
            await store.delete_deployment(deployment.id, owner_id="owner-2")
        with pytest.raises(DeploymentNotFoundError):
            await store.delete_deployment("missing", owner_id="owner-1")

        assert (await store.get_deployment(deployment.id)).id == deployment.id

    @pytest.mark.asyncio
    async def test_clear(self, store, make_deployment):
        await store.create_deployment(make_deployment())

        store.clear()

        assert await store.find_by_domain("demo.ntl.cloud") is None


class TestMemoryUserStore:
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

    @pytest.mark.asyncio
    async def test_missing_user(self, users):
        with pytest.raises(UserNotFoundError):
            await users.get_user("missing")

    @pytest.mark.asyncio
    async def test_deletion_is_refused(self, users):
        user = await users.create_user(User(email="alice@ntando.io", hashed_password="hash"))

        with pytest.raises(UserDeletionNotAllowedError):
            await users.delete_user(user.id)

        assert (await users.get_user(user.id)).id == user.id
