"""MongoDB stores.

Domain and email uniqueness are enforced by unique indexes, so creation is a
single insert and a conflict surfaces as a typed error. Status changes use a
conditional update on the current status to keep the lifecycle monotonic.
"""

from typing import Any

from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from ntando.core.exceptions import (
    DeploymentNotFoundError,
    DomainTakenError,
    EmailTakenError,
    InvalidTransitionError,
    UserDeletionNotAllowedError,
    UserNotFoundError,
)
from ntando.models.deployment import Deployment, DeploymentStatus, utcnow
from ntando.models.user import User
from ntando.utils.logging import get_logger

logger = get_logger(__name__)


def to_document(model: Deployment | User) -> dict[str, Any]:
    """Convert a model to a MongoDB document keyed by ``_id``."""
    document = model.model_dump(mode="python")
    document["_id"] = document.pop("id")
    if isinstance(model, Deployment):
        document["status"] = model.status.value
    return document


def deployment_from_document(document: dict[str, Any]) -> Deployment:
    data = dict(document)
    data["id"] = data.pop("_id")
    return Deployment.model_validate(data)


def user_from_document(document: dict[str, Any]) -> User:
    data = dict(document)
    data["id"] = data.pop("_id")
    return User.model_validate(data)


class MongoDeploymentStore:
    """Deployments stored in the ``deployments`` collection."""

    def __init__(self, database: AsyncDatabase):
        self._collection: AsyncCollection = database["deployments"]

    async def ensure_indexes(self) -> None:
        await self._collection.create_index([("domain", ASCENDING)], unique=True)
        await self._collection.create_index(
            [("owner_id", ASCENDING), ("created_at", DESCENDING)]
        )

    async def create_deployment(self, deployment: Deployment) -> Deployment:
        try:
            await self._collection.insert_one(to_document(deployment))
        except DuplicateKeyError as e:
            logger.info("mongo.deployment.duplicate_domain", domain=deployment.domain)
            raise DomainTakenError(deployment.domain) from e
        return deployment

    async def get_deployment(
        self, deployment_id: str, owner_id: str | None = None
    ) -> Deployment:
        query: dict[str, Any] = {"_id": deployment_id}
        if owner_id is not None:
            query["owner_id"] = owner_id
        document = await self._collection.find_one(query)
        if document is None:
            raise DeploymentNotFoundError(deployment_id)
        return deployment_from_document(document)

    async def list_deployments(self, owner_id: str, limit: int = 10) -> list[Deployment]:
        cursor = (
            self._collection.find({"owner_id": owner_id})
            .sort("created_at", DESCENDING)
            .limit(limit)
        )
        return [deployment_from_document(d) async for d in cursor]

    async def find_by_domain(self, domain: str) -> Deployment | None:
        document = await self._collection.find_one({"domain": domain})
        if document is None:
            return None
        return deployment_from_document(document)

    async def update_status(
        self,
        deployment_id: str,
        status: DeploymentStatus,
        url: str | None = None,
        error: str | None = None,
    ) -> Deployment:
        values: dict[str, Any] = {"status": status.value, "updated_at": utcnow()}
        if url is not None:
            values["url"] = url
        if error is not None:
            values["error"] = error

        document = await self._collection.find_one_and_update(
            {
                "_id": deployment_id,
                "status": {"$in": [s.value for s in status.predecessors()]},
            },
            {"$set": values},
            return_document=ReturnDocument.AFTER,
        )
        if document is not None:
            return deployment_from_document(document)

        current = await self._collection.find_one({"_id": deployment_id}, {"status": 1})
        if current is None:
            raise DeploymentNotFoundError(deployment_id)
        raise InvalidTransitionError(deployment_id, current["status"], status.value)

    async def set_provider_service(self, deployment_id: str, service_id: str) -> Deployment:
        document = await self._collection.find_one_and_update(
            {"_id": deployment_id},
            {"$set": {"provider_service_id": service_id, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if document is None:
            raise DeploymentNotFoundError(deployment_id)
        return deployment_from_document(document)

    async def delete_deployment(self, deployment_id: str, owner_id: str) -> Deployment:
        document = await self._collection.find_one_and_delete(
            {"_id": deployment_id, "owner_id": owner_id}
        )
        if document is None:
            raise DeploymentNotFoundError(deployment_id)
        return deployment_from_document(document)

    async def fail_unfinished(self, error: str) -> int:
        result = await self._collection.update_many(
            {"status": {"$in": [DeploymentStatus.BUILDING.value, DeploymentStatus.DEPLOYING.value]}},
            {"$set": {"status": DeploymentStatus.ERROR.value, "error": error, "updated_at": utcnow()}},
        )
        return result.modified_count


class MongoUserStore:
    """Users stored in the ``users`` collection."""

    def __init__(self, database: AsyncDatabase):
        self._collection: AsyncCollection = database["users"]

    async def ensure_indexes(self) -> None:
        await self._collection.create_index([("email", ASCENDING)], unique=True)

    async def create_user(self, user: User) -> User:
        try:
            await self._collection.insert_one(to_document(user))
        except DuplicateKeyError as e:
            raise EmailTakenError(user.email) from e
        return user

    async def get_user(self, user_id: str) -> User:
        document = await self._collection.find_one({"_id": user_id})
        if document is None:
            raise UserNotFoundError(user_id)
        return user_from_document(document)

    async def get_user_by_email(self, email: str) -> User | None:
        document = await self._collection.find_one({"email": email})
        if document is None:
            return None
        return user_from_document(document)

    async def delete_user(self, user_id: str) -> None:
        raise UserDeletionNotAllowedError(user_id)
