"""In-memory stores.

Used for development and tests. Every operation runs without awaiting in
between its read and its write, so on a single event loop each call is atomic.
"""

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


class MemoryDeploymentStore:
    """Deployment records kept in a dict, with a domain index."""

    def __init__(self):
        self._deployments: dict[str, Deployment] = {}
        self._domains: dict[str, str] = {}

    async def create_deployment(self, deployment: Deployment) -> Deployment:
        if deployment.domain in self._domains:
            raise DomainTakenError(deployment.domain)
        self._domains[deployment.domain] = deployment.id
        self._deployments[deployment.id] = deployment.model_copy(deep=True)
        return deployment

    async def get_deployment(
        self, deployment_id: str, owner_id: str | None = None
    ) -> Deployment:
        return self._get(deployment_id, owner_id).model_copy(deep=True)

    async def list_deployments(self, owner_id: str, limit: int = 10) -> list[Deployment]:
        deployments = [d for d in self._deployments.values() if d.owner_id == owner_id]

        # Sort by created_at descending
        deployments.sort(key=lambda d: d.created_at, reverse=True)

        return [d.model_copy(deep=True) for d in deployments[:limit]]

    async def find_by_domain(self, domain: str) -> Deployment | None:
        deployment_id = self._domains.get(domain)
        if deployment_id is None:
            return None
        return self._deployments[deployment_id].model_copy(deep=True)

    async def update_status(
        self,
        deployment_id: str,
        status: DeploymentStatus,
        url: str | None = None,
        error: str | None = None,
    ) -> Deployment:
        deployment = self._get(deployment_id)
        if not deployment.status.can_transition_to(status):
            raise InvalidTransitionError(
                deployment_id, deployment.status.value, status.value
            )
        deployment.status = status
        if url is not None:
            deployment.url = url
        if error is not None:
            deployment.error = error
        deployment.updated_at = utcnow()
        return deployment.model_copy(deep=True)

    async def set_provider_service(self, deployment_id: str, service_id: str) -> Deployment:
        deployment = self._get(deployment_id)
        deployment.provider_service_id = service_id
        deployment.updated_at = utcnow()
        return deployment.model_copy(deep=True)

    async def delete_deployment(self, deployment_id: str, owner_id: str) -> Deployment:
        deployment = self._get(deployment_id, owner_id)
        del self._deployments[deployment_id]
        del self._domains[deployment.domain]
        return deployment

    async def fail_unfinished(self, error: str) -> int:
        changed = 0
        for deployment in self._deployments.values():
            if not deployment.status.is_terminal:
                deployment.status = DeploymentStatus.ERROR
                deployment.error = error
                deployment.updated_at = utcnow()
                changed += 1
        return changed

    def _get(self, deployment_id: str, owner_id: str | None = None) -> Deployment:
        deployment = self._deployments.get(deployment_id)
        if deployment is None or (owner_id is not None and deployment.owner_id != owner_id):
            raise DeploymentNotFoundError(deployment_id)
        return deployment

    def clear(self) -> None:
        self._deployments.clear()
        self._domains.clear()


class MemoryUserStore:
    """Users kept in a dict, with an email index."""

    def __init__(self):
        self._users: dict[str, User] = {}
        self._emails: dict[str, str] = {}

    async def create_user(self, user: User) -> User:
        if user.email in self._emails:
            raise EmailTakenError(user.email)
        self._emails[user.email] = user.id
        self._users[user.id] = user.model_copy()
        return user

    async def get_user(self, user_id: str) -> User:
        user = self._users.get(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user.model_copy()

    async def get_user_by_email(self, email: str) -> User | None:
        user_id = self._emails.get(email)
        if user_id is None:
            return None
        return self._users[user_id].model_copy()

    async def delete_user(self, user_id: str) -> None:
        raise UserDeletionNotAllowedError(user_id)

    def clear(self) -> None:
        self._users.clear()
        self._emails.clear()
