"""Storage protocols shared by the in-memory and MongoDB backends."""

from typing import Protocol

from ntando.models.deployment import Deployment, DeploymentStatus
from ntando.models.user import User


class DeploymentStore(Protocol):
    async def create_deployment(self, deployment: Deployment) -> Deployment:
        """Insert a deployment if its domain is free.

        Raises DomainTakenError when another record already owns the domain.
        """
        ...

    async def get_deployment(
        self, deployment_id: str, owner_id: str | None = None
    ) -> Deployment:
        """Raises DeploymentNotFoundError when absent or owned by someone else."""
        ...

    async def list_deployments(self, owner_id: str, limit: int = 10) -> list[Deployment]: ...

    async def find_by_domain(self, domain: str) -> Deployment | None: ...

    async def update_status(
        self,
        deployment_id: str,
        status: DeploymentStatus,
        url: str | None = None,
        error: str | None = None,
    ) -> Deployment:
        """Move a deployment forward in its lifecycle.

        Raises InvalidTransitionError when the move would regress.
        """
        ...

    async def set_provider_service(self, deployment_id: str, service_id: str) -> Deployment: ...

    async def delete_deployment(self, deployment_id: str, owner_id: str) -> Deployment: ...

    async def fail_unfinished(self, error: str) -> int:
        """Mark every deployment still building or deploying as ``error``.

        Returns the number of records changed.
        """
        ...


class UserStore(Protocol):
    async def create_user(self, user: User) -> User:
        """Raises EmailTakenError when the email is registered."""
        ...

    async def get_user(self, user_id: str) -> User: ...

    async def get_user_by_email(self, email: str) -> User | None: ...

    async def delete_user(self, user_id: str) -> None:
        """Always raises UserDeletionNotAllowedError."""
        ...
