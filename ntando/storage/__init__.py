"""Persistence for users and deployment records."""

from ntando.storage.base import DeploymentStore, UserStore
from ntando.storage.memory import MemoryDeploymentStore, MemoryUserStore

__all__ = [
    "DeploymentStore",
    "UserStore",
    "MemoryDeploymentStore",
    "MemoryUserStore",
]
