"""Data models for Ntando."""

from ntando.models.deployment import (
    PLATFORM_DOMAIN_SUFFIXES,
    DeployAccepted,
    Deployment,
    DeploymentAnalytics,
    DeploymentCreate,
    DeploymentMetrics,
    DeploymentResponse,
    DeploymentStatus,
    DomainAvailability,
)
from ntando.models.user import Credentials, TokenResponse, User, UserResponse

__all__ = [
    # Deployment models
    "PLATFORM_DOMAIN_SUFFIXES",
    "Deployment",
    "DeploymentCreate",
    "DeploymentMetrics",
    "DeploymentResponse",
    "DeploymentStatus",
    "DeployAccepted",
    "DeploymentAnalytics",
    "DomainAvailability",
    # User models
    "User",
    "Credentials",
    "UserResponse",
    "TokenResponse",
]
