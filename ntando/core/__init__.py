"""Core functionality for Ntando."""

from ntando.core.exceptions import (
    AuthenticationError,
    DeploymentNotFoundError,
    DomainTakenError,
    EmailTakenError,
    InvalidTokenError,
    InvalidTransitionError,
    InvalidUploadError,
    NotFoundError,
    NtandoError,
    ProviderError,
    UserDeletionNotAllowedError,
    UserNotFoundError,
    ValidationError,
)

__all__ = [
    "NtandoError",
    "ValidationError",
    "InvalidUploadError",
    "DomainTakenError",
    "EmailTakenError",
    "AuthenticationError",
    "InvalidTokenError",
    "NotFoundError",
    "DeploymentNotFoundError",
    "UserNotFoundError",
    "InvalidTransitionError",
    "UserDeletionNotAllowedError",
    "ProviderError",
]
