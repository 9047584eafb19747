"""Custom exceptions for Ntando.

Every exception carries the HTTP status it maps to, so the API layer can
translate the whole hierarchy with a single handler.
"""

from typing import Any


class NtandoError(Exception):
    """Base exception for Ntando."""

    status_code: int = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(NtandoError):
    """Validation error."""

    status_code = 400


class InvalidUploadError(ValidationError):
    """An uploaded file was rejected."""

    def __init__(self, filename: str, reason: str):
        super().__init__(
            f"Invalid upload '{filename}': {reason}",
            {"filename": filename},
        )


class DomainTakenError(ValidationError):
    """Another deployment already owns the domain."""

    def __init__(self, domain: str):
        super().__init__(f"Domain not available: {domain}", {"domain": domain})
        self.domain = domain


class EmailTakenError(ValidationError):
    """A user with this email already exists."""

    def __init__(self, email: str):
        super().__init__("User already exists", {"email": email})


class AuthenticationError(NtandoError):
    """Missing or wrong credentials."""

    status_code = 401


class InvalidTokenError(NtandoError):
    """Bearer token could not be verified."""

    status_code = 403

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message)


class NotFoundError(NtandoError):
    """Record not found, or not owned by the caller."""

    status_code = 404


class DeploymentNotFoundError(NotFoundError):
    """Deployment not found."""

    def __init__(self, deployment_id: str):
        super().__init__(
            f"Deployment not found: {deployment_id}",
            {"deployment_id": deployment_id},
        )


class UserNotFoundError(NotFoundError):
    """User not found."""

    def __init__(self, user_id: str):
        super().__init__(f"User not found: {user_id}", {"user_id": user_id})


class InvalidTransitionError(NtandoError):
    """A status change would move a deployment backwards."""

    def __init__(self, deployment_id: str, current: str, target: str):
        super().__init__(
            f"Cannot move deployment {deployment_id} from '{current}' to '{target}'",
            {"deployment_id": deployment_id, "current": current, "target": target},
        )


class UserDeletionNotAllowedError(NtandoError):
    """Users cannot be deleted."""

    def __init__(self, user_id: str):
        super().__init__("User deletion is not supported", {"user_id": user_id})


class ProviderError(NtandoError):
    """The hosting provider call failed."""

    def __init__(self, message: str, status: int | None = None):
        details = {}
        if status is not None:
            details["status"] = status
        super().__init__(f"Hosting provider error: {message}", details)


class RateLimitExceededError(NtandoError):
    """The client sent too many requests in the current window."""

    status_code = 429

    def __init__(self, retry_after: int):
        super().__init__(
            "Too many requests from this IP, please try again later.",
            {"retry_after": retry_after},
        )
        self.headers = {"Retry-After": str(retry_after)}
