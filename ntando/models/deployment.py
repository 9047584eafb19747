"""Deployment data models."""

import re
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field, ValidationInfo, field_validator

# Domains under these suffixes are served by the platform itself and
# do not need a custom-domain registration at the hosting provider.
PLATFORM_DOMAIN_SUFFIXES = (".ntl.cloud", ".ntando.app", ".deploy.live")

_HOSTNAME_RE = re.compile(
    r"^(?=.{1,253}$)([a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z]{2,63}$"
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid4().hex


class DeploymentStatus(str, Enum):
    """Deployment lifecycle status."""

    BUILDING = "building"
    DEPLOYING = "deploying"
    LIVE = "live"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (DeploymentStatus.LIVE, DeploymentStatus.ERROR)

    def can_transition_to(self, target: "DeploymentStatus") -> bool:
        """Check whether moving to ``target`` keeps the lifecycle moving forward."""
        return target in ALLOWED_TRANSITIONS[self]

    def predecessors(self) -> list["DeploymentStatus"]:
        """Statuses from which this status can be reached."""
        return [s for s, targets in ALLOWED_TRANSITIONS.items() if self in targets]


ALLOWED_TRANSITIONS: dict[DeploymentStatus, frozenset[DeploymentStatus]] = {
    DeploymentStatus.BUILDING: frozenset(
        {DeploymentStatus.DEPLOYING, DeploymentStatus.ERROR}
    ),
    DeploymentStatus.DEPLOYING: frozenset(
        {DeploymentStatus.LIVE, DeploymentStatus.ERROR}
    ),
    DeploymentStatus.LIVE: frozenset(),
    DeploymentStatus.ERROR: frozenset(),
}


class DeploymentMetrics(BaseModel):
    """Illustrative usage counters, not measured telemetry."""

    visitors: int = 0
    bandwidth: int = 0
    uptime: float = 100.0


class DeploymentCreate(BaseModel):
    """Request schema for ``POST /api/deploy``."""

    project_name: str = Field(..., min_length=1, max_length=100)
    domain: str = Field(..., min_length=4, max_length=253)
    repository_url: str | None = Field(default=None, pattern=r"^https?://\S+$")
    branch: str = Field(default="main", min_length=1, max_length=255)
    build_command: str | None = Field(default=None, max_length=500)
    output_dir: str = Field(default="dist", min_length=1, max_length=255)

    @field_validator("repository_url", "build_command", mode="before")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        # Multipart forms send empty strings for unset fields
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("branch", "output_dir", mode="before")
    @classmethod
    def _blank_to_default(cls, value: str | None, info: ValidationInfo) -> str:
        if value is None or (isinstance(value, str) and not value.strip()):
            return cls.model_fields[info.field_name].default
        return value.strip() if isinstance(value, str) else value

    @field_validator("project_name", mode="after")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Project name must not be blank")
        return value

    @field_validator("domain", mode="after")
    @classmethod
    def _normalize_domain(cls, value: str) -> str:
        value = value.strip().lower().rstrip(".")
        if not _HOSTNAME_RE.match(value):
            raise ValueError(f"Invalid domain name: {value}")
        return value


class Deployment(BaseModel):
    """A deployment record and its lifecycle state."""

    id: str = Field(default_factory=new_id)
    owner_id: str
    project_name: str
    domain: str

    repository_url: str | None = None
    branch: str = "main"
    build_command: str | None = None
    output_dir: str = "dist"
    custom_domain: str | None = None

    status: DeploymentStatus = DeploymentStatus.BUILDING
    url: str | None = None
    ssl_enabled: bool = True
    provider_service_id: str | None = None
    metrics: DeploymentMetrics = Field(default_factory=DeploymentMetrics)
    error: str | None = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def from_request(cls, owner_id: str, data: DeploymentCreate) -> "Deployment":
        deployment = cls(
            owner_id=owner_id,
            project_name=data.project_name,
            domain=data.domain,
            repository_url=data.repository_url,
            branch=data.branch,
            build_command=data.build_command,
            output_dir=data.output_dir,
        )
        if not deployment.is_platform_domain:
            deployment.custom_domain = data.domain
        return deployment

    @property
    def is_platform_domain(self) -> bool:
        return self.domain.endswith(PLATFORM_DOMAIN_SUFFIXES)

    @property
    def public_url(self) -> str:
        return f"https://{self.domain}"


class DeploymentResponse(BaseModel):
    """Public view of a deployment."""

    id: str
    project_name: str
    domain: str
    repository_url: str | None
    branch: str
    build_command: str | None
    output_dir: str
    custom_domain: str | None
    status: DeploymentStatus
    url: str | None
    ssl_enabled: bool
    metrics: DeploymentMetrics
    error: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_deployment(cls, deployment: Deployment) -> "DeploymentResponse":
        return cls.model_validate(deployment.model_dump())


class DeployAccepted(BaseModel):
    """Response returned once a deployment has been queued."""

    message: str = "Deployment started"
    deployment_id: str
    domain: str
    status: DeploymentStatus
    estimated_seconds: int
    estimated_completion_at: datetime


class DeploymentAnalytics(BaseModel):
    """Illustrative usage numbers for a deployment."""

    deployment_id: str
    visitors: int
    bandwidth: int
    uptime: float
    page_views: int
    unique_visitors: int
    avg_load_time: str


class DomainAvailability(BaseModel):
    domain: str
    available: bool
