"""User and authentication models."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, field_validator

from ntando.models.deployment import new_id, utcnow


class User(BaseModel):
    """A registered account."""

    id: str = Field(default_factory=new_id)
    email: EmailStr
    hashed_password: str = Field(repr=False)
    plan: Literal["free", "pro", "team"] = "free"
    created_at: datetime = Field(default_factory=utcnow)


class Credentials(BaseModel):
    """Request schema for register and login."""

    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email", mode="after")
    @classmethod
    def _lowercase(cls, value: str) -> str:
        return value.lower()

    @field_validator("password", mode="after")
    @classmethod
    def _bcrypt_limit(cls, value: str) -> str:
        # bcrypt only looks at the first 72 bytes
        if len(value.encode("utf-8")) > 72:
            raise ValueError("Password must be at most 72 bytes")
        return value


class UserResponse(BaseModel):
    """Public view of a user."""

    id: str
    email: str
    plan: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(id=user.id, email=user.email, plan=user.plan)


class TokenResponse(BaseModel):
    """Signed token returned by register and login."""

    message: str
    token: str
    user: UserResponse
