"""Pydantic schemas for authentication endpoints."""

from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field, field_validator
from src.api.schemas.common import Envelope
from src.api.schemas.users import PHONE_PATTERN, UserOut
from src.infrastructure.db.models import Availability, UserRole

# --- Request Schemas ---


class SignupRequest(BaseModel):
    """Request schema for user registration."""

    name: str = Field(..., min_length=3, max_length=100, description="Display name")
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(
        ...,
        min_length=6,
        max_length=128,
        description="Password (min 6 characters)",
    )
    role: UserRole = Field(default=UserRole.USER, description="User role (defaults to user)")
    skills: list[str] = Field(default_factory=list)
    experience: float = Field(0, ge=0, description="Years of experience")
    hourly_rate: float = Field(0, ge=0)
    availability: Availability = Availability.AVAILABLE
    department: str | None = Field(None, max_length=100)
    phone: str | None = Field(None, pattern=PHONE_PATTERN)
    location: str | None = Field(None, max_length=200)
    bio: str | None = Field(None, max_length=500)

    @field_validator("skills", mode="before")
    @classmethod
    def _split_skills(cls, value: object) -> object:
        # Forms post skills as one comma separated string
        if isinstance(value, str):
            return [skill.strip() for skill in value.split(",") if skill.strip()]
        return value

    def profile(self) -> dict[str, object]:
        return self.model_dump(exclude={"name", "email", "password", "role"})


class LoginRequest(BaseModel):
    """Request schema for user login."""

    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=1, description="User password")


# --- Response Schemas ---


class TokenResponse(BaseModel):
    """Response schema containing the bearer token."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token TTL in seconds")


class SignupResponse(Envelope):
    user: UserOut


class LoginResponse(Envelope):
    token: TokenResponse
    user: UserOut


class MeResponse(Envelope):
    user: UserOut
