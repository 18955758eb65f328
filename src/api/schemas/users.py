from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field
from src.api.schemas.common import Envelope, ORMModel
from src.infrastructure.db.models import Availability, UserRole

PHONE_PATTERN = r"^\+?[\d\s\-()]{7,20}$"


class UserSummary(ORMModel):
    """Compact identity reference embedded in projects and assignments."""

    id: str
    name: str
    email: str
    role: UserRole
    skills: list[str] = Field(default_factory=list)


class UserOut(ORMModel):
    id: str
    name: str
    email: str
    role: UserRole
    skills: list[str] = Field(default_factory=list)
    experience: float = 0
    hourly_rate: float = 0
    availability: Availability
    department: str | None = None
    phone: str | None = None
    location: str | None = None
    bio: str | None = None
    created_at: datetime
    updated_at: datetime


class UserUpdate(BaseModel):
    """Partial profile update; ``role`` needs admin rights when it changes."""

    name: str | None = Field(None, min_length=3, max_length=100)
    email: EmailStr | None = None
    role: UserRole | None = None
    skills: list[str] | None = None
    experience: float | None = Field(None, ge=0)
    hourly_rate: float | None = Field(None, ge=0)
    availability: Availability | None = None
    department: str | None = Field(None, max_length=100)
    phone: str | None = Field(None, pattern=PHONE_PATTERN)
    location: str | None = Field(None, max_length=200)
    bio: str | None = Field(None, max_length=500)


class UserResponse(Envelope):
    user: UserOut


class UsersResponse(Envelope):
    count: int
    users: list[UserOut]


class EngineersResponse(Envelope):
    count: int
    engineers: list[UserOut]


class ProjectManagersResponse(Envelope):
    count: int
    project_managers: list[UserOut]


class AvailableEngineer(UserOut):
    current_allocation: float
    available_capacity: float


class AvailableEngineersResponse(Envelope):
    count: int
    engineers: list[AvailableEngineer]
