from __future__ import annotations

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


def _enum_column(enum_cls: type[enum.Enum], name: str) -> Enum:
    return Enum(enum_cls, name=name, values_callable=lambda e: [x.value for x in e])


class UserRole(str, enum.Enum):
    """User role enum matching auth.Role."""

    ADMIN = "admin"
    PROJECT_MANAGER = "project_manager"
    TEAM_LEAD = "team_lead"
    ENGINEER = "engineer"
    USER = "user"


class Availability(str, enum.Enum):
    AVAILABLE = "available"
    PARTIALLY_AVAILABLE = "partially_available"
    UNAVAILABLE = "unavailable"


class ProjectStatus(str, enum.Enum):
    PLANNING = "planning"
    ACTIVE = "active"
    ON_HOLD = "on-hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def open_statuses(cls) -> tuple[ProjectStatus, ...]:
        return (cls.PLANNING, cls.ACTIVE)


class Priority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AssignmentRole(str, enum.Enum):
    LEAD = "lead"
    DEVELOPER = "developer"
    TESTER = "tester"
    ANALYST = "analyst"


class AssignmentStatus(str, enum.Enum):
    """Assignment lifecycle status.

    Only ``active`` assignments count towards an engineer's allocation.
    """

    ACTIVE = "active"
    COMPLETED = "completed"
    ON_HOLD = "on-hold"
    CANCELLED = "cancelled"


class UserModel(Base):
    """SQLAlchemy model for users table."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        _enum_column(UserRole, "user_role"),
        default=UserRole.USER,
        nullable=False,
        index=True,
    )
    skills: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    experience: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    hourly_rate: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    availability: Mapped[Availability] = mapped_column(
        _enum_column(Availability, "availability"),
        default=Availability.AVAILABLE,
        nullable=False,
    )
    department: Mapped[str] = mapped_column(String(100), default="Engineering", nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    location: Mapped[str | None] = mapped_column(String(128), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<UserModel(id={self.id}, email={self.email}, role={self.role.value})>"


class ProjectModel(Base):
    """A unit of work owned by one project manager."""

    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[ProjectStatus] = mapped_column(
        _enum_column(ProjectStatus, "project_status"),
        default=ProjectStatus.PLANNING,
        nullable=False,
        index=True,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    priority: Mapped[Priority] = mapped_column(
        _enum_column(Priority, "project_priority"),
        default=Priority.MEDIUM,
        nullable=False,
    )
    budget: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    technologies: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    project_manager_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    project_manager: Mapped[UserModel] = relationship(foreign_keys=[project_manager_id])


class AssignmentModel(Base):
    """One engineer's allocation to one project. Source of truth for staffing."""

    __tablename__ = "assignments"
    __table_args__ = (
        UniqueConstraint("engineer_id", "project_id", name="uq_assignment_engineer_project"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    engineer_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    project_id: Mapped[str] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[AssignmentRole] = mapped_column(
        _enum_column(AssignmentRole, "assignment_role"),
        default=AssignmentRole.DEVELOPER,
        nullable=False,
    )
    allocation_percentage: Mapped[float] = mapped_column(Float, default=100, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[AssignmentStatus] = mapped_column(
        _enum_column(AssignmentStatus, "assignment_status"),
        default=AssignmentStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    hours_allocated: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    hours_worked: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    hourly_rate: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)
    assigned_by_id: Mapped[str | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    engineer: Mapped[UserModel] = relationship(foreign_keys=[engineer_id])
    project: Mapped[ProjectModel] = relationship()
    assigned_by: Mapped[UserModel | None] = relationship(foreign_keys=[assigned_by_id])
