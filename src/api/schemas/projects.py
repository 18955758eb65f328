from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field, model_validator
from src.api.schemas.common import Envelope, ORMModel
from src.api.schemas.users import UserSummary
from src.infrastructure.db.models import AssignmentRole, Priority, ProjectStatus


def check_date_order(start: date | None, end: date | None) -> None:
    if start is not None and end is not None and end <= start:
        raise ValueError("end_date must be after start_date")


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=10, max_length=1000)
    status: ProjectStatus = ProjectStatus.PLANNING
    start_date: date
    end_date: date
    priority: Priority = Priority.MEDIUM
    budget: float = Field(0, ge=0)
    technologies: list[str] = Field(default_factory=list)
    project_manager_id: str | None = Field(
        None, description="Defaults to the caller when omitted"
    )

    @model_validator(mode="after")
    def _dates_in_order(self) -> ProjectCreate:
        check_date_order(self.start_date, self.end_date)
        return self


class ProjectUpdate(BaseModel):
    name: str | None = Field(None, min_length=3, max_length=100)
    description: str | None = Field(None, min_length=10, max_length=1000)
    status: ProjectStatus | None = None
    start_date: date | None = None
    end_date: date | None = None
    priority: Priority | None = None
    budget: float | None = Field(None, ge=0)
    technologies: list[str] | None = None
    project_manager_id: str | None = None

    @model_validator(mode="after")
    def _dates_in_order(self) -> ProjectUpdate:
        check_date_order(self.start_date, self.end_date)
        return self


class ProjectSummary(ORMModel):
    id: str
    name: str
    description: str
    status: ProjectStatus
    start_date: date
    end_date: date
    priority: Priority


class AssignedEngineer(ORMModel):
    """One row of a project's team, read from its active assignment."""

    assignment_id: str
    engineer: UserSummary
    role: AssignmentRole
    allocation_percentage: float
    start_date: date
    end_date: date

    @classmethod
    def from_assignment(cls, assignment: Any) -> AssignedEngineer:
        return cls(
            assignment_id=assignment.id,
            engineer=UserSummary.model_validate(assignment.engineer),
            role=assignment.role,
            allocation_percentage=assignment.allocation_percentage,
            start_date=assignment.start_date,
            end_date=assignment.end_date,
        )


class ProjectOut(ProjectSummary):
    budget: float = 0
    technologies: list[str] = Field(default_factory=list)
    project_manager_id: str
    project_manager: UserSummary | None = None
    assigned_engineers: list[AssignedEngineer] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_team(cls, project: Any, assignments: Iterable[Any]) -> ProjectOut:
        """Render a project with the team derived from its active assignments."""
        out = cls.model_validate(project)
        out.assigned_engineers = [AssignedEngineer.from_assignment(a) for a in assignments]
        return out


class EngineerAssignRequest(BaseModel):
    engineer_id: str
    role: AssignmentRole = AssignmentRole.DEVELOPER
    allocation_percentage: float = Field(100, ge=0, le=100)
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def _dates_in_order(self) -> EngineerAssignRequest:
        check_date_order(self.start_date, self.end_date)
        return self


class ProjectResponse(Envelope):
    project: ProjectOut


class ProjectsResponse(Envelope):
    count: int
    projects: list[ProjectOut]
