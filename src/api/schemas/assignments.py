from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field, model_validator
from src.api.schemas.common import Envelope, ORMModel
from src.api.schemas.projects import ProjectSummary, check_date_order
from src.api.schemas.users import UserSummary
from src.infrastructure.db.models import AssignmentRole, AssignmentStatus


class AssignmentCreate(BaseModel):
    engineer_id: str
    project_id: str
    role: AssignmentRole = AssignmentRole.DEVELOPER
    allocation_percentage: float = Field(100, ge=0, le=100)
    start_date: date
    end_date: date
    status: AssignmentStatus = AssignmentStatus.ACTIVE
    hours_allocated: float = Field(0, ge=0)
    hourly_rate: float = Field(0, ge=0)
    notes: str | None = Field(None, max_length=500)

    @model_validator(mode="after")
    def _dates_in_order(self) -> AssignmentCreate:
        check_date_order(self.start_date, self.end_date)
        return self


class AssignmentUpdate(BaseModel):
    """Partial update. The engineer and project of an assignment never change."""

    role: AssignmentRole | None = None
    allocation_percentage: float | None = Field(None, ge=0, le=100)
    start_date: date | None = None
    end_date: date | None = None
    status: AssignmentStatus | None = None
    hours_allocated: float | None = Field(None, ge=0)
    hours_worked: float | None = Field(None, ge=0)
    hourly_rate: float | None = Field(None, ge=0)
    notes: str | None = Field(None, max_length=500)

    @model_validator(mode="after")
    def _dates_in_order(self) -> AssignmentUpdate:
        check_date_order(self.start_date, self.end_date)
        return self


class HoursUpdate(BaseModel):
    hours_worked: float = Field(..., ge=0)


class AssignmentOut(ORMModel):
    id: str
    engineer_id: str
    project_id: str
    engineer: UserSummary
    project: ProjectSummary
    assigned_by: UserSummary | None = None
    role: AssignmentRole
    allocation_percentage: float
    start_date: date
    end_date: date
    status: AssignmentStatus
    hours_allocated: float
    hours_worked: float
    hourly_rate: float = 0
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class AssignmentResponse(Envelope):
    assignment: AssignmentOut


class AssignmentsResponse(Envelope):
    count: int
    assignments: list[AssignmentOut]


class CapacityResponse(Envelope):
    engineer: UserSummary
    total_allocation: float
    available_capacity: float
    is_overallocated: bool
    assignments: list[AssignmentOut]


class ResourceAllocationResponse(Envelope):
    project: ProjectSummary
    assignments: list[AssignmentOut]
    total_engineers: int
    total_allocation: float
    total_hours_allocated: float
    total_hours_worked: float
    progress_percentage: float
