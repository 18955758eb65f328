from __future__ import annotations

from pydantic import BaseModel, Field
from src.api.schemas.assignments import AssignmentOut
from src.api.schemas.common import Envelope
from src.api.schemas.projects import ProjectOut, ProjectSummary
from src.api.schemas.users import UserOut, UserSummary
from src.infrastructure.db.models import AssignmentRole, Availability, ProjectStatus


class DashboardOverview(BaseModel):
    total_projects: int
    total_engineers: int
    total_assignments: int
    active_projects: int
    average_utilization: float


class DashboardStatsResponse(Envelope):
    overview: DashboardOverview
    project_status_stats: dict[str, int]
    engineer_availability_stats: dict[str, int]
    recent_projects: list[ProjectOut]
    projects_ending_soon: list[ProjectOut]


class ProgressOut(BaseModel):
    total_engineers: int
    total_allocation: float
    total_hours_allocated: float
    total_hours_worked: float
    progress_percentage: float
    timeline_progress: float
    role_distribution: dict[str, int]


class ProjectAnalyticsResponse(Envelope):
    project: ProjectOut
    analytics: ProgressOut
    assignments: list[AssignmentOut]


class EngineerStats(BaseModel):
    total_projects: int
    active_projects: int
    total_hours_worked: float
    current_allocation: float
    available_capacity: float


class EngineerAnalyticsResponse(Envelope):
    engineer: UserOut
    analytics: EngineerStats
    project_status_distribution: dict[str, int]
    role_distribution: dict[str, int]
    recent_assignments: list[AssignmentOut]


class CapacityAssignment(BaseModel):
    project_id: str
    project_name: str
    project_status: ProjectStatus
    allocation_percentage: float
    role: AssignmentRole


class EngineerCapacityOut(BaseModel):
    engineer: UserSummary
    availability: Availability
    total_allocation: float
    available_capacity: float
    is_overallocated: bool
    assignments: list[CapacityAssignment] = Field(default_factory=list)


class UtilizationOut(BaseModel):
    total_engineers: int
    average_utilization: float
    underutilized_engineers: int
    overutilized_engineers: int


class ResourceCapacityResponse(Envelope):
    capacity_data: list[EngineerCapacityOut]
    summary: UtilizationOut


class UserDashboardResponse(Envelope):
    user: UserOut
    assignments: list[AssignmentOut]
    managed_projects: list[ProjectSummary]
    total_projects: int
    total_hours: float
    current_allocation: float
