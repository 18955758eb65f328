"""Management dashboard. Every route requires a manager role."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from src.api.deps import get_db_session, require_action
from src.api.schemas.assignments import AssignmentOut
from src.api.schemas.dashboard import (
    CapacityAssignment,
    DashboardOverview,
    DashboardStatsResponse,
    EngineerAnalyticsResponse,
    EngineerCapacityOut,
    EngineerStats,
    ProgressOut,
    ProjectAnalyticsResponse,
    ResourceCapacityResponse,
    UtilizationOut,
)
from src.api.schemas.projects import ProjectOut
from src.api.schemas.users import UserOut, UserSummary
from src.domain import User
from src.domain.capacity import EngineerCapacity, available_capacity, only_active
from src.domain.policy import Action
from src.domain.services.dashboard import DashboardService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

viewer = require_action(Action.DASHBOARD_VIEW)


def _capacity_row(row: EngineerCapacity) -> EngineerCapacityOut:
    return EngineerCapacityOut(
        engineer=UserSummary.model_validate(row.engineer),
        availability=row.engineer.availability,
        total_allocation=row.total_allocation,
        available_capacity=row.available_capacity,
        is_overallocated=row.is_overallocated,
        assignments=[
            CapacityAssignment(
                project_id=a.project_id,
                project_name=a.project.name,
                project_status=a.project.status,
                allocation_percentage=a.allocation_percentage,
                role=a.role,
            )
            for a in row.assignments
        ],
    )


@router.get("/stats", response_model=DashboardStatsResponse)
async def dashboard_stats(
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(viewer),
) -> DashboardStatsResponse:
    stats = await DashboardService(session).stats()
    return DashboardStatsResponse(
        overview=DashboardOverview(
            total_projects=stats.total_projects,
            total_engineers=stats.total_engineers,
            total_assignments=stats.total_assignments,
            active_projects=stats.active_projects,
            average_utilization=stats.average_utilization,
        ),
        project_status_stats=stats.project_status_stats,
        engineer_availability_stats=stats.engineer_availability_stats,
        recent_projects=[ProjectOut.from_team(p, []) for p in stats.recent_projects],
        projects_ending_soon=[ProjectOut.from_team(p, []) for p in stats.projects_ending_soon],
    )


@router.get("/project/{project_id}/analytics", response_model=ProjectAnalyticsResponse)
async def project_analytics(
    project_id: str,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(viewer),
) -> ProjectAnalyticsResponse:
    analytics = await DashboardService(session).project_analytics(project_id)
    progress = analytics.progress
    active = only_active(analytics.assignments)
    return ProjectAnalyticsResponse(
        project=ProjectOut.from_team(analytics.project, active),
        analytics=ProgressOut(
            total_engineers=progress.total_engineers,
            total_allocation=progress.total_allocation,
            total_hours_allocated=progress.total_hours_allocated,
            total_hours_worked=progress.total_hours_worked,
            progress_percentage=progress.progress_percentage,
            timeline_progress=progress.timeline_progress,
            role_distribution=progress.role_distribution,
        ),
        assignments=[AssignmentOut.model_validate(a) for a in analytics.assignments],
    )


@router.get("/engineer/{engineer_id}/analytics", response_model=EngineerAnalyticsResponse)
async def engineer_analytics(
    engineer_id: str,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(viewer),
) -> EngineerAnalyticsResponse:
    analytics = await DashboardService(session).engineer_analytics(engineer_id)
    return EngineerAnalyticsResponse(
        engineer=UserOut.model_validate(analytics.engineer),
        analytics=EngineerStats(
            total_projects=analytics.total_projects,
            active_projects=analytics.active_projects,
            total_hours_worked=analytics.total_hours_worked,
            current_allocation=analytics.current_allocation,
            available_capacity=available_capacity(analytics.current_allocation),
        ),
        project_status_distribution=analytics.project_status_distribution,
        role_distribution=analytics.role_distribution,
        recent_assignments=[AssignmentOut.model_validate(a) for a in analytics.recent_assignments],
    )


@router.get("/resource-capacity", response_model=ResourceCapacityResponse)
async def resource_capacity(
    start_date: date | None = None,
    end_date: date | None = None,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(viewer),
) -> ResourceCapacityResponse:
    """Fleet utilization over an optional date window."""
    summary = await DashboardService(session).resource_capacity(
        start_date=start_date, end_date=end_date
    )
    return ResourceCapacityResponse(
        capacity_data=[_capacity_row(row) for row in summary.engineers],
        summary=UtilizationOut(
            total_engineers=summary.total_engineers,
            average_utilization=summary.average_utilization,
            underutilized_engineers=summary.underutilized_engineers,
            overutilized_engineers=summary.overutilized_engineers,
        ),
    )
