"""Aggregates for the management dashboard."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from src.core.config import get_settings
from src.domain.capacity import (
    ProjectProgress,
    UtilizationSummary,
    active_allocation,
    distribution,
    project_progress,
    utilization_summary,
)
from src.domain.errors import NotFoundError
from src.domain.policy import ENGINEER_ROLES
from src.infrastructure.db.models import (
    AssignmentModel,
    ProjectModel,
    ProjectStatus,
    UserModel,
)
from src.infrastructure.repositories import AssignmentRepository

logger = structlog.get_logger()

RECENT_ASSIGNMENT_MONTHS = 6


@dataclass(slots=True)
class DashboardStats:
    total_projects: int
    total_engineers: int
    total_assignments: int
    active_projects: int
    average_utilization: float
    project_status_stats: dict[str, int]
    engineer_availability_stats: dict[str, int]
    recent_projects: list[ProjectModel]
    projects_ending_soon: list[ProjectModel]


@dataclass(slots=True)
class ProjectAnalytics:
    project: ProjectModel
    progress: ProjectProgress
    assignments: list[AssignmentModel]


@dataclass(slots=True)
class EngineerAnalytics:
    engineer: UserModel
    total_projects: int
    active_projects: int
    total_hours_worked: float
    current_allocation: float
    project_status_distribution: dict[str, int]
    role_distribution: dict[str, int]
    recent_assignments: list[AssignmentModel]


def months_before(day: date, months: int) -> date:
    """Same day ``months`` earlier, clamped to the end of shorter months."""
    index = day.year * 12 + day.month - 1 - months
    year, month = divmod(index, 12)
    month += 1
    next_month = date(year + month // 12, month % 12 + 1, 1)
    last_day = (next_month - timedelta(days=1)).day
    return date(year, month, min(day.day, last_day))


class DashboardService:
    """Read-only analytics; every capacity figure comes from ``src.domain.capacity``."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.assignments = AssignmentRepository(session)

    async def _engineers(self) -> list[UserModel]:
        stmt = select(UserModel).where(UserModel.role.in_(ENGINEER_ROLES)).order_by(UserModel.name)
        return list((await self.session.execute(stmt)).scalars().all())

    async def _count_by(self, column: Any, *criteria: Any) -> dict[str, int]:
        stmt = select(column, func.count()).where(*criteria).group_by(column)
        rows = (await self.session.execute(stmt)).all()
        return {getattr(key, "value", key): count for key, count in rows}

    async def stats(self, *, today: date | None = None) -> DashboardStats:
        settings = get_settings()
        today = today or datetime.now(UTC).date()

        engineers = await self._engineers()
        by_engineer = await self.assignments.group_by_engineer(e.id for e in engineers)
        summary = utilization_summary(engineers, by_engineer)

        project_status_stats = await self._count_by(ProjectModel.status)
        availability_stats = await self._count_by(
            UserModel.availability, UserModel.role.in_(ENGINEER_ROLES)
        )

        recent_stmt = (
            select(ProjectModel)
            .options(selectinload(ProjectModel.project_manager))
            .order_by(ProjectModel.created_at.desc())
            .limit(settings.recent_projects_limit)
        )
        ending_stmt = (
            select(ProjectModel)
            .options(selectinload(ProjectModel.project_manager))
            .where(
                ProjectModel.end_date >= today,
                ProjectModel.end_date <= today + timedelta(days=settings.ending_soon_days),
                ProjectModel.status.in_(ProjectStatus.open_statuses()),
            )
            .order_by(ProjectModel.end_date)
        )

        stats = DashboardStats(
            total_projects=sum(project_status_stats.values()),
            total_engineers=summary.total_engineers,
            total_assignments=await self.assignments.count(),
            active_projects=project_status_stats.get(ProjectStatus.ACTIVE.value, 0),
            average_utilization=summary.average_utilization,
            project_status_stats=project_status_stats,
            engineer_availability_stats=availability_stats,
            recent_projects=list((await self.session.execute(recent_stmt)).scalars().all()),
            projects_ending_soon=list((await self.session.execute(ending_stmt)).scalars().all()),
        )
        logger.info(
            "dashboard_stats",
            total_projects=stats.total_projects,
            total_engineers=stats.total_engineers,
            average_utilization=stats.average_utilization,
        )
        return stats

    async def project_analytics(self, project_id: str) -> ProjectAnalytics:
        stmt = (
            select(ProjectModel)
            .options(selectinload(ProjectModel.project_manager))
            .where(ProjectModel.id == project_id)
        )
        project = await self.session.scalar(stmt)
        if project is None:
            raise NotFoundError("Project not found")

        assignments = await self.assignments.find(project_id=project_id)
        return ProjectAnalytics(
            project=project,
            progress=project_progress(project, assignments),
            assignments=assignments,
        )

    async def engineer_analytics(
        self, engineer_id: str, *, today: date | None = None
    ) -> EngineerAnalytics:
        engineer = await self.session.get(UserModel, engineer_id)
        if engineer is None:
            raise NotFoundError("Engineer not found")

        today = today or datetime.now(UTC).date()
        assignments = await self.assignments.find(engineer_id=engineer_id)
        allocation, active = active_allocation(assignments)
        since = months_before(today, RECENT_ASSIGNMENT_MONTHS)

        return EngineerAnalytics(
            engineer=engineer,
            total_projects=len(assignments),
            active_projects=len(active),
            total_hours_worked=float(sum(a.hours_worked for a in assignments)),
            current_allocation=allocation,
            project_status_distribution=distribution(a.project.status for a in assignments),
            role_distribution=distribution(a.role for a in assignments),
            recent_assignments=[a for a in assignments if a.start_date >= since],
        )

    async def resource_capacity(
        self, *, start_date: date | None = None, end_date: date | None = None
    ) -> UtilizationSummary:
        engineers = await self._engineers()
        by_engineer = await self.assignments.group_by_engineer(e.id for e in engineers)
        summary = utilization_summary(engineers, by_engineer, start_date, end_date)
        logger.info(
            "resource_capacity",
            start_date=start_date.isoformat() if start_date else None,
            end_date=end_date.isoformat() if end_date else None,
            total_engineers=summary.total_engineers,
            overutilized=summary.overutilized_engineers,
        )
        return summary
