"""Project records and their staffing.

The engineers on a project are always read from the assignments table;
assigning or removing an engineer writes or deletes an assignment.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from src.domain import User
from src.domain.errors import NotFoundError, ValidationError
from src.domain.policy import ENGINEER_ROLES, MANAGER_ROLES, Action, authorize
from src.domain.services.assignments import AssignmentService, ensure_date_order
from src.infrastructure.db.models import (
    AssignmentModel,
    AssignmentStatus,
    ProjectModel,
    ProjectStatus,
    UserModel,
)
from src.infrastructure.repositories import AssignmentRepository

logger = structlog.get_logger()


class ProjectNotFoundError(NotFoundError):
    """Raised when a project does not exist."""


@dataclass(slots=True)
class ProjectTeam:
    project: ProjectModel
    assignments: list[AssignmentModel]


def _project_select() -> Select[tuple[ProjectModel]]:
    return (
        select(ProjectModel)
        .options(selectinload(ProjectModel.project_manager))
        .execution_options(populate_existing=True)
    )


class ProjectService:
    """Domain logic for projects."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.assignments = AssignmentRepository(session)

    async def get(self, project_id: str) -> ProjectModel:
        stmt = _project_select().where(ProjectModel.id == project_id)
        project = await self.session.scalar(stmt)
        if project is None:
            raise ProjectNotFoundError("Project not found")
        return project

    async def get_team(self, project_id: str) -> ProjectTeam:
        """Project plus the active assignments that make up its team."""
        project = await self.get(project_id)
        active = await self.assignments.find(
            project_id=project_id, status=AssignmentStatus.ACTIVE
        )
        return ProjectTeam(project=project, assignments=active)

    async def list_projects(self, *, status: ProjectStatus | None = None) -> list[ProjectTeam]:
        stmt = _project_select()
        if status is not None:
            stmt = stmt.where(ProjectModel.status == status)
        stmt = stmt.order_by(ProjectModel.created_at.desc(), ProjectModel.name)
        projects = list((await self.session.execute(stmt)).scalars().all())

        teams = await self.assignments.group_by_project(p.id for p in projects)
        return [ProjectTeam(project=p, assignments=teams.get(p.id, [])) for p in projects]

    async def create(self, actor: User, fields: dict[str, Any]) -> ProjectModel:
        authorize(actor, Action.PROJECT_CREATE)
        fields = dict(fields)
        manager_id = fields.pop("project_manager_id", None) or actor.user_id
        await self._ensure_manager(manager_id)
        ensure_date_order(fields["start_date"], fields["end_date"])

        project = ProjectModel(project_manager_id=manager_id, **fields)
        self.session.add(project)
        await self.session.commit()

        logger.info(
            "project_created",
            project_id=project.id,
            project_name=project.name,
            project_manager_id=manager_id,
            actor_id=actor.user_id,
        )
        return await self.get(project.id)

    async def update(self, actor: User, project_id: str, changes: dict[str, Any]) -> ProjectModel:
        project = await self.get(project_id)
        authorize(actor, Action.PROJECT_MANAGE, project)

        if changes.get("project_manager_id"):
            await self._ensure_manager(changes["project_manager_id"])
        ensure_date_order(
            changes.get("start_date", project.start_date),
            changes.get("end_date", project.end_date),
        )

        for key, value in changes.items():
            setattr(project, key, value)
        await self.session.commit()

        logger.info(
            "project_updated",
            project_id=project_id,
            actor_id=actor.user_id,
            updated_fields=sorted(changes),
        )
        return await self.get(project_id)

    async def delete(self, actor: User, project_id: str) -> None:
        """Delete the project together with all of its assignments."""
        project = await self.get(project_id)
        authorize(actor, Action.PROJECT_MANAGE, project)

        removed = await self.assignments.delete_for_project(project_id)
        await self.session.delete(project)
        await self.session.commit()

        logger.info(
            "project_deleted",
            project_id=project_id,
            actor_id=actor.user_id,
            removed_assignments=removed,
        )

    async def assign_engineer(
        self, actor: User, project_id: str, fields: dict[str, Any]
    ) -> ProjectTeam:
        project = await self.get(project_id)
        authorize(actor, Action.PROJECT_MANAGE, project)

        fields = dict(fields)
        engineer = await self.session.get(UserModel, fields.pop("engineer_id"))
        if engineer is None:
            raise NotFoundError("Engineer not found")
        if engineer.role.value not in ENGINEER_ROLES:
            raise ValidationError("User is not eligible to be assigned as engineer")

        await AssignmentService(self.session).insert(
            actor,
            engineer=engineer,
            project=project,
            fields=fields,
            duplicate_message="Engineer is already assigned to this project",
        )
        return await self.get_team(project_id)

    async def remove_engineer(self, actor: User, project_id: str, engineer_id: str) -> ProjectTeam:
        project = await self.get(project_id)
        authorize(actor, Action.PROJECT_MANAGE, project)

        assignment = await self.assignments.get_pair(engineer_id, project_id)
        if assignment is None:
            raise NotFoundError("Engineer is not assigned to this project")

        await self.session.delete(assignment)
        await self.session.commit()

        logger.info(
            "project_engineer_removed",
            project_id=project_id,
            engineer_id=engineer_id,
            actor_id=actor.user_id,
        )
        return await self.get_team(project_id)

    async def _ensure_manager(self, user_id: str) -> UserModel:
        manager = await self.session.get(UserModel, user_id)
        if manager is None:
            raise NotFoundError("Project manager not found")
        if manager.role.value not in MANAGER_ROLES:
            raise ValidationError("User is not eligible to manage projects")
        return manager
