"""Assignment lifecycle and the capacity views built on top of it."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from src.domain import User
from src.domain.capacity import (
    EngineerCapacity,
    ProjectProgress,
    engineer_capacity,
    project_progress,
)
from src.domain.errors import ConflictError, NotFoundError, ValidationError
from src.domain.policy import Action, authorize
from src.infrastructure.db.models import (
    AssignmentModel,
    AssignmentStatus,
    ProjectModel,
    UserModel,
)
from src.infrastructure.repositories import AssignmentRepository

logger = structlog.get_logger()


class AssignmentNotFoundError(NotFoundError):
    """Raised when an assignment does not exist."""


class AssignmentExistsError(ConflictError):
    """Raised when the engineer already has an assignment on the project."""


@dataclass(slots=True)
class ResourceAllocation:
    project: ProjectModel
    assignments: list[AssignmentModel]
    progress: ProjectProgress


def ensure_date_order(start: date, end: date) -> None:
    if end <= start:
        raise ValidationError("end_date must be after start_date")


class AssignmentService:
    """Domain logic for assignment records."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repository = AssignmentRepository(session)

    async def get(self, assignment_id: str) -> AssignmentModel:
        assignment = await self.repository.get(assignment_id)
        if assignment is None:
            raise AssignmentNotFoundError("Assignment not found")
        return assignment

    async def list_assignments(
        self,
        *,
        engineer_id: str | None = None,
        project_id: str | None = None,
        status: AssignmentStatus | None = None,
    ) -> list[AssignmentModel]:
        return await self.repository.find(
            engineer_id=engineer_id, project_id=project_id, status=status
        )

    async def create(self, actor: User, fields: dict[str, Any]) -> AssignmentModel:
        authorize(actor, Action.ASSIGNMENT_CREATE)
        fields = dict(fields)
        engineer_id = fields.pop("engineer_id")
        project_id = fields.pop("project_id")

        engineer = await self.session.get(UserModel, engineer_id)
        if engineer is None:
            raise NotFoundError("Engineer not found")
        project = await self.session.get(ProjectModel, project_id)
        if project is None:
            raise NotFoundError("Project not found")

        return await self.insert(actor, engineer=engineer, project=project, fields=fields)

    async def insert(
        self,
        actor: User,
        *,
        engineer: UserModel,
        project: ProjectModel,
        fields: dict[str, Any],
        duplicate_message: str = "Assignment already exists",
    ) -> AssignmentModel:
        """Insert an assignment; the (engineer, project) unique constraint decides duplicates."""
        ensure_date_order(fields["start_date"], fields["end_date"])
        engineer_id, project_id = engineer.id, project.id

        assignment = AssignmentModel(
            engineer_id=engineer_id,
            project_id=project_id,
            assigned_by_id=actor.user_id,
            **fields,
        )
        try:
            self.session.add(assignment)
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            await logger.awarning(
                "assignment_duplicate", engineer_id=engineer_id, project_id=project_id
            )
            raise AssignmentExistsError(duplicate_message) from exc

        await logger.ainfo(
            "assignment_created",
            assignment_id=assignment.id,
            engineer_id=engineer_id,
            project_id=project_id,
            allocation=assignment.allocation_percentage,
            actor_id=actor.user_id,
        )
        return await self.get(assignment.id)

    async def update(
        self, actor: User, assignment_id: str, changes: dict[str, Any]
    ) -> AssignmentModel:
        assignment = await self.get(assignment_id)
        authorize(actor, Action.ASSIGNMENT_UPDATE, assignment)

        ensure_date_order(
            changes.get("start_date", assignment.start_date),
            changes.get("end_date", assignment.end_date),
        )
        for key, value in changes.items():
            setattr(assignment, key, value)
        await self.session.commit()

        logger.info(
            "assignment_updated",
            assignment_id=assignment_id,
            actor_id=actor.user_id,
            updated_fields=sorted(changes),
        )
        return await self.get(assignment_id)

    async def delete(self, actor: User, assignment_id: str) -> None:
        assignment = await self.get(assignment_id)
        authorize(actor, Action.ASSIGNMENT_DELETE, assignment)

        await self.session.delete(assignment)
        await self.session.commit()
        logger.info("assignment_deleted", assignment_id=assignment_id, actor_id=actor.user_id)

    async def log_hours(self, actor: User, assignment_id: str, hours_worked: float) -> AssignmentModel:
        assignment = await self.get(assignment_id)
        authorize(actor, Action.ASSIGNMENT_LOG_HOURS, assignment)

        assignment.hours_worked = hours_worked
        await self.session.commit()

        logger.info(
            "assignment_hours_logged",
            assignment_id=assignment_id,
            hours_worked=hours_worked,
            actor_id=actor.user_id,
        )
        return await self.get(assignment_id)

    async def engineer_capacity(
        self,
        engineer_id: str,
        *,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> EngineerCapacity:
        engineer = await self.session.get(UserModel, engineer_id)
        if engineer is None:
            raise NotFoundError("Engineer not found")

        active = await self.repository.find(
            engineer_id=engineer_id, status=AssignmentStatus.ACTIVE
        )
        return engineer_capacity(engineer, active, start_date, end_date)

    async def resource_allocation(self, project_id: str) -> ResourceAllocation:
        project = await self.session.get(ProjectModel, project_id)
        if project is None:
            raise NotFoundError("Project not found")

        assignments = await self.repository.find(project_id=project_id)
        return ResourceAllocation(
            project=project,
            assignments=assignments,
            progress=project_progress(project, assignments),
        )
