"""Identity management: listings, profile updates, deletion and personal dashboards."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from src.domain import User
from src.domain.capacity import EngineerCapacity, active_allocation, engineer_capacity
from src.domain.errors import ConflictError, NotFoundError
from src.domain.policy import ENGINEER_ROLES, MANAGER_ROLES, Action, authorize
from src.infrastructure.db.models import (
    AssignmentModel,
    Availability,
    ProjectModel,
    UserModel,
    UserRole,
)
from src.infrastructure.repositories import AssignmentRepository

logger = structlog.get_logger()


class UserNotFoundError(NotFoundError):
    """Raised when a referenced identity does not exist."""


class UserHasActiveAssignmentsError(ConflictError):
    """Raised when deleting an identity that still holds active assignments."""


class UserManagesProjectsError(ConflictError):
    """Raised when deleting an identity that still manages projects."""


@dataclass(slots=True)
class UserDashboard:
    user: UserModel
    assignments: list[AssignmentModel] = field(default_factory=list)
    managed_projects: list[ProjectModel] = field(default_factory=list)
    total_projects: int = 0
    total_hours: float = 0.0
    current_allocation: float = 0.0


def _matches_skills(user: UserModel, skills: Sequence[str] | None) -> bool:
    if not skills:
        return True
    return bool(set(user.skills or []) & set(skills))


class UserService:
    """Domain logic for identity records."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.assignments = AssignmentRepository(session)

    async def get(self, user_id: str) -> UserModel:
        user = await self.session.get(UserModel, user_id)
        if user is None:
            raise UserNotFoundError("User not found")
        return user

    async def read(self, actor: User, user_id: str) -> UserModel:
        user = await self.get(user_id)
        authorize(actor, Action.USER_READ, user)
        return user

    async def list_users(
        self, *, role: UserRole | None = None, department: str | None = None
    ) -> list[UserModel]:
        stmt = select(UserModel)
        if role is not None:
            stmt = stmt.where(UserModel.role == role)
        if department is not None:
            stmt = stmt.where(UserModel.department == department)
        stmt = stmt.order_by(UserModel.name)
        return list((await self.session.execute(stmt)).scalars().all())

    async def list_engineers(
        self,
        *,
        availability: Availability | None = None,
        skills: Sequence[str] | None = None,
        exclude_unavailable: bool = False,
    ) -> list[UserModel]:
        """Engineers and team leads, optionally filtered by availability and any-of skills."""
        stmt = select(UserModel).where(UserModel.role.in_(ENGINEER_ROLES))
        if availability is not None:
            stmt = stmt.where(UserModel.availability == availability)
        if exclude_unavailable:
            stmt = stmt.where(UserModel.availability != Availability.UNAVAILABLE)
        stmt = stmt.order_by(UserModel.name)
        engineers = (await self.session.execute(stmt)).scalars().all()
        return [engineer for engineer in engineers if _matches_skills(engineer, skills)]

    async def list_project_managers(self) -> list[UserModel]:
        stmt = select(UserModel).where(UserModel.role.in_(MANAGER_ROLES)).order_by(UserModel.name)
        return list((await self.session.execute(stmt)).scalars().all())

    async def available_engineers(
        self,
        *,
        start_date: date | None = None,
        end_date: date | None = None,
        skills: Sequence[str] | None = None,
        min_capacity: float | None = None,
    ) -> list[EngineerCapacity]:
        """Engineers who are not marked unavailable, with their capacity over the window."""
        engineers = await self.list_engineers(skills=skills, exclude_unavailable=True)
        by_engineer = await self.assignments.group_by_engineer(e.id for e in engineers)

        rows = [
            engineer_capacity(engineer, by_engineer.get(engineer.id, ()), start_date, end_date)
            for engineer in engineers
        ]
        if min_capacity is not None:
            rows = [row for row in rows if row.available_capacity >= min_capacity]
        return rows

    async def update(self, actor: User, user_id: str, changes: dict[str, Any]) -> UserModel:
        user = await self.get(user_id)
        authorize(actor, Action.USER_UPDATE, user)

        new_role = changes.get("role")
        if new_role is not None and UserRole(new_role) != user.role:
            authorize(actor, Action.USER_CHANGE_ROLE, user)
        if changes.get("email"):
            changes = {**changes, "email": changes["email"].lower()}

        for key, value in changes.items():
            setattr(user, key, value)

        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise ConflictError("Email is already in use") from exc

        await self.session.refresh(user)
        logger.info(
            "user_updated",
            user_id=user.id,
            actor_id=actor.user_id,
            updated_fields=sorted(changes),
        )
        return user

    async def delete(self, actor: User, user_id: str) -> None:
        """Delete an identity that holds no active assignment and manages no project.

        Its completed, on-hold and cancelled assignments are removed in the
        same transaction.
        """
        user = await self.get(user_id)
        authorize(actor, Action.USER_DELETE, user)

        if await self.assignments.has_active_for_engineer(user.id):
            raise UserHasActiveAssignmentsError("Cannot delete user with active assignments")

        managed = await self.session.scalar(
            select(ProjectModel.id).where(ProjectModel.project_manager_id == user.id).limit(1)
        )
        if managed is not None:
            raise UserManagesProjectsError("Cannot delete user who still manages projects")

        removed = await self.assignments.release_engineer(user.id)
        await self.session.delete(user)
        await self.session.commit()
        logger.info(
            "user_deleted",
            user_id=user_id,
            actor_id=actor.user_id,
            removed_assignments=removed,
        )

    async def dashboard(self, actor: User, user_id: str) -> UserDashboard:
        user = await self.get(user_id)
        authorize(actor, Action.USER_DASHBOARD, user)

        dashboard = UserDashboard(user=user)
        if user.role.value in ENGINEER_ROLES:
            assignments = await self.assignments.find(engineer_id=user.id)
            allocation, _ = active_allocation(assignments)
            dashboard.assignments = assignments
            dashboard.total_projects = len(assignments)
            dashboard.total_hours = float(sum(a.hours_worked for a in assignments))
            dashboard.current_allocation = allocation

        if user.role.value in MANAGER_ROLES:
            stmt = (
                select(ProjectModel)
                .where(ProjectModel.project_manager_id == user.id)
                .order_by(ProjectModel.start_date)
            )
            dashboard.managed_projects = list((await self.session.execute(stmt)).scalars().all())
            dashboard.total_projects = len(dashboard.managed_projects)

        return dashboard
