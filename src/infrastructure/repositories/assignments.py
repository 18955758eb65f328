from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass

import structlog
from sqlalchemy import Select, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute, selectinload
from src.infrastructure.db.models import AssignmentModel, AssignmentStatus, ProjectModel

logger = structlog.get_logger()


@dataclass
class AssignmentRepository:
    """Assignment queries shared by every service that reports staffing or capacity."""

    session: AsyncSession

    @staticmethod
    def _select() -> Select[tuple[AssignmentModel]]:
        return (
            select(AssignmentModel)
            .options(
                selectinload(AssignmentModel.engineer),
                selectinload(AssignmentModel.project).selectinload(ProjectModel.project_manager),
                selectinload(AssignmentModel.assigned_by),
            )
            .execution_options(populate_existing=True)
        )

    async def get(self, assignment_id: str) -> AssignmentModel | None:
        stmt = self._select().where(AssignmentModel.id == assignment_id)
        return await self.session.scalar(stmt)

    async def get_pair(self, engineer_id: str, project_id: str) -> AssignmentModel | None:
        stmt = self._select().where(
            AssignmentModel.engineer_id == engineer_id,
            AssignmentModel.project_id == project_id,
        )
        return await self.session.scalar(stmt)

    async def find(
        self,
        *,
        engineer_id: str | None = None,
        project_id: str | None = None,
        status: AssignmentStatus | None = None,
    ) -> list[AssignmentModel]:
        stmt = self._select()
        if engineer_id is not None:
            stmt = stmt.where(AssignmentModel.engineer_id == engineer_id)
        if project_id is not None:
            stmt = stmt.where(AssignmentModel.project_id == project_id)
        if status is not None:
            stmt = stmt.where(AssignmentModel.status == status)
        stmt = stmt.order_by(AssignmentModel.start_date, AssignmentModel.created_at)
        return list((await self.session.execute(stmt)).scalars().all())

    async def group_by_engineer(
        self,
        engineer_ids: Iterable[str],
        *,
        status: AssignmentStatus | None = AssignmentStatus.ACTIVE,
    ) -> dict[str, list[AssignmentModel]]:
        """Fetch assignments for many engineers in one query, keyed by engineer id."""
        return await self._group(AssignmentModel.engineer_id, engineer_ids, status)

    async def group_by_project(
        self,
        project_ids: Iterable[str],
        *,
        status: AssignmentStatus | None = AssignmentStatus.ACTIVE,
    ) -> dict[str, list[AssignmentModel]]:
        return await self._group(AssignmentModel.project_id, project_ids, status)

    async def _group(
        self,
        column: InstrumentedAttribute[str],
        ids: Iterable[str],
        status: AssignmentStatus | None,
    ) -> dict[str, list[AssignmentModel]]:
        grouped: dict[str, list[AssignmentModel]] = defaultdict(list)
        wanted = list(ids)
        if not wanted:
            return grouped

        stmt = self._select().where(column.in_(wanted))
        if status is not None:
            stmt = stmt.where(AssignmentModel.status == status)
        stmt = stmt.order_by(AssignmentModel.start_date)
        for assignment in (await self.session.execute(stmt)).scalars():
            grouped[getattr(assignment, column.key)].append(assignment)
        return grouped

    async def count(self) -> int:
        return int(await self.session.scalar(select(func.count(AssignmentModel.id))) or 0)

    async def has_active_for_engineer(self, engineer_id: str) -> bool:
        stmt = (
            select(AssignmentModel.id)
            .where(
                AssignmentModel.engineer_id == engineer_id,
                AssignmentModel.status == AssignmentStatus.ACTIVE,
            )
            .limit(1)
        )
        return await self.session.scalar(stmt) is not None

    async def delete_for_project(self, project_id: str) -> int:
        result = await self.session.execute(
            delete(AssignmentModel).where(AssignmentModel.project_id == project_id)
        )
        return result.rowcount or 0

    async def release_engineer(self, engineer_id: str) -> int:
        """Drop an engineer's assignments and clear their ``assigned_by`` references."""
        result = await self.session.execute(
            delete(AssignmentModel).where(AssignmentModel.engineer_id == engineer_id)
        )
        await self.session.execute(
            update(AssignmentModel)
            .where(AssignmentModel.assigned_by_id == engineer_id)
            .values(assigned_by_id=None)
        )
        removed = result.rowcount or 0
        logger.debug("assignments_released", engineer_id=engineer_id, removed=removed)
        return removed
