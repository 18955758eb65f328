"""Seeding helpers for route tests.

They run their own event loop with ``asyncio.run``; ``TestClient`` serves the
app from a separate thread, so this is safe from synchronous tests.
"""

from __future__ import annotations

import asyncio
from datetime import date
from itertools import count
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from src.api.deps import issue_smoke_token
from src.core.auth import Role
from src.domain.services.auth_service import AuthService
from src.infrastructure.db.models import (
    AssignmentModel,
    AssignmentStatus,
    ProjectModel,
    ProjectStatus,
)

Factory = async_sessionmaker[AsyncSession]

DEFAULT_PASSWORD = "password123"

_sequence = count(1)


def auth_headers(user_id: str, role: Role = Role.ENGINEER) -> dict[str, str]:
    token = issue_smoke_token(user_id, role=role, email=f"{user_id}@example.com")
    return {"Authorization": f"Bearer {token}"}


def create_user(factory: Factory, role: Role = Role.ENGINEER, **profile: Any) -> str:
    """Insert an identity and return its id."""
    number = next(_sequence)
    name = profile.pop("name", f"{role.value.replace('_', ' ').title()} {number}")
    email = profile.pop("email", f"{role.value}{number}@example.com")

    async def _create() -> str:
        async with factory() as session:
            user = await AuthService(session).signup(
                name=name,
                email=email,
                password=DEFAULT_PASSWORD,
                role=role.value,
                profile=profile,
            )
            return user.id

    return asyncio.run(_create())


def login_as(factory: Factory, role: Role, **profile: Any) -> tuple[str, dict[str, str]]:
    user_id = create_user(factory, role, **profile)
    return user_id, auth_headers(user_id, role)


def create_project(factory: Factory, manager_id: str, **overrides: Any) -> str:
    fields: dict[str, Any] = {
        "name": "Platform Rebuild",
        "description": "Rebuild the internal platform services.",
        "status": ProjectStatus.ACTIVE,
        "start_date": date(2026, 1, 1),
        "end_date": date(2026, 12, 31),
        "project_manager_id": manager_id,
    }
    fields.update(overrides)

    async def _create() -> str:
        async with factory() as session:
            project = ProjectModel(**fields)
            session.add(project)
            await session.commit()
            return project.id

    return asyncio.run(_create())


def create_assignment(
    factory: Factory, engineer_id: str, project_id: str, **overrides: Any
) -> str:
    fields: dict[str, Any] = {
        "allocation_percentage": 50,
        "start_date": date(2026, 1, 1),
        "end_date": date(2026, 6, 30),
        "status": AssignmentStatus.ACTIVE,
    }
    fields.update(overrides)

    async def _create() -> str:
        async with factory() as session:
            assignment = AssignmentModel(engineer_id=engineer_id, project_id=project_id, **fields)
            session.add(assignment)
            await session.commit()
            return assignment.id

    return asyncio.run(_create())
