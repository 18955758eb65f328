"""Identity routes: directory listings, profiles and personal dashboards."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from src.api.deps import get_current_user, get_db_session, require_action
from src.api.schemas.assignments import AssignmentOut
from src.api.schemas.common import MessageResponse
from src.api.schemas.dashboard import UserDashboardResponse
from src.api.schemas.projects import ProjectSummary
from src.api.schemas.users import (
    AvailableEngineer,
    AvailableEngineersResponse,
    EngineersResponse,
    ProjectManagersResponse,
    UserOut,
    UserResponse,
    UsersResponse,
    UserUpdate,
)
from src.domain import User
from src.domain.policy import Action
from src.domain.services.users import UserService
from src.infrastructure.db.models import Availability, UserRole

router = APIRouter(prefix="/users", tags=["Users"])


def split_skills(skills: str | None) -> list[str] | None:
    if not skills:
        return None
    return [skill.strip() for skill in skills.split(",") if skill.strip()]


@router.get("", response_model=UsersResponse)
async def list_users(
    role: UserRole | None = None,
    department: str | None = None,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_action(Action.USER_LIST)),
) -> UsersResponse:
    users = await UserService(session).list_users(role=role, department=department)
    return UsersResponse(count=len(users), users=[UserOut.model_validate(u) for u in users])


@router.get("/engineers", response_model=EngineersResponse)
async def list_engineers(
    availability: Availability | None = None,
    skills: str | None = Query(None, description="Comma separated; matches any"),
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(get_current_user),
) -> EngineersResponse:
    """Engineers and team leads."""
    engineers = await UserService(session).list_engineers(
        availability=availability, skills=split_skills(skills)
    )
    return EngineersResponse(
        count=len(engineers), engineers=[UserOut.model_validate(e) for e in engineers]
    )


@router.get("/project-managers", response_model=ProjectManagersResponse)
async def list_project_managers(
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(get_current_user),
) -> ProjectManagersResponse:
    managers = await UserService(session).list_project_managers()
    return ProjectManagersResponse(
        count=len(managers), project_managers=[UserOut.model_validate(m) for m in managers]
    )


@router.get("/available-engineers", response_model=AvailableEngineersResponse)
async def available_engineers(
    start_date: date | None = None,
    end_date: date | None = None,
    skills: str | None = Query(None, description="Comma separated; matches any"),
    min_capacity: float | None = Query(None, ge=0, le=100),
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(get_current_user),
) -> AvailableEngineersResponse:
    """Engineers not marked unavailable, with their free capacity over the window."""
    rows = await UserService(session).available_engineers(
        start_date=start_date,
        end_date=end_date,
        skills=split_skills(skills),
        min_capacity=min_capacity,
    )
    engineers = [
        AvailableEngineer(
            **UserOut.model_validate(row.engineer).model_dump(),
            current_allocation=row.total_allocation,
            available_capacity=row.available_capacity,
        )
        for row in rows
    ]
    return AvailableEngineersResponse(count=len(engineers), engineers=engineers)


@router.get("/dashboard/{user_id}", response_model=UserDashboardResponse)
async def user_dashboard(
    user_id: str,
    session: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> UserDashboardResponse:
    dashboard = await UserService(session).dashboard(user, user_id)
    return UserDashboardResponse(
        user=UserOut.model_validate(dashboard.user),
        assignments=[AssignmentOut.model_validate(a) for a in dashboard.assignments],
        managed_projects=[ProjectSummary.model_validate(p) for p in dashboard.managed_projects],
        total_projects=dashboard.total_projects,
        total_hours=dashboard.total_hours,
        current_allocation=dashboard.current_allocation,
    )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    session: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> UserResponse:
    record = await UserService(session).read(user, user_id)
    return UserResponse(user=UserOut.model_validate(record))


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    payload: UserUpdate,
    session: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> UserResponse:
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    record = await UserService(session).update(user, user_id, changes)
    return UserResponse(message="User updated successfully", user=UserOut.model_validate(record))


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    session: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> MessageResponse:
    await UserService(session).delete(user, user_id)
    return MessageResponse(message="User deleted successfully")
