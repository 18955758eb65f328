"""Project routes. A project's team is always derived from its active assignments."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from src.api.deps import get_current_user, get_db_session, require_action
from src.api.schemas.common import MessageResponse
from src.api.schemas.projects import (
    EngineerAssignRequest,
    ProjectCreate,
    ProjectOut,
    ProjectResponse,
    ProjectsResponse,
    ProjectUpdate,
)
from src.domain import User
from src.domain.policy import Action
from src.domain.services.projects import ProjectService, ProjectTeam
from src.infrastructure.db.models import ProjectStatus

router = APIRouter(prefix="/projects", tags=["Projects"])


def _render(teams: list[ProjectTeam]) -> ProjectsResponse:
    return ProjectsResponse(
        count=len(teams),
        projects=[ProjectOut.from_team(team.project, team.assignments) for team in teams],
    )


@router.get("", response_model=ProjectsResponse)
async def list_projects(
    project_status: ProjectStatus | None = Query(None, alias="status"),
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(get_current_user),
) -> ProjectsResponse:
    return _render(await ProjectService(session).list_projects(status=project_status))


@router.get("/status/{project_status}", response_model=ProjectsResponse)
async def list_projects_by_status(
    project_status: ProjectStatus,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(get_current_user),
) -> ProjectsResponse:
    return _render(await ProjectService(session).list_projects(status=project_status))


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    session: AsyncSession = Depends(get_db_session),
    user: User = Depends(require_action(Action.PROJECT_CREATE)),
) -> ProjectResponse:
    """Create a project; the caller manages it unless another manager is named."""
    project = await ProjectService(session).create(user, payload.model_dump())
    return ProjectResponse(
        message="Project created successfully", project=ProjectOut.from_team(project, [])
    )


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(get_current_user),
) -> ProjectResponse:
    team = await ProjectService(session).get_team(project_id)
    return ProjectResponse(project=ProjectOut.from_team(team.project, team.assignments))


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    payload: ProjectUpdate,
    session: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> ProjectResponse:
    service = ProjectService(session)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    await service.update(user, project_id, changes)
    team = await service.get_team(project_id)
    return ProjectResponse(
        message="Project updated successfully",
        project=ProjectOut.from_team(team.project, team.assignments),
    )


@router.delete("/{project_id}", response_model=MessageResponse)
async def delete_project(
    project_id: str,
    session: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> MessageResponse:
    await ProjectService(session).delete(user, project_id)
    return MessageResponse(message="Project deleted successfully")


@router.post("/{project_id}/assign-engineer", response_model=ProjectResponse)
async def assign_engineer(
    project_id: str,
    payload: EngineerAssignRequest,
    session: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> ProjectResponse:
    team = await ProjectService(session).assign_engineer(user, project_id, payload.model_dump())
    return ProjectResponse(
        message="Engineer assigned successfully",
        project=ProjectOut.from_team(team.project, team.assignments),
    )


@router.delete("/{project_id}/remove-engineer/{engineer_id}", response_model=ProjectResponse)
async def remove_engineer(
    project_id: str,
    engineer_id: str,
    session: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> ProjectResponse:
    team = await ProjectService(session).remove_engineer(user, project_id, engineer_id)
    return ProjectResponse(
        message="Engineer removed successfully",
        project=ProjectOut.from_team(team.project, team.assignments),
    )
