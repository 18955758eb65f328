"""Assignment routes and the capacity views computed from assignments."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from src.api.deps import get_current_user, get_db_session, require_action
from src.api.schemas.assignments import (
    AssignmentCreate,
    AssignmentOut,
    AssignmentResponse,
    AssignmentsResponse,
    AssignmentUpdate,
    CapacityResponse,
    HoursUpdate,
    ResourceAllocationResponse,
)
from src.api.schemas.common import MessageResponse
from src.api.schemas.projects import ProjectSummary
from src.api.schemas.users import UserSummary
from src.domain import User
from src.domain.policy import Action
from src.domain.services.assignments import AssignmentService
from src.infrastructure.db.models import AssignmentModel, AssignmentStatus

router = APIRouter(prefix="/assignments", tags=["Assignments"])


def _render(assignments: list[AssignmentModel]) -> AssignmentsResponse:
    return AssignmentsResponse(
        count=len(assignments),
        assignments=[AssignmentOut.model_validate(a) for a in assignments],
    )


@router.get("", response_model=AssignmentsResponse)
async def list_assignments(
    engineer_id: str | None = None,
    project_id: str | None = None,
    assignment_status: AssignmentStatus | None = Query(None, alias="status"),
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(get_current_user),
) -> AssignmentsResponse:
    assignments = await AssignmentService(session).list_assignments(
        engineer_id=engineer_id, project_id=project_id, status=assignment_status
    )
    return _render(assignments)


@router.get("/engineer/{engineer_id}", response_model=AssignmentsResponse)
async def list_engineer_assignments(
    engineer_id: str,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(get_current_user),
) -> AssignmentsResponse:
    return _render(await AssignmentService(session).list_assignments(engineer_id=engineer_id))


@router.get("/project/{project_id}", response_model=AssignmentsResponse)
async def list_project_assignments(
    project_id: str,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(get_current_user),
) -> AssignmentsResponse:
    return _render(await AssignmentService(session).list_assignments(project_id=project_id))


@router.get("/capacity/{engineer_id}", response_model=CapacityResponse)
async def engineer_capacity(
    engineer_id: str,
    start_date: date | None = None,
    end_date: date | None = None,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(get_current_user),
) -> CapacityResponse:
    """Summed allocation of the engineer's active assignments overlapping the window."""
    capacity = await AssignmentService(session).engineer_capacity(
        engineer_id, start_date=start_date, end_date=end_date
    )
    return CapacityResponse(
        engineer=UserSummary.model_validate(capacity.engineer),
        total_allocation=capacity.total_allocation,
        available_capacity=capacity.available_capacity,
        is_overallocated=capacity.is_overallocated,
        assignments=[AssignmentOut.model_validate(a) for a in capacity.assignments],
    )


@router.get(
    "/project/{project_id}/resource-allocation", response_model=ResourceAllocationResponse
)
async def project_resource_allocation(
    project_id: str,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(get_current_user),
) -> ResourceAllocationResponse:
    allocation = await AssignmentService(session).resource_allocation(project_id)
    progress = allocation.progress
    return ResourceAllocationResponse(
        project=ProjectSummary.model_validate(allocation.project),
        assignments=[AssignmentOut.model_validate(a) for a in allocation.assignments],
        total_engineers=progress.total_engineers,
        total_allocation=progress.total_allocation,
        total_hours_allocated=progress.total_hours_allocated,
        total_hours_worked=progress.total_hours_worked,
        progress_percentage=progress.progress_percentage,
    )


@router.post("", response_model=AssignmentResponse, status_code=status.HTTP_201_CREATED)
async def create_assignment(
    payload: AssignmentCreate,
    session: AsyncSession = Depends(get_db_session),
    user: User = Depends(require_action(Action.ASSIGNMENT_CREATE)),
) -> AssignmentResponse:
    assignment = await AssignmentService(session).create(user, payload.model_dump())
    return AssignmentResponse(
        message="Assignment created successfully",
        assignment=AssignmentOut.model_validate(assignment),
    )


@router.get("/{assignment_id}", response_model=AssignmentResponse)
async def get_assignment(
    assignment_id: str,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(get_current_user),
) -> AssignmentResponse:
    assignment = await AssignmentService(session).get(assignment_id)
    return AssignmentResponse(assignment=AssignmentOut.model_validate(assignment))


@router.put("/{assignment_id}", response_model=AssignmentResponse)
async def update_assignment(
    assignment_id: str,
    payload: AssignmentUpdate,
    session: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> AssignmentResponse:
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    assignment = await AssignmentService(session).update(user, assignment_id, changes)
    return AssignmentResponse(
        message="Assignment updated successfully",
        assignment=AssignmentOut.model_validate(assignment),
    )


@router.delete("/{assignment_id}", response_model=MessageResponse)
async def delete_assignment(
    assignment_id: str,
    session: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> MessageResponse:
    await AssignmentService(session).delete(user, assignment_id)
    return MessageResponse(message="Assignment deleted successfully")


@router.put("/{assignment_id}/hours", response_model=AssignmentResponse)
async def log_hours(
    assignment_id: str,
    payload: HoursUpdate,
    session: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
) -> AssignmentResponse:
    """Record hours worked; open to the assigned engineer and to team leads and above."""
    assignment = await AssignmentService(session).log_hours(
        user, assignment_id, payload.hours_worked
    )
    return AssignmentResponse(
        message="Hours updated successfully",
        assignment=AssignmentOut.model_validate(assignment),
    )
