from __future__ import annotations

from datetime import UTC, date, datetime, timedelta

import pytest
from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from src.core.auth import Role
from src.domain.services.dashboard import months_before
from src.infrastructure.db.models import AssignmentRole, AssignmentStatus, ProjectStatus

from tests.utils import create_assignment, create_project, create_user, login_as


@pytest.mark.parametrize(
    "path",
    [
        "/dashboard/stats",
        "/dashboard/resource-capacity",
        "/dashboard/project/any/analytics",
        "/dashboard/engineer/any/analytics",
    ],
)
def test_dashboard_requires_manager_role(
    path: str, test_client: TestClient, session_factory: async_sessionmaker[AsyncSession]
) -> None:
    _, headers = login_as(session_factory, Role.TEAM_LEAD)

    response = test_client.get(path, headers=headers)

    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_dashboard_stats(
    test_client: TestClient, session_factory: async_sessionmaker[AsyncSession]
) -> None:
    manager_id, headers = login_as(session_factory, Role.PROJECT_MANAGER)
    engineer_id = create_user(session_factory, Role.ENGINEER)
    create_user(session_factory, Role.TEAM_LEAD)
    today = datetime.now(UTC).date()
    soon = create_project(
        session_factory,
        manager_id,
        name="Closing Soon",
        start_date=today - timedelta(days=60),
        end_date=today + timedelta(days=10),
    )
    create_project(
        session_factory,
        manager_id,
        name="Far Away",
        status=ProjectStatus.PLANNING,
        start_date=today,
        end_date=today + timedelta(days=200),
    )
    create_project(
        session_factory,
        manager_id,
        name="Done Early",
        status=ProjectStatus.COMPLETED,
        start_date=today - timedelta(days=60),
        end_date=today + timedelta(days=5),
    )
    create_assignment(
        session_factory,
        engineer_id,
        soon,
        allocation_percentage=80,
        start_date=today - timedelta(days=30),
        end_date=today + timedelta(days=10),
    )

    response = test_client.get("/dashboard/stats", headers=headers)

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    overview = body["overview"]
    assert overview["total_projects"] == 3
    assert overview["active_projects"] == 1
    assert overview["total_engineers"] == 2
    assert overview["total_assignments"] == 1
    assert overview["average_utilization"] == 40
    assert body["project_status_stats"] == {"active": 1, "planning": 1, "completed": 1}
    assert body["engineer_availability_stats"] == {"available": 2}
    assert [p["name"] for p in body["projects_ending_soon"]] == ["Closing Soon"]
    assert len(body["recent_projects"]) == 3


def test_resource_capacity_summary(
    test_client: TestClient, session_factory: async_sessionmaker[AsyncSession]
) -> None:
    manager_id, headers = login_as(session_factory, Role.ADMIN)
    busy_id = create_user(session_factory, Role.ENGINEER)
    create_user(session_factory, Role.ENGINEER)
    first = create_project(session_factory, manager_id, name="First")
    second = create_project(session_factory, manager_id, name="Second")
    for project_id, allocation in ((first, 60), (second, 60)):
        create_assignment(
            session_factory,
            busy_id,
            project_id,
            allocation_percentage=allocation,
            start_date=date(2026, 1, 1),
            end_date=date(2026, 12, 31),
        )

    response = test_client.get(
        "/dashboard/resource-capacity",
        params={"start_date": "2026-03-01", "end_date": "2026-03-31"},
        headers=headers,
    )

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["summary"] == {
        "total_engineers": 2,
        "average_utilization": 60,
        "underutilized_engineers": 1,
        "overutilized_engineers": 1,
    }
    busy = next(row for row in body["capacity_data"] if row["engineer"]["id"] == busy_id)
    assert busy["total_allocation"] == 120
    assert busy["available_capacity"] == 0
    assert busy["is_overallocated"] is True
    assert {a["project_name"] for a in busy["assignments"]} == {"First", "Second"}


def test_resource_capacity_with_no_engineers(
    test_client: TestClient, session_factory: async_sessionmaker[AsyncSession]
) -> None:
    _, headers = login_as(session_factory, Role.ADMIN)

    body = test_client.get("/dashboard/resource-capacity", headers=headers).json()

    assert body["capacity_data"] == []
    assert body["summary"]["average_utilization"] == 0


def test_project_analytics(
    test_client: TestClient, session_factory: async_sessionmaker[AsyncSession]
) -> None:
    manager_id, headers = login_as(session_factory, Role.PROJECT_MANAGER)
    lead_id = create_user(session_factory, Role.TEAM_LEAD)
    engineer_id = create_user(session_factory, Role.ENGINEER)
    project_id = create_project(session_factory, manager_id)
    create_assignment(
        session_factory,
        lead_id,
        project_id,
        role=AssignmentRole.LEAD,
        hours_allocated=100,
        hours_worked=40,
    )
    create_assignment(
        session_factory,
        engineer_id,
        project_id,
        hours_allocated=100,
        hours_worked=20,
        status=AssignmentStatus.COMPLETED,
    )

    response = test_client.get(f"/dashboard/project/{project_id}/analytics", headers=headers)

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    analytics = body["analytics"]
    assert analytics["total_engineers"] == 2
    assert analytics["total_hours_allocated"] == 200
    assert analytics["progress_percentage"] == 30
    assert analytics["role_distribution"] == {"lead": 1, "developer": 1}
    assert 0 <= analytics["timeline_progress"] <= 100
    assert [m["engineer"]["id"] for m in body["project"]["assigned_engineers"]] == [lead_id]

    missing = test_client.get("/dashboard/project/missing/analytics", headers=headers)
    assert missing.status_code == status.HTTP_404_NOT_FOUND


def test_engineer_analytics(
    test_client: TestClient, session_factory: async_sessionmaker[AsyncSession]
) -> None:
    manager_id, headers = login_as(session_factory, Role.PROJECT_MANAGER)
    engineer_id = create_user(session_factory, Role.ENGINEER)
    today = datetime.now(UTC).date()
    current = create_project(session_factory, manager_id, name="Current")
    old = create_project(
        session_factory, manager_id, name="Old", status=ProjectStatus.COMPLETED
    )
    create_assignment(
        session_factory,
        engineer_id,
        current,
        allocation_percentage=70,
        hours_worked=10,
        start_date=today - timedelta(days=10),
        end_date=today + timedelta(days=60),
    )
    create_assignment(
        session_factory,
        engineer_id,
        old,
        hours_worked=5,
        status=AssignmentStatus.COMPLETED,
        start_date=today - timedelta(days=400),
        end_date=today - timedelta(days=300),
    )

    response = test_client.get(f"/dashboard/engineer/{engineer_id}/analytics", headers=headers)

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["analytics"] == {
        "total_projects": 2,
        "active_projects": 1,
        "total_hours_worked": 15,
        "current_allocation": 70,
        "available_capacity": 30,
    }
    assert body["project_status_distribution"] == {"active": 1, "completed": 1}
    assert [a["project"]["name"] for a in body["recent_assignments"]] == ["Current"]


@pytest.mark.parametrize(
    ("day", "expected"),
    [
        (date(2026, 10, 19), date(2026, 4, 19)),
        (date(2026, 8, 31), date(2026, 2, 28)),
        (date(2026, 3, 15), date(2025, 9, 15)),
    ],
)
def test_months_before_clamps_to_month_end(day: date, expected: date) -> None:
    assert months_before(day, 6) == expected
