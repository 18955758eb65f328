from __future__ import annotations

from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from src.core.auth import Role
from src.infrastructure.db.models import AssignmentStatus, ProjectStatus

from tests.utils import create_assignment, create_project, create_user, login_as

PROJECT_PAYLOAD = {
    "name": "Customer Portal",
    "description": "Self-service portal for enterprise customers.",
    "status": "planning",
    "start_date": "2026-02-01",
    "end_date": "2026-08-31",
    "priority": "high",
    "budget": 125000.0,
    "technologies": ["python", "react"],
}


def test_project_create_then_read_returns_accepted_fields(
    test_client: TestClient, session_factory: async_sessionmaker[AsyncSession]
) -> None:
    manager_id, headers = login_as(session_factory, Role.PROJECT_MANAGER)

    created = test_client.post("/projects", json=PROJECT_PAYLOAD, headers=headers)
    assert created.status_code == status.HTTP_201_CREATED
    body = created.json()
    assert body["success"] is True
    project_id = body["project"]["id"]

    fetched = test_client.get(f"/projects/{project_id}", headers=headers)
    assert fetched.status_code == status.HTTP_200_OK
    project = fetched.json()["project"]
    for key, value in PROJECT_PAYLOAD.items():
        assert project[key] == value
    # Manager defaults to the caller
    assert project["project_manager_id"] == manager_id
    assert project["project_manager"]["id"] == manager_id
    assert project["assigned_engineers"] == []


def test_engineer_cannot_create_project(
    test_client: TestClient, session_factory: async_sessionmaker[AsyncSession]
) -> None:
    _, headers = login_as(session_factory, Role.ENGINEER)

    response = test_client.post("/projects", json=PROJECT_PAYLOAD, headers=headers)

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["success"] is False


def test_project_manager_must_hold_manager_role(
    test_client: TestClient, session_factory: async_sessionmaker[AsyncSession]
) -> None:
    _, headers = login_as(session_factory, Role.ADMIN)
    engineer_id = create_user(session_factory, Role.ENGINEER)

    response = test_client.post(
        "/projects",
        json={**PROJECT_PAYLOAD, "project_manager_id": engineer_id},
        headers=headers,
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["message"] == "User is not eligible to manage projects"


def test_project_dates_must_be_ordered(
    test_client: TestClient, session_factory: async_sessionmaker[AsyncSession]
) -> None:
    _, headers = login_as(session_factory, Role.PROJECT_MANAGER)

    response = test_client.post(
        "/projects",
        json={**PROJECT_PAYLOAD, "end_date": "2026-01-01"},
        headers=headers,
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    assert body["error"]


def test_only_owning_manager_can_update_project(
    test_client: TestClient, session_factory: async_sessionmaker[AsyncSession]
) -> None:
    owner_id, owner_headers = login_as(session_factory, Role.PROJECT_MANAGER)
    _, other_headers = login_as(session_factory, Role.PROJECT_MANAGER)
    project_id = create_project(session_factory, owner_id)

    denied = test_client.put(
        f"/projects/{project_id}", json={"status": "on-hold"}, headers=other_headers
    )
    assert denied.status_code == status.HTTP_403_FORBIDDEN

    allowed = test_client.put(
        f"/projects/{project_id}", json={"status": "on-hold"}, headers=owner_headers
    )
    assert allowed.status_code == status.HTTP_200_OK
    assert allowed.json()["project"]["status"] == "on-hold"


def test_admin_can_update_any_project(
    test_client: TestClient, session_factory: async_sessionmaker[AsyncSession]
) -> None:
    owner_id = create_user(session_factory, Role.PROJECT_MANAGER)
    _, admin_headers = login_as(session_factory, Role.ADMIN)
    project_id = create_project(session_factory, owner_id)

    response = test_client.put(
        f"/projects/{project_id}", json={"name": "Renamed Project"}, headers=admin_headers
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["project"]["name"] == "Renamed Project"


def test_missing_project_is_not_found(
    test_client: TestClient, session_factory: async_sessionmaker[AsyncSession]
) -> None:
    _, headers = login_as(session_factory, Role.ADMIN)

    response = test_client.put("/projects/missing", json={"name": "Whatever"}, headers=headers)

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"success": False, "message": "Project not found"}


def test_assign_and_remove_engineer_goes_through_assignments(
    test_client: TestClient, session_factory: async_sessionmaker[AsyncSession]
) -> None:
    owner_id, headers = login_as(session_factory, Role.PROJECT_MANAGER)
    engineer_id = create_user(session_factory, Role.ENGINEER)
    project_id = create_project(session_factory, owner_id)
    payload = {
        "engineer_id": engineer_id,
        "role": "tester",
        "allocation_percentage": 60,
        "start_date": "2026-03-01",
        "end_date": "2026-05-31",
    }

    assigned = test_client.post(
        f"/projects/{project_id}/assign-engineer", json=payload, headers=headers
    )
    assert assigned.status_code == status.HTTP_200_OK
    team = assigned.json()["project"]["assigned_engineers"]
    assert [member["engineer"]["id"] for member in team] == [engineer_id]
    assert team[0]["allocation_percentage"] == 60

    listed = test_client.get(f"/assignments/project/{project_id}", headers=headers)
    assert listed.json()["count"] == 1

    duplicate = test_client.post(
        f"/projects/{project_id}/assign-engineer", json=payload, headers=headers
    )
    assert duplicate.status_code == status.HTTP_409_CONFLICT
    assert duplicate.json()["message"] == "Engineer is already assigned to this project"

    removed = test_client.delete(
        f"/projects/{project_id}/remove-engineer/{engineer_id}", headers=headers
    )
    assert removed.status_code == status.HTTP_200_OK
    assert removed.json()["project"]["assigned_engineers"] == []

    again = test_client.delete(
        f"/projects/{project_id}/remove-engineer/{engineer_id}", headers=headers
    )
    assert again.status_code == status.HTTP_404_NOT_FOUND


def test_only_engineers_can_be_assigned(
    test_client: TestClient, session_factory: async_sessionmaker[AsyncSession]
) -> None:
    owner_id, headers = login_as(session_factory, Role.PROJECT_MANAGER)
    project_id = create_project(session_factory, owner_id)

    response = test_client.post(
        f"/projects/{project_id}/assign-engineer",
        json={
            "engineer_id": owner_id,
            "start_date": "2026-03-01",
            "end_date": "2026-05-31",
        },
        headers=headers,
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_inactive_assignments_are_not_part_of_the_team(
    test_client: TestClient, session_factory: async_sessionmaker[AsyncSession]
) -> None:
    owner_id, headers = login_as(session_factory, Role.PROJECT_MANAGER)
    project_id = create_project(session_factory, owner_id)
    active_id = create_user(session_factory, Role.ENGINEER)
    done_id = create_user(session_factory, Role.ENGINEER)
    create_assignment(session_factory, active_id, project_id)
    create_assignment(
        session_factory, done_id, project_id, status=AssignmentStatus.COMPLETED
    )

    response = test_client.get(f"/projects/{project_id}", headers=headers)

    assert response.status_code == status.HTTP_200_OK
    team = response.json()["project"]["assigned_engineers"]
    assert [member["engineer"]["id"] for member in team] == [active_id]


def test_deleting_project_removes_its_assignments(
    test_client: TestClient, session_factory: async_sessionmaker[AsyncSession]
) -> None:
    owner_id, headers = login_as(session_factory, Role.PROJECT_MANAGER)
    engineer_id = create_user(session_factory, Role.ENGINEER)
    project_id = create_project(session_factory, owner_id)
    create_assignment(session_factory, engineer_id, project_id)

    response = test_client.delete(f"/projects/{project_id}", headers=headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["message"] == "Project deleted successfully"

    assert test_client.get(f"/projects/{project_id}", headers=headers).status_code == 404
    remaining = test_client.get(f"/assignments?engineer_id={engineer_id}", headers=headers)
    assert remaining.json()["count"] == 0


def test_projects_can_be_listed_by_status(
    test_client: TestClient, session_factory: async_sessionmaker[AsyncSession]
) -> None:
    owner_id, headers = login_as(session_factory, Role.PROJECT_MANAGER)
    create_project(session_factory, owner_id, name="Active One")
    create_project(
        session_factory, owner_id, name="Planned One", status=ProjectStatus.PLANNING
    )

    by_path = test_client.get("/projects/status/planning", headers=headers).json()
    by_query = test_client.get("/projects?status=active", headers=headers).json()
    everything = test_client.get("/projects", headers=headers).json()

    assert [p["name"] for p in by_path["projects"]] == ["Planned One"]
    assert [p["name"] for p in by_query["projects"]] == ["Active One"]
    assert everything["count"] == 2


def test_staffed_project_keeps_its_manager_in_every_view(
    test_client: TestClient, session_factory: async_sessionmaker[AsyncSession]
) -> None:
    owner_id, headers = login_as(session_factory, Role.PROJECT_MANAGER)
    engineer_id = create_user(session_factory, Role.ENGINEER)
    project_id = create_project(session_factory, owner_id, name="Staffed")
    create_assignment(session_factory, engineer_id, project_id)

    read = test_client.get(f"/projects/{project_id}", headers=headers)
    listed = test_client.get("/projects", headers=headers)
    updated = test_client.put(
        f"/projects/{project_id}", json={"priority": "critical"}, headers=headers
    )

    assert read.status_code == status.HTTP_200_OK
    assert listed.status_code == status.HTTP_200_OK
    assert updated.status_code == status.HTTP_200_OK
    views = [read.json()["project"], listed.json()["projects"][0], updated.json()["project"]]
    for project in views:
        assert project["project_manager"]["id"] == owner_id
        assert [m["engineer"]["id"] for m in project["assigned_engineers"]] == [engineer_id]
