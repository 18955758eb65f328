#!/usr/bin/env python3
"""
Seed a small staffing scenario for local development:
- one admin, one project manager, one team lead and two engineers
- two projects managed by the project manager
- assignments that leave one engineer over-allocated

Run with:
    python scripts/seed_demo_data.py
"""

from __future__ import annotations

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import asyncio
from datetime import date

from sqlalchemy import select
from src.core.logging import setup_logging
from src.domain import User
from src.domain.services import AssignmentService, AuthService, ProjectService
from src.infrastructure.db import dispose_engine, get_session_factory
from src.infrastructure.db.models import AssignmentRole, Priority, ProjectStatus, UserModel

DEMO_PASSWORD = "demo-password"

DEMO_USERS = [
    {"name": "Ada Admin", "email": "admin@example.com", "role": "admin"},
    {"name": "Pat Manager", "email": "pm@example.com", "role": "project_manager"},
    {
        "name": "Lee Lead",
        "email": "lead@example.com",
        "role": "team_lead",
        "profile": {"skills": ["python", "architecture"], "experience": 9},
    },
    {
        "name": "Eve Engineer",
        "email": "eve@example.com",
        "role": "engineer",
        "profile": {"skills": ["python", "react"], "experience": 4},
    },
    {
        "name": "Max Engineer",
        "email": "max@example.com",
        "role": "engineer",
        "profile": {"skills": ["go", "kubernetes"], "experience": 6},
    },
]

DEMO_PROJECTS = [
    {
        "name": "Billing Platform",
        "description": "Rebuild invoicing and payment reconciliation.",
        "status": ProjectStatus.ACTIVE,
        "start_date": date(2026, 1, 1),
        "end_date": date(2026, 12, 31),
        "priority": Priority.HIGH,
        "technologies": ["python", "postgres"],
    },
    {
        "name": "Mobile Companion",
        "description": "Companion app for field engineers.",
        "status": ProjectStatus.PLANNING,
        "start_date": date(2026, 4, 1),
        "end_date": date(2026, 9, 30),
        "technologies": ["react", "go"],
    },
]


async def _ensure_user(session, entry: dict) -> UserModel:
    existing = await session.scalar(select(UserModel).where(UserModel.email == entry["email"]))
    if existing is not None:
        return existing
    return await AuthService(session).signup(
        name=entry["name"],
        email=entry["email"],
        password=DEMO_PASSWORD,
        role=entry["role"],
        profile=entry.get("profile"),
    )


async def seed_demo_data() -> None:
    setup_logging(json_output=False)
    session_factory = get_session_factory()

    async with session_factory() as session:
        users = {entry["email"]: await _ensure_user(session, entry) for entry in DEMO_USERS}
        manager = users["pm@example.com"]
        actor = User(user_id=manager.id, email=manager.email, role=manager.role.value)

        projects = ProjectService(session)
        billing = await projects.create(actor, DEMO_PROJECTS[0])
        mobile = await projects.create(actor, DEMO_PROJECTS[1])

        assignments = AssignmentService(session)
        eve = users["eve@example.com"]
        await assignments.create(
            actor,
            {
                "engineer_id": eve.id,
                "project_id": billing.id,
                "allocation_percentage": 70,
                "start_date": date(2026, 1, 1),
                "end_date": date(2026, 6, 30),
                "hours_allocated": 600,
            },
        )
        await assignments.create(
            actor,
            {
                "engineer_id": eve.id,
                "project_id": mobile.id,
                "allocation_percentage": 50,
                "start_date": date(2026, 4, 1),
                "end_date": date(2026, 9, 30),
                "hours_allocated": 400,
            },
        )
        await projects.assign_engineer(
            actor,
            billing.id,
            {
                "engineer_id": users["lead@example.com"].id,
                "role": AssignmentRole.LEAD,
                "allocation_percentage": 40,
                "start_date": date(2026, 1, 1),
                "end_date": date(2026, 12, 31),
            },
        )

    await dispose_engine()
    print(f"Seeded {len(DEMO_USERS)} users and {len(DEMO_PROJECTS)} projects")
    print(f"Every demo account uses the password '{DEMO_PASSWORD}'")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
