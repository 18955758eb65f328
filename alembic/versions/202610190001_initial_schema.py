"""Initial schema for users, projects and assignments

Revision ID: 202610190001
Revises:
Create Date: 2026-10-19 00:01:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "202610190001"
down_revision = None
branch_labels = None
depends_on = None

user_role_enum = sa.Enum(
    "admin",
    "project_manager",
    "team_lead",
    "engineer",
    "user",
    name="user_role",
)
availability_enum = sa.Enum(
    "available",
    "partially_available",
    "unavailable",
    name="availability",
)
project_status_enum = sa.Enum(
    "planning",
    "active",
    "on-hold",
    "completed",
    "cancelled",
    name="project_status",
)
priority_enum = sa.Enum("low", "medium", "high", "critical", name="project_priority")
assignment_role_enum = sa.Enum("lead", "developer", "tester", "analyst", name="assignment_role")
assignment_status_enum = sa.Enum(
    "active",
    "completed",
    "on-hold",
    "cancelled",
    name="assignment_status",
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role", user_role_enum, nullable=False, server_default="user"),
        sa.Column("skills", sa.JSON(), nullable=False),
        sa.Column("experience", sa.Float(), nullable=False, server_default="0"),
        sa.Column("hourly_rate", sa.Float(), nullable=False, server_default="0"),
        sa.Column("availability", availability_enum, nullable=False, server_default="available"),
        sa.Column("department", sa.String(length=100), nullable=False, server_default="Engineering"),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("location", sa.String(length=128), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "projects",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("status", project_status_enum, nullable=False, server_default="planning"),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("priority", priority_enum, nullable=False, server_default="medium"),
        sa.Column("budget", sa.Float(), nullable=False, server_default="0"),
        sa.Column("technologies", sa.JSON(), nullable=False),
        sa.Column(
            "project_manager_id",
            sa.String(length=36),
            sa.ForeignKey("users.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        *_timestamps(),
    )
    op.create_index("ix_projects_status", "projects", ["status"])
    op.create_index("ix_projects_project_manager_id", "projects", ["project_manager_id"])

    op.create_table(
        "assignments",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "engineer_id",
            sa.String(length=36),
            sa.ForeignKey("users.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "project_id",
            sa.String(length=36),
            sa.ForeignKey("projects.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("role", assignment_role_enum, nullable=False, server_default="developer"),
        sa.Column("allocation_percentage", sa.Float(), nullable=False, server_default="100"),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("status", assignment_status_enum, nullable=False, server_default="active"),
        sa.Column("hours_allocated", sa.Float(), nullable=False, server_default="0"),
        sa.Column("hours_worked", sa.Float(), nullable=False, server_default="0"),
        sa.Column("hourly_rate", sa.Float(), nullable=False, server_default="0"),
        sa.Column("notes", sa.String(length=500), nullable=True),
        sa.Column(
            "assigned_by_id",
            sa.String(length=36),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(),
        # One assignment per (engineer, project); duplicates surface as 409
        sa.UniqueConstraint("engineer_id", "project_id", name="uq_assignment_engineer_project"),
    )
    op.create_index("ix_assignments_engineer_id", "assignments", ["engineer_id"])
    op.create_index("ix_assignments_project_id", "assignments", ["project_id"])
    op.create_index("ix_assignments_status", "assignments", ["status"])


def downgrade() -> None:
    op.drop_index("ix_assignments_status", "assignments")
    op.drop_index("ix_assignments_project_id", "assignments")
    op.drop_index("ix_assignments_engineer_id", "assignments")
    op.drop_table("assignments")
    op.drop_index("ix_projects_project_manager_id", "projects")
    op.drop_index("ix_projects_status", "projects")
    op.drop_table("projects")
    op.drop_index("ix_users_role", "users")
    op.drop_index("ix_users_email", "users")
    op.drop_table("users")

    bind = op.get_bind()
    for enum in (
        assignment_status_enum,
        assignment_role_enum,
        priority_enum,
        project_status_enum,
        availability_enum,
        user_role_enum,
    ):
        enum.drop(bind, checkfirst=True)
