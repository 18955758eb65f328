"""Domain services."""

from src.domain.services.assignments import AssignmentService, ResourceAllocation
from src.domain.services.auth_service import AuthService
from src.domain.services.dashboard import (
    DashboardService,
    DashboardStats,
    EngineerAnalytics,
    ProjectAnalytics,
)
from src.domain.services.projects import ProjectService, ProjectTeam
from src.domain.services.users import UserDashboard, UserService

__all__ = [
    "AssignmentService",
    "AuthService",
    "DashboardService",
    "DashboardStats",
    "EngineerAnalytics",
    "ProjectAnalytics",
    "ProjectService",
    "ProjectTeam",
    "ResourceAllocation",
    "UserDashboard",
    "UserService",
]
