"""Declarative access policy.

Each action names its own allow-list of roles. Ownership rules let an actor
act on one specific resource instance without holding any of those roles:
a user on their own record, a project's manager on that project, an engineer
on the hours of their own assignment.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from src.core.auth import Role
from src.domain.errors import ForbiddenError
from src.domain.models import User

MANAGER_ROLES: frozenset[str] = frozenset({Role.ADMIN.value, Role.PROJECT_MANAGER.value})
LEAD_ROLES: frozenset[str] = MANAGER_ROLES | {Role.TEAM_LEAD.value}
ADMIN_ONLY: frozenset[str] = frozenset({Role.ADMIN.value})

# Identities that can hold assignments and show up in capacity reports
ENGINEER_ROLES: tuple[str, ...] = (Role.ENGINEER.value, Role.TEAM_LEAD.value)


class Action(str, Enum):
    PROJECT_CREATE = "project.create"
    PROJECT_MANAGE = "project.manage"
    ASSIGNMENT_CREATE = "assignment.create"
    ASSIGNMENT_UPDATE = "assignment.update"
    ASSIGNMENT_DELETE = "assignment.delete"
    ASSIGNMENT_LOG_HOURS = "assignment.log_hours"
    USER_LIST = "user.list"
    USER_READ = "user.read"
    USER_UPDATE = "user.update"
    USER_DELETE = "user.delete"
    USER_CHANGE_ROLE = "user.change_role"
    USER_DASHBOARD = "user.dashboard"
    DASHBOARD_VIEW = "dashboard.view"


OwnershipCheck = Callable[[User, Any], bool]


@dataclass(frozen=True, slots=True)
class Rule:
    roles: frozenset[str]
    owner: OwnershipCheck | None = None
    denial: str = "You don't have permission to perform this action"


def _resource_id(resource: Any) -> Any:
    if isinstance(resource, str):
        return resource
    return getattr(resource, "id", None)


def is_self(actor: User, target: Any) -> bool:
    return _resource_id(target) == actor.user_id


def manages_project(actor: User, project: Any) -> bool:
    return getattr(project, "project_manager_id", None) == actor.user_id


def owns_assignment(actor: User, assignment: Any) -> bool:
    return getattr(assignment, "engineer_id", None) == actor.user_id


_MANAGE_PROJECT = "You don't have permission to manage this project"
_MANAGE_USER = "You don't have permission to manage this user"

POLICY: dict[Action, Rule] = {
    Action.PROJECT_CREATE: Rule(MANAGER_ROLES),
    Action.PROJECT_MANAGE: Rule(ADMIN_ONLY, owner=manages_project, denial=_MANAGE_PROJECT),
    Action.ASSIGNMENT_CREATE: Rule(LEAD_ROLES),
    Action.ASSIGNMENT_UPDATE: Rule(LEAD_ROLES),
    Action.ASSIGNMENT_DELETE: Rule(LEAD_ROLES),
    Action.ASSIGNMENT_LOG_HOURS: Rule(
        LEAD_ROLES,
        owner=owns_assignment,
        denial="Only the assigned engineer or a team lead can log hours",
    ),
    Action.USER_LIST: Rule(MANAGER_ROLES),
    Action.USER_READ: Rule(MANAGER_ROLES, owner=is_self, denial=_MANAGE_USER),
    Action.USER_UPDATE: Rule(ADMIN_ONLY, owner=is_self, denial=_MANAGE_USER),
    Action.USER_DELETE: Rule(ADMIN_ONLY, owner=is_self, denial=_MANAGE_USER),
    Action.USER_CHANGE_ROLE: Rule(ADMIN_ONLY, denial="Only admins can change roles"),
    Action.USER_DASHBOARD: Rule(MANAGER_ROLES, owner=is_self, denial=_MANAGE_USER),
    Action.DASHBOARD_VIEW: Rule(MANAGER_ROLES),
}


def can(actor: User, action: Action, resource: Any = None) -> bool:
    """Return whether ``actor`` may perform ``action`` on ``resource``."""
    rule = POLICY[action]
    if actor.role in rule.roles:
        return True
    return rule.owner is not None and resource is not None and rule.owner(actor, resource)


def authorize(actor: User, action: Action, resource: Any = None) -> None:
    """Raise ``ForbiddenError`` unless :func:`can` allows the action."""
    if not can(actor, action, resource):
        raise ForbiddenError(POLICY[action].denial)
