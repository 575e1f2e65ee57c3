"""Role evaluation against the permission catalog.

Pure functions with no IO, safe to call from any component.
"""

from __future__ import annotations

from typing import Callable, Iterable

from access.domain.permission_catalog import grants_for
from access.domain.value_objects import (
    Action,
    GroupRole,
    PermissionGrant,
    ResourceType,
    SystemRole,
)

Role = SystemRole | GroupRole


def has_permission(role: Role, resource_type: ResourceType, action: Action) -> bool:
    """Check if a role may perform an action on a resource type.

    Args:
        role: The role to evaluate
        resource_type: The resource type being acted on
        action: The requested action

    Returns:
        True if any grant of the role covers the request
    """
    return any(grant.covers(resource_type, action) for grant in grants_for(role))


def _fold(
    combinator: Callable[[Iterable[bool]], bool],
) -> Callable[[Role, Iterable[PermissionGrant]], bool]:
    def evaluate(role: Role, requested: Iterable[PermissionGrant]) -> bool:
        return combinator(
            has_permission(role, grant.resource_type, grant.action)
            for grant in requested
        )

    return evaluate


has_any_permission = _fold(any)
has_any_permission.__doc__ = "Check if the role holds at least one requested grant."

has_all_permissions = _fold(all)
has_all_permissions.__doc__ = "Check if the role holds every requested grant."


def role_permissions(role: Role) -> list[PermissionGrant]:
    """Return the catalog entries for a role."""
    return list(grants_for(role))


def permission_name(resource_type: ResourceType, action: Action) -> str:
    """Format a permission for error messages and logs (e.g. "group_members:manage")."""
    return f"{resource_type.value}:{action.value}"
