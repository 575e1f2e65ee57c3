"""Static permission catalog mapping roles to the grants they hold.

The catalog is deployment-time data. It is exposed through read-only
mappings so nothing can alter it at runtime.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from access.domain.value_objects import (
    Action,
    GroupRole,
    PermissionGrant,
    ResourceType,
    SystemRole,
)


def _crud(resource_type: ResourceType, *actions: Action) -> tuple[PermissionGrant, ...]:
    return tuple(PermissionGrant(resource_type, action) for action in actions)


_C, _R, _U, _D = Action.CREATE, Action.READ, Action.UPDATE, Action.DELETE

SYSTEM_ROLE_GRANTS: Mapping[SystemRole, tuple[PermissionGrant, ...]] = MappingProxyType(
    {
        SystemRole.USER: (
            *_crud(ResourceType.PROJECTS, _C, _R, _U, _D),
            *_crud(ResourceType.PROFILE, _R, _U),
            *_crud(ResourceType.SETTINGS, _R, _U),
        ),
        SystemRole.ADMIN: (
            PermissionGrant(ResourceType.PROJECTS, Action.MANAGE),
            *_crud(ResourceType.USERS, _R, _U),
            *_crud(ResourceType.GROUPS, _C, _R, _U, _D),
            *_crud(ResourceType.PROFILE, _R, _U),
            *_crud(ResourceType.SETTINGS, _R, _U),
            *_crud(ResourceType.BILLING, _R, _U),
        ),
        SystemRole.SUPER_ADMIN: (PermissionGrant(ResourceType.ANY, Action.ANY),),
    }
)

GROUP_ROLE_GRANTS: Mapping[GroupRole, tuple[PermissionGrant, ...]] = MappingProxyType(
    {
        GroupRole.OWNER: (
            PermissionGrant(ResourceType.GROUP_PROJECTS, Action.MANAGE),
            PermissionGrant(ResourceType.GROUP_MEMBERS, Action.MANAGE),
            PermissionGrant(ResourceType.GROUP_SETTINGS, Action.MANAGE),
        ),
        GroupRole.ADMIN: (
            *_crud(ResourceType.GROUP_PROJECTS, _C, _R, _U, _D),
            PermissionGrant(ResourceType.GROUP_MEMBERS, Action.MANAGE),
            PermissionGrant(ResourceType.GROUP_SETTINGS, Action.READ),
        ),
        GroupRole.MEMBER: (
            *_crud(ResourceType.GROUP_PROJECTS, _C, _R, _U),
            PermissionGrant(ResourceType.GROUP_MEMBERS, Action.READ),
        ),
        GroupRole.VIEWER: (
            PermissionGrant(ResourceType.GROUP_PROJECTS, Action.READ),
            PermissionGrant(ResourceType.GROUP_MEMBERS, Action.READ),
        ),
    }
)


def grants_for(role: SystemRole | GroupRole) -> tuple[PermissionGrant, ...]:
    """Return the grants held by a role.

    Dispatches on the enum type rather than the value: SystemRole.ADMIN and
    GroupRole.ADMIN compare equal as strings but hold different grants.

    Args:
        role: A system-wide or group-scoped role

    Returns:
        The role's grants, or an empty tuple for an unknown role
    """
    if isinstance(role, SystemRole):
        return SYSTEM_ROLE_GRANTS.get(role, ())
    if isinstance(role, GroupRole):
        return GROUP_ROLE_GRANTS.get(role, ())
    return ()
