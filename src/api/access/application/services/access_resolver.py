"""Access resolution for protected resources.

Combines ownership, system role, direct shares and group membership into a
single AccessDecision with strict precedence:

1. System ADMIN / SUPER_ADMIN
2. Resource owner
3. Live direct share
4. Membership in the resource's group
5. No grant

Decisions are cached per (resource, principal). Mutations elsewhere in the
context invalidate the keys they affect.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Mapping

from access.application.observability import (
    AccessResolverProbe,
    DefaultAccessResolverProbe,
)
from access.application.value_objects import AccessDecision
from access.domain.value_objects import (
    AccessLevel,
    AccessReason,
    Action,
    GroupId,
    GroupRole,
    PrincipalId,
    ResourceId,
)
from access.ports.cache import AccessCache, access_decision_key
from access.ports.repositories import (
    IGroupRepository,
    IPrincipalRepository,
    IResourceRepository,
    IShareRepository,
)

MINIMUM_ACCESS_LEVEL: Mapping[Action, AccessLevel] = MappingProxyType(
    {
        Action.READ: AccessLevel.VIEW,
        Action.CREATE: AccessLevel.EDIT,
        Action.UPDATE: AccessLevel.EDIT,
        Action.DELETE: AccessLevel.ADMIN,
        Action.MANAGE: AccessLevel.ADMIN,
        Action.ANY: AccessLevel.ADMIN,
    }
)

GROUP_ROLE_ACCESS: Mapping[GroupRole, AccessLevel] = MappingProxyType(
    {
        GroupRole.OWNER: AccessLevel.ADMIN,
        GroupRole.ADMIN: AccessLevel.ADMIN,
        GroupRole.MEMBER: AccessLevel.EDIT,
        GroupRole.VIEWER: AccessLevel.VIEW,
    }
)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AccessResolver:
    """Resolves a principal's effective access to a resource."""

    def __init__(
        self,
        resource_repository: IResourceRepository,
        share_repository: IShareRepository,
        group_repository: IGroupRepository,
        principal_repository: IPrincipalRepository,
        cache: AccessCache,
        probe: AccessResolverProbe | None = None,
        clock: Callable[[], datetime] | None = None,
        cache_ttl: float = 60.0,
    ):
        self._resource_repository = resource_repository
        self._share_repository = share_repository
        self._group_repository = group_repository
        self._principal_repository = principal_repository
        self._cache = cache
        self._probe = probe or DefaultAccessResolverProbe()
        self._clock = clock or _utcnow
        self._cache_ttl = cache_ttl

    async def resolve_access(
        self, resource_id: ResourceId, principal_id: PrincipalId
    ) -> AccessDecision:
        """Resolve the principal's access to a resource.

        A missing resource is denied with reason NOT_FOUND and is not cached.

        Args:
            resource_id: The resource being accessed
            principal_id: The principal requesting access

        Returns:
            The AccessDecision, never a bare boolean
        """
        key = access_decision_key(resource_id, principal_id)
        cached = await self._cache.get(key)
        if cached is not None:
            decision = AccessDecision.from_dict(cached)
            self._record(resource_id, principal_id, decision, cached=True)
            return decision

        decision, ttl = await self._evaluate(resource_id, principal_id)
        if ttl > 0:
            await self._cache.set(key, decision.to_dict(), ttl)

        self._record(resource_id, principal_id, decision, cached=False)
        return decision

    async def can_perform(
        self, resource_id: ResourceId, principal_id: PrincipalId, action: Action
    ) -> bool:
        """Check if the principal's access level is enough for an action.

        read needs VIEW, create and update need EDIT, delete and manage
        need ADMIN.
        """
        required = MINIMUM_ACCESS_LEVEL[action]
        decision = await self.resolve_access(resource_id, principal_id)
        permitted = decision.permits(required)

        self._probe.action_checked(
            resource_id=resource_id.value,
            principal_id=principal_id.value,
            action=action.value,
            required_level=required.value,
            permitted=permitted,
        )
        return permitted

    async def resolve_many(
        self, resource_ids: Iterable[ResourceId], principal_id: PrincipalId
    ) -> dict[ResourceId, AccessDecision]:
        """Resolve access to several resources for one principal."""
        decisions: dict[ResourceId, AccessDecision] = {}
        for resource_id in resource_ids:
            if resource_id not in decisions:
                decisions[resource_id] = await self.resolve_access(
                    resource_id, principal_id
                )
        return decisions

    async def can_access_group(
        self, group_id: GroupId, principal_id: PrincipalId
    ) -> bool:
        """Check if a principal may see a group.

        Members see their groups, anyone sees public groups, and system
        administrators see every group.
        """
        group = await self._group_repository.get_by_id(group_id)
        if group is None:
            return False
        if group.is_public or group.has_member(principal_id):
            return True

        principal = await self._principal_repository.get_by_id(principal_id)
        return principal is not None and principal.system_role.is_administrator()

    async def _evaluate(
        self, resource_id: ResourceId, principal_id: PrincipalId
    ) -> tuple[AccessDecision, float]:
        """Compute a decision and how long it may be cached."""
        resource = await self._resource_repository.get_by_id(resource_id)
        if resource is None:
            return AccessDecision.deny(AccessReason.NOT_FOUND), 0.0

        is_owner = resource.is_owned_by(principal_id)

        principal = await self._principal_repository.get_by_id(principal_id)
        if principal is not None and principal.system_role.is_administrator():
            decision = AccessDecision.grant(
                AccessLevel.ADMIN, AccessReason.SYSTEM_ROLE, is_owner=is_owner
            )
            return decision, self._cache_ttl

        if is_owner:
            decision = AccessDecision.grant(
                AccessLevel.ADMIN, AccessReason.OWNER, is_owner=True
            )
            return decision, self._cache_ttl

        now = self._clock()
        share = await self._share_repository.get_live(resource_id, principal_id, now)
        if share is not None:
            ttl = self._cache_ttl
            remaining = share.seconds_until_expiry(now)
            if remaining is not None:
                ttl = min(ttl, remaining)
            return AccessDecision.grant(share.access_level, AccessReason.SHARE), ttl

        if resource.group_id is not None:
            role = await self._group_repository.get_member_role(
                resource.group_id, principal_id
            )
            if role is not None:
                decision = AccessDecision.grant(
                    GROUP_ROLE_ACCESS[role], AccessReason.GROUP_ROLE
                )
                return decision, self._cache_ttl

        return AccessDecision.deny(AccessReason.NO_GRANT), self._cache_ttl

    def _record(
        self,
        resource_id: ResourceId,
        principal_id: PrincipalId,
        decision: AccessDecision,
        cached: bool,
    ) -> None:
        self._probe.access_resolved(
            resource_id=resource_id.value,
            principal_id=principal_id.value,
            allowed=decision.allowed,
            access_level=decision.access_level.value if decision.access_level else None,
            reason=decision.reason.value,
            cached=cached,
        )
