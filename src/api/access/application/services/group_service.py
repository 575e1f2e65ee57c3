"""Group application service for the access bounded context.

Orchestrates group membership changes. Every mutation is a single
transaction that locks the group row, lets the Group aggregate enforce its
invariants, persists the result and, once committed, invalidates the
cached access decisions the change affects.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from access.application.observability import (
    DefaultGroupServiceProbe,
    GroupServiceProbe,
)
from access.domain.aggregates import Group, Invitation
from access.domain.aggregates.group import DEFAULT_MAX_MEMBERS
from access.domain.events import (
    DomainEvent,
    GroupDeleted,
    InvitationAccepted,
    MemberAdded,
    MemberRemoved,
    MemberRoleChanged,
)
from access.domain.exceptions import ConflictError, ForbiddenError, NotFoundError
from access.domain.role_evaluator import has_permission, permission_name
from access.domain.value_objects import (
    Action,
    GroupId,
    GroupRole,
    InvitationId,
    PrincipalId,
    ResourceId,
    ResourceType,
    SystemRole,
)
from access.ports.cache import AccessCache, access_decision_key
from access.ports.repositories import (
    IGroupRepository,
    IPrincipalRepository,
    IResourceRepository,
)

SEARCH_LIMIT = 20


@dataclass
class _Invalidation:
    """Cache keys a committed group mutation has made stale."""

    resource_ids: list[ResourceId] = field(default_factory=list)
    principal_ids: set[PrincipalId] = field(default_factory=set)

    def keys(self) -> list[str]:
        return [
            access_decision_key(resource_id, principal_id)
            for resource_id in self.resource_ids
            for principal_id in sorted(self.principal_ids, key=lambda p: p.value)
        ]


def _affected_principals(events: list[DomainEvent]) -> set[PrincipalId]:
    """Principals whose access changes because of the given events."""
    affected: set[PrincipalId] = set()
    for event in events:
        if isinstance(event, (MemberAdded, MemberRemoved, MemberRoleChanged)):
            affected.add(PrincipalId(event.principal_id))
        elif isinstance(event, InvitationAccepted):
            affected.add(PrincipalId(event.principal_id))
        elif isinstance(event, GroupDeleted):
            affected.update(PrincipalId(m.principal_id) for m in event.members)
    return affected


class GroupService:
    """Application service for group ("team") management.

    Group role checks go through the role evaluator; the owner invariant,
    capacity and duplicate checks live in the Group aggregate.
    """

    def __init__(
        self,
        session: AsyncSession,
        group_repository: IGroupRepository,
        principal_repository: IPrincipalRepository,
        resource_repository: IResourceRepository,
        cache: AccessCache,
        probe: GroupServiceProbe | None = None,
        default_max_members: int = DEFAULT_MAX_MEMBERS,
    ):
        """Initialize GroupService with dependencies.

        Args:
            session: Database session for transaction management
            group_repository: Repository for group persistence
            principal_repository: Lookup of principals and their system roles
            resource_repository: Lookup of resources attached to groups
            cache: Read cache whose stale entries must be invalidated
            probe: Optional domain probe for observability
            default_max_members: Capacity used when create_group gets none
        """
        self._session = session
        self._group_repository = group_repository
        self._principal_repository = principal_repository
        self._resource_repository = resource_repository
        self._cache = cache
        self._probe = probe or DefaultGroupServiceProbe()
        self._default_max_members = default_max_members

    async def create_group(
        self,
        name: str,
        creator_id: PrincipalId,
        description: str | None = None,
        max_members: int | None = None,
        is_public: bool = False,
    ) -> Group:
        """Create a new group with the creator as its only OWNER.

        The group and the owner membership are written in one transaction.

        Raises:
            ValidationError: If the name is empty or max_members < 2
        """
        capacity = max_members if max_members is not None else self._default_max_members
        try:
            group = Group.create(
                name=name,
                creator_id=creator_id,
                description=description,
                max_members=capacity,
                is_public=is_public,
            )

            async with self._session.begin():
                await self._group_repository.save(group)

            group.collect_events()
            self._probe.group_created(
                group_id=group.id.value,
                name=group.name,
                creator_id=creator_id.value,
                max_members=group.max_members,
            )
            return group

        except Exception as e:
            self._probe.group_creation_failed(
                name=name,
                creator_id=creator_id.value,
                error=str(e),
            )
            raise

    async def invite_member(
        self,
        group_id: GroupId,
        inviter_id: PrincipalId,
        target_identity: str,
        role: GroupRole,
    ) -> Invitation | None:
        """Invite a principal, identified by e-mail, into a group.

        If the identity belongs to a known principal, the membership is
        created immediately. Otherwise a pending invitation holds the seat
        until that identity first authenticates.

        Returns:
            The pending Invitation, or None if a membership was created

        Raises:
            NotFoundError: If the group does not exist
            ForbiddenError: If the inviter may not manage group members
            ConflictError: If the group is full, the target is already a
                member, or an invitation is already pending
            ValidationError: If the identity is blank
        """
        invitation: Invitation | None = None
        async with self._session.begin():
            group = await self._load_for_update(group_id)
            await self._require_permission(
                group, inviter_id, ResourceType.GROUP_MEMBERS, Action.MANAGE, "invite_member"
            )

            target = await self._principal_repository.get_by_email(target_identity)
            try:
                if target is not None:
                    group.add_member(target.id, role)
                else:
                    invitation = group.invite(target_identity, role, inviter_id)
            except ConflictError as e:
                self._probe.invariant_rejected("invite_member", group_id.value, e.invariant)
                raise

            stale = await self._persist(group)

        await self._invalidate(stale)

        if invitation is not None:
            self._probe.invitation_held(
                group_id=group_id.value,
                invitation_id=invitation.id.value,
                role=role.value,
                inviter_id=inviter_id.value,
            )
        elif target is not None:
            self._probe.member_added(
                group_id=group_id.value,
                principal_id=target.id.value,
                role=role.value,
                inviter_id=inviter_id.value,
            )
        return invitation

    async def accept_pending_invitations(
        self, principal_id: PrincipalId, identity: str
    ) -> list[Group]:
        """Bind every invitation pending for an identity to its new principal.

        Called when the identity authenticates for the first time. Groups the
        principal already belongs to just drop the invitation.

        Returns:
            The groups the principal was added to
        """
        joined: list[Group] = []
        stale = _Invalidation()
        async with self._session.begin():
            groups = await self._group_repository.list_with_invitation_for(
                identity, for_update=True
            )
            for group in groups:
                invitation = group.get_invitation(identity)
                if invitation is None:
                    continue
                if group.accept_invitation(invitation.id, principal_id):
                    joined.append(group)
                group_stale = await self._persist(group)
                stale.resource_ids.extend(group_stale.resource_ids)
                stale.principal_ids.update(group_stale.principal_ids)

        await self._invalidate(stale)
        if joined:
            self._probe.invitations_accepted(
                principal_id=principal_id.value,
                group_ids=[g.id.value for g in joined],
            )
        return joined

    async def revoke_invitation(
        self,
        group_id: GroupId,
        invitation_id: InvitationId,
        requester_id: PrincipalId,
    ) -> None:
        """Withdraw a pending invitation, freeing its seat.

        Raises:
            NotFoundError: If the group or the invitation does not exist
            ForbiddenError: If the requester may not manage group members
        """
        async with self._session.begin():
            group = await self._load_for_update(group_id)
            await self._require_permission(
                group, requester_id, ResourceType.GROUP_MEMBERS, Action.MANAGE, "revoke_invitation"
            )
            group.revoke_invitation(invitation_id)
            await self._persist(group)

        self._probe.invitation_revoked(
            group_id=group_id.value,
            invitation_id=invitation_id.value,
            requester_id=requester_id.value,
        )

    async def update_member_role(
        self,
        group_id: GroupId,
        member_id: PrincipalId,
        new_role: GroupRole,
        updater_id: PrincipalId,
    ) -> None:
        """Change a member's role.

        Raises:
            NotFoundError: If the group or the member does not exist
            ForbiddenError: If the updater may not manage group members
            ConflictError: If this would leave the group without an owner
        """
        async with self._session.begin():
            group = await self._load_for_update(group_id)
            await self._require_permission(
                group, updater_id, ResourceType.GROUP_MEMBERS, Action.MANAGE, "update_member_role"
            )
            try:
                group.update_member_role(member_id, new_role)
            except ConflictError as e:
                self._probe.invariant_rejected("update_member_role", group_id.value, e.invariant)
                raise
            stale = await self._persist(group)

        await self._invalidate(stale)
        self._probe.member_role_changed(
            group_id=group_id.value,
            principal_id=member_id.value,
            new_role=new_role.value,
            updater_id=updater_id.value,
        )

    async def remove_member(
        self,
        group_id: GroupId,
        member_id: PrincipalId,
        remover_id: PrincipalId,
    ) -> None:
        """Remove a member from a group.

        Raises:
            NotFoundError: If the group or the member does not exist
            ForbiddenError: If the remover may not manage group members
            ConflictError: If the member is the group's last owner
        """
        async with self._session.begin():
            group = await self._load_for_update(group_id)
            await self._require_permission(
                group, remover_id, ResourceType.GROUP_MEMBERS, Action.MANAGE, "remove_member"
            )
            try:
                group.remove_member(member_id)
            except ConflictError as e:
                self._probe.invariant_rejected("remove_member", group_id.value, e.invariant)
                raise
            stale = await self._persist(group)

        await self._invalidate(stale)
        self._probe.member_removed(
            group_id=group_id.value,
            principal_id=member_id.value,
            remover_id=remover_id.value,
        )

    async def leave_group(self, group_id: GroupId, principal_id: PrincipalId) -> None:
        """Remove the calling principal from a group.

        Raises:
            NotFoundError: If the group does not exist or the principal is not a member
            ConflictError: If the principal is the last owner; ownership must
                be transferred first
        """
        async with self._session.begin():
            group = await self._load_for_update(group_id)
            try:
                group.leave(principal_id)
            except ConflictError as e:
                self._probe.invariant_rejected("leave_group", group_id.value, e.invariant)
                raise
            stale = await self._persist(group)

        await self._invalidate(stale)
        self._probe.member_removed(
            group_id=group_id.value,
            principal_id=principal_id.value,
            remover_id=principal_id.value,
        )

    async def update_group(
        self,
        group_id: GroupId,
        updater_id: PrincipalId,
        name: str | None = None,
        description: str | None = None,
        max_members: int | None = None,
        is_public: bool | None = None,
    ) -> Group:
        """Update group metadata. Arguments left as None are unchanged.

        Raises:
            NotFoundError: If the group does not exist
            ForbiddenError: If the updater may not update group settings
            ValidationError: If the name or capacity is invalid
            ConflictError: If the capacity would drop below the seats taken
        """
        async with self._session.begin():
            group = await self._load_for_update(group_id)
            await self._require_permission(
                group, updater_id, ResourceType.GROUP_SETTINGS, Action.UPDATE, "update_group"
            )
            group.update_details(
                name=name,
                description=description,
                max_members=max_members,
                is_public=is_public,
            )
            await self._persist(group)

        self._probe.group_updated(group_id=group_id.value, updater_id=updater_id.value)
        return group

    async def delete_group(self, group_id: GroupId, requester_id: PrincipalId) -> None:
        """Delete a group.

        Only the group's creator or a SUPER_ADMIN may delete it. Memberships
        and invitations are deleted with it; resources that referenced the
        group are detached, not deleted.

        Raises:
            NotFoundError: If the group does not exist
            ForbiddenError: If the requester is neither creator nor SUPER_ADMIN
        """
        async with self._session.begin():
            group = await self._load_for_update(group_id)

            if group.created_by != requester_id:
                principal = await self._principal_repository.get_by_id(requester_id)
                if principal is None or principal.system_role != SystemRole.SUPER_ADMIN:
                    check = "group:delete"
                    self._probe.permission_denied(
                        "delete_group", group_id.value, requester_id.value, check
                    )
                    raise ForbiddenError(
                        check, "Only the group creator can delete the group"
                    )

            resource_ids = await self._resource_repository.list_ids_by_group(group_id)
            group.mark_for_deletion()
            stale = _Invalidation(
                resource_ids=resource_ids,
                principal_ids=_affected_principals(group.collect_events()),
            )
            await self._resource_repository.detach_group(group_id)
            await self._group_repository.delete(group)

        await self._invalidate(stale)
        self._probe.group_deleted(
            group_id=group_id.value,
            requester_id=requester_id.value,
            detached_resources=len(resource_ids),
        )

    async def get_group(self, group_id: GroupId, principal_id: PrincipalId) -> Group:
        """Get a group visible to the principal.

        Members see their groups, anyone sees public groups, and system
        administrators see every group. Otherwise the group is reported as
        not found so that private groups do not leak.

        Raises:
            NotFoundError: If the group does not exist or is not visible
        """
        group = await self._group_repository.get_by_id(group_id)
        if group is None:
            raise NotFoundError("group", group_id.value)

        if group.is_public or group.has_member(principal_id):
            return group

        principal = await self._principal_repository.get_by_id(principal_id)
        if principal is not None and principal.system_role.is_administrator():
            return group

        raise NotFoundError("group", group_id.value)

    async def get_member_role(
        self, group_id: GroupId, principal_id: PrincipalId
    ) -> GroupRole | None:
        """Get a principal's role in a group, or None if not a member."""
        return await self._group_repository.get_member_role(group_id, principal_id)

    async def list_groups_for_principal(self, principal_id: PrincipalId) -> list[Group]:
        """List the groups a principal belongs to."""
        return await self._group_repository.list_for_principal(principal_id)

    async def list_public_groups(self, limit: int = 20, offset: int = 0) -> list[Group]:
        """List public groups, newest first."""
        return await self._group_repository.list_public(
            limit=max(1, min(limit, 100)), offset=max(0, offset)
        )

    async def search_groups(
        self, query: str, principal_id: PrincipalId | None = None
    ) -> list[Group]:
        """Search public groups and the principal's own groups by name or description."""
        query = query.strip()
        if not query:
            return []
        return await self._group_repository.search(
            query=query, principal_id=principal_id, limit=SEARCH_LIMIT
        )

    async def _load_for_update(self, group_id: GroupId) -> Group:
        group = await self._group_repository.get_by_id(group_id, for_update=True)
        if group is None:
            raise NotFoundError("group", group_id.value)
        return group

    async def _require_permission(
        self,
        group: Group,
        principal_id: PrincipalId,
        resource_type: ResourceType,
        action: Action,
        operation: str,
    ) -> None:
        """Check the principal's group role, falling back to their system role."""
        role = group.get_member_role(principal_id)
        if role is not None and has_permission(role, resource_type, action):
            return

        principal = await self._principal_repository.get_by_id(principal_id)
        if principal is not None and has_permission(
            principal.system_role, resource_type, action
        ):
            return

        check = permission_name(resource_type, action)
        self._probe.permission_denied(operation, group.id.value, principal_id.value, check)
        raise ForbiddenError(
            check,
            f"Principal {principal_id} lacks {check} permission on group {group.id}",
        )

    async def _persist(self, group: Group) -> _Invalidation:
        """Save the group and work out which cached decisions it made stale.

        Must run inside the mutation's transaction.
        """
        await self._group_repository.save(group)
        principals = _affected_principals(group.collect_events())
        if not principals:
            return _Invalidation()
        resource_ids = await self._resource_repository.list_ids_by_group(group.id)
        return _Invalidation(resource_ids=resource_ids, principal_ids=principals)

    async def _invalidate(self, stale: _Invalidation) -> None:
        for key in stale.keys():
            await self._cache.invalidate(key)
