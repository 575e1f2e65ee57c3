"""PostgreSQL implementation of IGroupRepository.

Groups, their memberships and their pending invitations are stored in
three tables. The repository reconstitutes complete Group aggregates and,
on save, brings the membership and invitation rows in line with the
aggregate.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from datetime import UTC, datetime

from sqlalchemy import Select, delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from access.domain.aggregates import Group, Invitation
from access.domain.value_objects import (
    GroupId,
    GroupMember,
    GroupRole,
    InvitationId,
    PrincipalId,
)
from access.infrastructure.models import (
    GroupInvitationModel,
    GroupMembershipModel,
    GroupModel,
)
from access.infrastructure.observability import (
    DefaultGroupRepositoryProbe,
    GroupRepositoryProbe,
)
from access.ports.repositories import IGroupRepository


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class GroupRepository(IGroupRepository):
    """Repository for Group aggregates backed by PostgreSQL.

    Never commits: the calling service owns the transaction. Passing
    for_update=True locks the group rows until that transaction ends.
    """

    def __init__(
        self,
        session: AsyncSession,
        probe: GroupRepositoryProbe | None = None,
    ) -> None:
        """Initialize repository with database session.

        Args:
            session: AsyncSession shared with the calling service
            probe: Optional domain probe for observability
        """
        self._session = session
        self._probe = probe or DefaultGroupRepositoryProbe()

    async def save(self, group: Group) -> None:
        """Persist group metadata, memberships and invitations.

        Args:
            group: The Group aggregate to persist
        """
        stmt = select(GroupModel).where(GroupModel.id == group.id.value)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model:
            model.name = group.name
            model.description = group.description
            model.max_members = group.max_members
            model.is_public = group.is_public
        else:
            model = GroupModel(
                id=group.id.value,
                name=group.name,
                description=group.description,
                max_members=group.max_members,
                is_public=group.is_public,
                created_by=group.created_by.value,
                created_at=group.created_at or datetime.now(UTC),
            )
            self._session.add(model)

        # The group row must exist before membership rows reference it
        await self._session.flush()

        await self._sync_members(group)
        await self._sync_invitations(group)
        await self._session.flush()

        self._probe.group_saved(
            group.id.value, len(group.members), len(group.invitations)
        )

    async def get_by_id(
        self, group_id: GroupId, for_update: bool = False
    ) -> Group | None:
        """Fetch a group with its memberships and invitations.

        Args:
            group_id: The unique identifier of the group
            for_update: Lock the group row (SELECT ... FOR UPDATE)

        Returns:
            The Group aggregate, or None if not found
        """
        stmt = select(GroupModel).where(GroupModel.id == group_id.value)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            self._probe.group_not_found(group_id.value)
            return None

        groups = await self._hydrate([model])
        self._probe.group_retrieved(group_id.value, len(groups[0].members))
        return groups[0]

    async def delete(self, group: Group) -> bool:
        """Delete a group with its memberships and invitations.

        Args:
            group: The Group aggregate to delete

        Returns:
            True if deleted, False if not found
        """
        stmt = select(GroupModel).where(GroupModel.id == group.id.value)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            self._probe.group_not_found(group.id.value)
            return False

        await self._session.execute(
            delete(GroupMembershipModel).where(
                GroupMembershipModel.group_id == group.id.value
            )
        )
        await self._session.execute(
            delete(GroupInvitationModel).where(
                GroupInvitationModel.group_id == group.id.value
            )
        )
        await self._session.delete(model)
        await self._session.flush()

        self._probe.group_deleted(group.id.value)
        return True

    async def get_member_role(
        self, group_id: GroupId, principal_id: PrincipalId
    ) -> GroupRole | None:
        """Look up one principal's role without hydrating the whole group."""
        stmt = select(GroupMembershipModel.role).where(
            GroupMembershipModel.group_id == group_id.value,
            GroupMembershipModel.principal_id == principal_id.value,
        )
        result = await self._session.execute(stmt)
        role = result.scalar_one_or_none()
        return GroupRole(role) if role is not None else None

    async def list_for_principal(self, principal_id: PrincipalId) -> list[Group]:
        """List groups the principal is a member of, most recently updated first."""
        stmt = (
            select(GroupModel)
            .join(GroupMembershipModel, GroupMembershipModel.group_id == GroupModel.id)
            .where(GroupMembershipModel.principal_id == principal_id.value)
            .order_by(GroupModel.updated_at.desc())
        )
        return await self._fetch(stmt)

    async def list_public(self, limit: int, offset: int) -> list[Group]:
        """List public groups, newest first."""
        stmt = (
            select(GroupModel)
            .where(GroupModel.is_public.is_(True))
            .order_by(GroupModel.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return await self._fetch(stmt)

    async def search(
        self, query: str, principal_id: PrincipalId | None, limit: int
    ) -> list[Group]:
        """Search name and description among public and own groups."""
        pattern = f"%{_escape_like(query)}%"
        visible = GroupModel.is_public.is_(True)
        if principal_id is not None:
            own_groups = select(GroupMembershipModel.group_id).where(
                GroupMembershipModel.principal_id == principal_id.value
            )
            visible = or_(visible, GroupModel.id.in_(own_groups))

        stmt = (
            select(GroupModel)
            .where(
                visible,
                or_(
                    GroupModel.name.ilike(pattern, escape="\\"),
                    GroupModel.description.ilike(pattern, escape="\\"),
                ),
            )
            .order_by(GroupModel.name)
            .limit(limit)
        )
        return await self._fetch(stmt)

    async def list_with_invitation_for(
        self, identity: str, for_update: bool = False
    ) -> list[Group]:
        """List groups holding a pending invitation for the identity."""
        invited = select(GroupInvitationModel.group_id).where(
            GroupInvitationModel.identity == identity.strip().lower()
        )
        # Lock in a stable order so concurrent acceptances cannot deadlock
        stmt = select(GroupModel).where(GroupModel.id.in_(invited)).order_by(GroupModel.id)
        if for_update:
            stmt = stmt.with_for_update()
        return await self._fetch(stmt)

    async def _fetch(self, stmt: Select[tuple[GroupModel]]) -> list[Group]:
        result = await self._session.execute(stmt)
        models = list(result.scalars().all())
        return await self._hydrate(models)

    async def _hydrate(self, models: Sequence[GroupModel]) -> list[Group]:
        """Load memberships and invitations for the given groups in two queries."""
        if not models:
            return []
        group_ids = [model.id for model in models]

        members: dict[str, list[GroupMember]] = defaultdict(list)
        result = await self._session.execute(
            select(GroupMembershipModel)
            .where(GroupMembershipModel.group_id.in_(group_ids))
            .order_by(GroupMembershipModel.joined_at)
        )
        for row in result.scalars().all():
            members[row.group_id].append(
                GroupMember(
                    principal_id=PrincipalId(row.principal_id),
                    role=GroupRole(row.role),
                    joined_at=row.joined_at,
                )
            )

        invitations: dict[str, list[Invitation]] = defaultdict(list)
        result = await self._session.execute(
            select(GroupInvitationModel)
            .where(GroupInvitationModel.group_id.in_(group_ids))
            .order_by(GroupInvitationModel.created_at)
        )
        for row in result.scalars().all():
            invitations[row.group_id].append(
                Invitation(
                    id=InvitationId(row.id),
                    group_id=GroupId(row.group_id),
                    identity=row.identity,
                    role=GroupRole(row.role),
                    invited_by=PrincipalId(row.invited_by),
                    created_at=row.created_at,
                )
            )

        return [
            Group(
                id=GroupId(model.id),
                name=model.name,
                created_by=PrincipalId(model.created_by),
                description=model.description,
                max_members=model.max_members,
                is_public=model.is_public,
                created_at=model.created_at,
                members=members[model.id],
                invitations=invitations[model.id],
            )
            for model in models
        ]

    async def _sync_members(self, group: Group) -> None:
        """Insert, update and delete membership rows to match the aggregate."""
        result = await self._session.execute(
            select(GroupMembershipModel).where(
                GroupMembershipModel.group_id == group.id.value
            )
        )
        existing = {row.principal_id: row for row in result.scalars().all()}
        wanted = {member.principal_id.value: member for member in group.members}

        for principal_id, row in existing.items():
            if principal_id not in wanted:
                await self._session.delete(row)
            elif row.role != wanted[principal_id].role.value:
                row.role = wanted[principal_id].role.value
        await self._session.flush()

        for principal_id, member in wanted.items():
            if principal_id not in existing:
                self._session.add(
                    GroupMembershipModel(
                        group_id=group.id.value,
                        principal_id=principal_id,
                        role=member.role.value,
                        joined_at=member.joined_at or datetime.now(UTC),
                    )
                )

    async def _sync_invitations(self, group: Group) -> None:
        """Insert and delete invitation rows to match the aggregate."""
        result = await self._session.execute(
            select(GroupInvitationModel).where(
                GroupInvitationModel.group_id == group.id.value
            )
        )
        existing = {row.id: row for row in result.scalars().all()}
        wanted = {invitation.id.value: invitation for invitation in group.invitations}

        for invitation_id, row in existing.items():
            if invitation_id not in wanted:
                await self._session.delete(row)
        await self._session.flush()

        for invitation_id, invitation in wanted.items():
            if invitation_id not in existing:
                self._session.add(
                    GroupInvitationModel(
                        id=invitation_id,
                        group_id=group.id.value,
                        identity=invitation.identity,
                        role=invitation.role.value,
                        invited_by=invitation.invited_by.value,
                        created_at=invitation.created_at,
                    )
                )
