"""Group aggregate for the access context."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from access.domain.aggregates.invitation import Invitation, normalize_identity
from access.domain.events import (
    GroupCreated,
    GroupDeleted,
    InvitationAccepted,
    InvitationCreated,
    InvitationRevoked,
    MemberAdded,
    MemberRemoved,
    MemberRoleChanged,
    MemberSnapshot,
)
from access.domain.exceptions import ConflictError, NotFoundError, ValidationError
from access.domain.value_objects import (
    GroupId,
    GroupMember,
    GroupRole,
    InvitationId,
    PrincipalId,
)

if TYPE_CHECKING:
    from access.domain.events import DomainEvent

DEFAULT_MAX_MEMBERS = 10
MIN_MAX_MEMBERS = 2
MAX_NAME_LENGTH = 255


@dataclass
class Group:
    """Group ("team") aggregate: principals collaborating with per-member roles.

    Business rules:
    - A group always has at least one OWNER
    - Members plus pending invitations never exceed max_members
    - A principal is a member at most once, with exactly one role
    - An identity has at most one pending invitation per group

    Event collection:
    - All mutating operations record domain events
    - Events can be collected via collect_events() once the change is persisted
    """

    id: GroupId
    name: str
    created_by: PrincipalId
    description: str | None = None
    max_members: int = DEFAULT_MAX_MEMBERS
    is_public: bool = False
    created_at: datetime | None = None
    members: list[GroupMember] = field(default_factory=list)
    invitations: list[Invitation] = field(default_factory=list)
    _pending_events: list[DomainEvent] = field(default_factory=list, repr=False)

    @classmethod
    def create(
        cls,
        name: str,
        creator_id: PrincipalId,
        description: str | None = None,
        max_members: int = DEFAULT_MAX_MEMBERS,
        is_public: bool = False,
    ) -> Group:
        """Factory method for creating a new group owned by its creator.

        Args:
            name: The name of the group
            creator_id: The principal creating the group, who becomes its OWNER
            description: Optional description
            max_members: Capacity limit (at least 2)
            is_public: Whether the group is visible to non-members

        Returns:
            A new Group with one OWNER membership and its events recorded

        Raises:
            ValidationError: If the name is empty or max_members < 2
        """
        now = datetime.now(UTC)
        group = cls(
            id=GroupId.generate(),
            name=_validate_name(name),
            created_by=creator_id,
            description=description,
            max_members=_validate_max_members(max_members),
            is_public=is_public,
            created_at=now,
        )
        group._pending_events.append(
            GroupCreated(
                group_id=group.id.value,
                created_by=creator_id.value,
                occurred_at=now,
            )
        )
        group._append_member(creator_id, GroupRole.OWNER)
        return group

    @property
    def seats_taken(self) -> int:
        """Members plus pending invitations."""
        return len(self.members) + len(self.invitations)

    def is_full(self) -> bool:
        """Check if no seat is left for another member or invitation."""
        return self.seats_taken >= self.max_members

    def owner_count(self) -> int:
        return sum(1 for m in self.members if m.is_owner())

    def add_member(self, principal_id: PrincipalId, role: GroupRole) -> None:
        """Add a known principal to the group.

        Raises:
            ConflictError: If the principal is already a member or the group is full
        """
        if self.has_member(principal_id):
            raise ConflictError(
                "duplicate_member",
                f"Principal {principal_id} is already a member of this group",
            )
        self._ensure_capacity()
        self._append_member(principal_id, role)

    def invite(
        self, identity: str, role: GroupRole, invited_by: PrincipalId
    ) -> Invitation:
        """Hold a seat for an identity that has not authenticated yet.

        Raises:
            ValidationError: If the identity is blank
            ConflictError: If an invitation is already pending or the group is full
        """
        normalized = normalize_identity(identity)
        if any(inv.identity == normalized for inv in self.invitations):
            raise ConflictError(
                "pending_invitation",
                f"An invitation for {normalized} is already pending",
            )
        self._ensure_capacity()

        invitation = Invitation.create(
            group_id=self.id,
            identity=normalized,
            role=role,
            invited_by=invited_by,
        )
        self.invitations.append(invitation)
        self._pending_events.append(
            InvitationCreated(
                group_id=self.id.value,
                invitation_id=invitation.id.value,
                identity=normalized,
                role=role.value,
                occurred_at=invitation.created_at,
            )
        )
        return invitation

    def accept_invitation(
        self, invitation_id: InvitationId, principal_id: PrincipalId
    ) -> bool:
        """Bind a pending invitation to a principal.

        The invitation already holds a seat, so no capacity check is made.
        If the principal became a member some other way in the meantime,
        the invitation is simply consumed.

        Returns:
            True if a membership was created, False if the principal was
            already a member

        Raises:
            NotFoundError: If the invitation is not pending on this group
        """
        invitation = self._pop_invitation(invitation_id)
        self._pending_events.append(
            InvitationAccepted(
                group_id=self.id.value,
                invitation_id=invitation_id.value,
                principal_id=principal_id.value,
                occurred_at=datetime.now(UTC),
            )
        )
        if self.has_member(principal_id):
            return False

        self._append_member(principal_id, invitation.role)
        return True

    def revoke_invitation(self, invitation_id: InvitationId) -> None:
        """Withdraw a pending invitation, freeing its seat.

        Raises:
            NotFoundError: If the invitation is not pending on this group
        """
        self._pop_invitation(invitation_id)
        self._pending_events.append(
            InvitationRevoked(
                group_id=self.id.value,
                invitation_id=invitation_id.value,
                occurred_at=datetime.now(UTC),
            )
        )

    def update_member_role(self, principal_id: PrincipalId, new_role: GroupRole) -> None:
        """Change a member's role.

        Raises:
            NotFoundError: If the principal is not a member
            ConflictError: If this would demote the last owner
        """
        current_role = self._require_member(principal_id).role
        if current_role == new_role:
            return

        if current_role == GroupRole.OWNER:
            self._ensure_not_last_owner(
                "Cannot demote the last owner. Promote another member first."
            )

        self.members = [
            GroupMember(principal_id=m.principal_id, role=new_role, joined_at=m.joined_at)
            if m.principal_id == principal_id
            else m
            for m in self.members
        ]
        self._pending_events.append(
            MemberRoleChanged(
                group_id=self.id.value,
                principal_id=principal_id.value,
                old_role=current_role.value,
                new_role=new_role.value,
                occurred_at=datetime.now(UTC),
            )
        )

    def remove_member(self, principal_id: PrincipalId) -> None:
        """Remove a member from the group.

        Raises:
            NotFoundError: If the principal is not a member
            ConflictError: If the member is the last owner
        """
        self._remove(
            principal_id,
            last_owner_message="Cannot remove the last owner of the group",
        )

    def leave(self, principal_id: PrincipalId) -> None:
        """Remove the calling principal from the group.

        Raises:
            NotFoundError: If the principal is not a member
            ConflictError: If the principal is the last owner
        """
        self._remove(
            principal_id,
            last_owner_message=(
                "Cannot leave the group as its last owner. "
                "Please transfer ownership first."
            ),
        )

    def update_details(
        self,
        name: str | None = None,
        description: str | None = None,
        max_members: int | None = None,
        is_public: bool | None = None,
    ) -> None:
        """Update group metadata. Arguments left as None are unchanged.

        An empty description clears it.

        Raises:
            ValidationError: If the name or capacity is invalid
            ConflictError: If the new capacity is below the seats already taken
        """
        if name is not None:
            self.name = _validate_name(name)
        if description is not None:
            self.description = description or None
        if max_members is not None:
            max_members = _validate_max_members(max_members)
            if max_members < self.seats_taken:
                raise ConflictError(
                    "capacity",
                    f"Group already has {self.seats_taken} members and invitations; "
                    f"cannot reduce capacity to {max_members}",
                )
            self.max_members = max_members
        if is_public is not None:
            self.is_public = is_public

    def mark_for_deletion(self) -> None:
        """Record the GroupDeleted event with a snapshot of current members."""
        members_snapshot = tuple(
            MemberSnapshot(principal_id=m.principal_id.value, role=m.role.value)
            for m in self.members
        )
        self._pending_events.append(
            GroupDeleted(
                group_id=self.id.value,
                members=members_snapshot,
                occurred_at=datetime.now(UTC),
            )
        )

    def has_member(self, principal_id: PrincipalId) -> bool:
        """Check if a principal is a member of this group."""
        return any(m.principal_id == principal_id for m in self.members)

    def get_member_role(self, principal_id: PrincipalId) -> GroupRole | None:
        """Get the role of a member, or None if not a member."""
        for member in self.members:
            if member.principal_id == principal_id:
                return member.role
        return None

    def get_invitation(self, identity: str) -> Invitation | None:
        if not (identity or "").strip():
            return None
        normalized = normalize_identity(identity)
        for invitation in self.invitations:
            if invitation.identity == normalized:
                return invitation
        return None

    def collect_events(self) -> list[DomainEvent]:
        """Return and clear pending domain events."""
        events = self._pending_events.copy()
        self._pending_events.clear()
        return events

    def _append_member(self, principal_id: PrincipalId, role: GroupRole) -> None:
        now = datetime.now(UTC)
        self.members.append(
            GroupMember(principal_id=principal_id, role=role, joined_at=now)
        )
        self._pending_events.append(
            MemberAdded(
                group_id=self.id.value,
                principal_id=principal_id.value,
                role=role.value,
                occurred_at=now,
            )
        )

    def _remove(self, principal_id: PrincipalId, last_owner_message: str) -> None:
        member = self._require_member(principal_id)
        if member.is_owner():
            self._ensure_not_last_owner(last_owner_message)

        self.members = [m for m in self.members if m.principal_id != principal_id]
        self._pending_events.append(
            MemberRemoved(
                group_id=self.id.value,
                principal_id=principal_id.value,
                role=member.role.value,
                occurred_at=datetime.now(UTC),
            )
        )

    def _require_member(self, principal_id: PrincipalId) -> GroupMember:
        for member in self.members:
            if member.principal_id == principal_id:
                return member
        raise NotFoundError(
            "member",
            principal_id.value,
            f"Principal {principal_id} is not a member of this group",
        )

    def _ensure_not_last_owner(self, message: str) -> None:
        if self.owner_count() <= 1:
            raise ConflictError("last_owner", message)

    def _ensure_capacity(self) -> None:
        if self.is_full():
            raise ConflictError(
                "capacity",
                f"Group is full ({self.max_members} members maximum)",
            )

    def _pop_invitation(self, invitation_id: InvitationId) -> Invitation:
        for invitation in self.invitations:
            if invitation.id == invitation_id:
                self.invitations = [
                    i for i in self.invitations if i.id != invitation_id
                ]
                return invitation
        raise NotFoundError("invitation", invitation_id.value)


def _validate_name(name: str) -> str:
    stripped = (name or "").strip()
    if not stripped:
        raise ValidationError("name", "Group name cannot be empty")
    if len(stripped) > MAX_NAME_LENGTH:
        raise ValidationError(
            "name", f"Group name must be at most {MAX_NAME_LENGTH} characters"
        )
    return stripped


def _validate_max_members(max_members: int) -> int:
    if max_members < MIN_MAX_MEMBERS:
        raise ValidationError(
            "max_members", f"max_members must be at least {MIN_MAX_MEMBERS}"
        )
    return max_members
