"""Group domain events for the access context.

Domain events related to group lifecycle and membership management.
Services read them to decide which cached decisions a mutation affects.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class MemberSnapshot:
    """Immutable snapshot of a member's state at a point in time.

    Used in GroupDeleted to capture the members whose cached access
    must be invalidated.

    Attributes:
        principal_id: The member's principal identifier
        role: The role the member had in the group
    """

    principal_id: str
    role: str


@dataclass(frozen=True)
class GroupCreated:
    """Event raised when a new group is created.

    Attributes:
        group_id: The ULID of the created group
        created_by: The principal who created the group (its first owner)
        occurred_at: When the event occurred (UTC)
    """

    group_id: str
    created_by: str
    occurred_at: datetime


@dataclass(frozen=True)
class GroupDeleted:
    """Event raised when a group is deleted.

    Attributes:
        group_id: The ULID of the deleted group
        members: Snapshot of members at deletion time
        occurred_at: When the event occurred (UTC)
    """

    group_id: str
    members: tuple[MemberSnapshot, ...]
    occurred_at: datetime


@dataclass(frozen=True)
class MemberAdded:
    """Event raised when a principal becomes a member of a group.

    Attributes:
        group_id: The ULID of the group
        principal_id: The principal being added
        role: The role assigned to the member
        occurred_at: When the event occurred (UTC)
    """

    group_id: str
    principal_id: str
    role: str
    occurred_at: datetime


@dataclass(frozen=True)
class MemberRemoved:
    """Event raised when a member is removed from (or leaves) a group.

    Attributes:
        group_id: The ULID of the group
        principal_id: The principal being removed
        role: The role the member had
        occurred_at: When the event occurred (UTC)
    """

    group_id: str
    principal_id: str
    role: str
    occurred_at: datetime


@dataclass(frozen=True)
class MemberRoleChanged:
    """Event raised when a member's role is changed.

    Attributes:
        group_id: The ULID of the group
        principal_id: The principal whose role changed
        old_role: The previous role
        new_role: The new role
        occurred_at: When the event occurred (UTC)
    """

    group_id: str
    principal_id: str
    old_role: str
    new_role: str
    occurred_at: datetime


@dataclass(frozen=True)
class InvitationCreated:
    """Event raised when an invitation is held for an unknown identity.

    Attributes:
        group_id: The ULID of the group
        invitation_id: The ULID of the pending invitation
        identity: The normalised identity (e-mail) the invitation is keyed by
        role: The role the invitee will receive
        occurred_at: When the event occurred (UTC)
    """

    group_id: str
    invitation_id: str
    identity: str
    role: str
    occurred_at: datetime


@dataclass(frozen=True)
class InvitationRevoked:
    """Event raised when a pending invitation is withdrawn.

    Attributes:
        group_id: The ULID of the group
        invitation_id: The ULID of the withdrawn invitation
        occurred_at: When the event occurred (UTC)
    """

    group_id: str
    invitation_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class InvitationAccepted:
    """Event raised when a pending invitation is bound to a real principal.

    Attributes:
        group_id: The ULID of the group
        invitation_id: The ULID of the consumed invitation
        principal_id: The principal the invitation was bound to
        occurred_at: When the event occurred (UTC)
    """

    group_id: str
    invitation_id: str
    principal_id: str
    occurred_at: datetime
