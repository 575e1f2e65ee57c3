"""Domain events for the access bounded context.

Domain events capture facts about things that have happened in the domain.
They are immutable value objects that carry all the information needed
to describe the occurrence of an event.

The application services use them to work out which cached access
decisions a mutation invalidates.
"""

from access.domain.events.group import (
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
from access.domain.events.share import ShareGranted, ShareRevoked, ShareUpdated

# Type alias for all domain events in the access context
DomainEvent = (
    GroupCreated
    | GroupDeleted
    | MemberAdded
    | MemberRemoved
    | MemberRoleChanged
    | InvitationCreated
    | InvitationRevoked
    | InvitationAccepted
    | ShareGranted
    | ShareUpdated
    | ShareRevoked
)

__all__ = [
    "DomainEvent",
    "GroupCreated",
    "GroupDeleted",
    "InvitationAccepted",
    "InvitationCreated",
    "InvitationRevoked",
    "MemberAdded",
    "MemberRemoved",
    "MemberRoleChanged",
    "MemberSnapshot",
    "ShareGranted",
    "ShareRevoked",
    "ShareUpdated",
]
