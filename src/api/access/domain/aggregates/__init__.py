"""Domain aggregates for the access context.

Aggregates are the core business objects containing state and business logic.
They enforce invariants and business rules without depending on infrastructure.
"""

from access.domain.aggregates.group import Group
from access.domain.aggregates.invitation import Invitation
from access.domain.aggregates.resource import Principal, Resource
from access.domain.aggregates.share import Share

__all__ = [
    "Group",
    "Invitation",
    "Principal",
    "Resource",
    "Share",
]
