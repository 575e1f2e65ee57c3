"""SQLAlchemy ORM models for the access bounded context.

These models map to database tables and are used by repository implementations.
"""

from access.infrastructure.models.group import (
    GroupInvitationModel,
    GroupMembershipModel,
    GroupModel,
)
from access.infrastructure.models.principal import PrincipalModel
from access.infrastructure.models.resource import ResourceModel
from access.infrastructure.models.share import ResourceShareModel

__all__ = [
    "GroupInvitationModel",
    "GroupMembershipModel",
    "GroupModel",
    "PrincipalModel",
    "ResourceModel",
    "ResourceShareModel",
]
