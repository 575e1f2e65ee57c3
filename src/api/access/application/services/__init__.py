"""Application services for the access bounded context.

Application services orchestrate domain aggregates, repositories, and
the access cache to fulfill use cases. They are the "front door" to
the access context.
"""

from access.application.services.access_resolver import (
    MINIMUM_ACCESS_LEVEL,
    AccessResolver,
)
from access.application.services.group_service import GroupService
from access.application.services.share_service import ShareService

__all__ = [
    "AccessResolver",
    "GroupService",
    "MINIMUM_ACCESS_LEVEL",
    "ShareService",
]
