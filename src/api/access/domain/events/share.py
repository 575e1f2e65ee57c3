"""Share domain events for the access context."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ShareGranted:
    """Event raised when a resource is shared with a principal for the first time.

    Attributes:
        share_id: The ULID of the share
        resource_id: The shared resource
        granted_by: The resource owner
        granted_to: The grantee
        access_level: The level granted
        occurred_at: When the event occurred (UTC)
    """

    share_id: str
    resource_id: str
    granted_by: str
    granted_to: str
    access_level: str
    occurred_at: datetime


@dataclass(frozen=True)
class ShareUpdated:
    """Event raised when an existing share's level, expiry or settings change."""

    share_id: str
    resource_id: str
    granted_to: str
    access_level: str
    occurred_at: datetime


@dataclass(frozen=True)
class ShareRevoked:
    """Event raised when a share is revoked.

    Attributes:
        share_id: The ULID of the revoked share
        resource_id: The resource that was shared
        granted_to: The principal who lost access
        revoked_by: The owner or granter who revoked it
        occurred_at: When the event occurred (UTC)
    """

    share_id: str
    resource_id: str
    granted_to: str
    revoked_by: str
    occurred_at: datetime
