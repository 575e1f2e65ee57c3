"""Application-layer value objects for the access bounded context.

These are read-only view objects returned to callers: the outcome of an
access check, and the listing of resources shared with a principal.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from access.domain.aggregates.share import as_utc
from access.domain.value_objects import AccessLevel, AccessReason, ShareSettings


@dataclass(frozen=True)
class AccessDecision:
    """The resolved outcome of an authorization check.

    Never reduced to a bare boolean: callers need the level to decide which
    operations to expose, and the reason to log which mechanism applied.

    Attributes:
        allowed: Whether any access is granted
        access_level: The granted level, or None when access is denied
        is_owner: Whether the principal owns the resource
        reason: Which mechanism justified the decision
    """

    allowed: bool
    access_level: AccessLevel | None
    is_owner: bool
    reason: AccessReason

    @classmethod
    def deny(cls, reason: AccessReason = AccessReason.NO_GRANT) -> AccessDecision:
        return cls(allowed=False, access_level=None, is_owner=False, reason=reason)

    @classmethod
    def grant(
        cls, access_level: AccessLevel, reason: AccessReason, is_owner: bool = False
    ) -> AccessDecision:
        return cls(
            allowed=True, access_level=access_level, is_owner=is_owner, reason=reason
        )

    def permits(self, minimum: AccessLevel) -> bool:
        """Check if the decision grants at least the given level."""
        return (
            self.allowed
            and self.access_level is not None
            and self.access_level.satisfies(minimum)
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise for logging and caching."""
        return {
            "allowed": self.allowed,
            "access_level": self.access_level.value if self.access_level else None,
            "is_owner": self.is_owner,
            "reason": self.reason.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AccessDecision:
        level = data.get("access_level")
        return cls(
            allowed=bool(data["allowed"]),
            access_level=AccessLevel(level) if level else None,
            is_owner=bool(data["is_owner"]),
            reason=AccessReason(data["reason"]),
        )


@dataclass(frozen=True)
class SharedResource:
    """A resource shared with the current principal, with display data.

    Attributes:
        share_id: The share granting access
        resource_id: The shared resource
        resource_name: Display name of the resource
        owner_id: The resource owner
        owner_name: Display name of the owner
        granted_by: The principal who created the share
        granted_by_name: Display name of the granter
        access_level: The level granted by the share
        settings: Per-share flags
        shared_at: When the share was created
        expires_at: When the share stops being live, if ever
    """

    share_id: str
    resource_id: str
    resource_name: str
    owner_id: str
    owner_name: str
    granted_by: str
    granted_by_name: str
    access_level: AccessLevel
    settings: ShareSettings
    shared_at: datetime | None
    expires_at: datetime | None

    def is_live(self, now: datetime) -> bool:
        return self.expires_at is None or as_utc(self.expires_at) > as_utc(now)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to JSON-compatible values for caching."""
        return {
            "share_id": self.share_id,
            "resource_id": self.resource_id,
            "resource_name": self.resource_name,
            "owner_id": self.owner_id,
            "owner_name": self.owner_name,
            "granted_by": self.granted_by,
            "granted_by_name": self.granted_by_name,
            "access_level": self.access_level.value,
            "settings": self.settings.to_dict(),
            "shared_at": self.shared_at.isoformat() if self.shared_at else None,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SharedResource:
        shared_at = data.get("shared_at")
        expires_at = data.get("expires_at")
        return cls(
            share_id=data["share_id"],
            resource_id=data["resource_id"],
            resource_name=data["resource_name"],
            owner_id=data["owner_id"],
            owner_name=data["owner_name"],
            granted_by=data["granted_by"],
            granted_by_name=data["granted_by_name"],
            access_level=AccessLevel(data["access_level"]),
            settings=ShareSettings.from_dict(data.get("settings")),
            shared_at=datetime.fromisoformat(shared_at) if shared_at else None,
            expires_at=datetime.fromisoformat(expires_at) if expires_at else None,
        )
