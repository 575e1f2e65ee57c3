"""Share aggregate for the access context."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from access.domain.events import ShareGranted, ShareRevoked, ShareUpdated
from access.domain.exceptions import ValidationError
from access.domain.value_objects import (
    AccessLevel,
    PrincipalId,
    ResourceId,
    ShareId,
    ShareSettings,
)

if TYPE_CHECKING:
    from access.domain.events import DomainEvent


def as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC so expiry comparisons never mix kinds."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


@dataclass
class Share:
    """A direct, resource-scoped grant from the resource owner to a principal.

    Business rules:
    - At most one share per (resource, grantee); re-sharing updates it in place
    - A principal cannot share a resource with themselves
    - A share whose expires_at has passed is inert and treated as absent
    """

    id: ShareId
    resource_id: ResourceId
    granted_by: PrincipalId
    granted_to: PrincipalId
    access_level: AccessLevel
    expires_at: datetime | None = None
    settings: ShareSettings = field(default_factory=ShareSettings)
    created_at: datetime | None = None
    _pending_events: list[DomainEvent] = field(default_factory=list, repr=False)

    @classmethod
    def grant(
        cls,
        resource_id: ResourceId,
        granted_by: PrincipalId,
        granted_to: PrincipalId,
        access_level: AccessLevel,
        settings: dict[str, bool] | None = None,
        expires_at: datetime | None = None,
        now: datetime | None = None,
    ) -> Share:
        """Factory method for a new share.

        Raises:
            ValidationError: If sharing with oneself, the expiry is already in
                the past, or a setting is unknown
        """
        now = now or datetime.now(UTC)
        if granted_by == granted_to:
            raise ValidationError("target_id", "Cannot share a resource with yourself")

        share = cls(
            id=ShareId.generate(),
            resource_id=resource_id,
            granted_by=granted_by,
            granted_to=granted_to,
            access_level=access_level,
            expires_at=_validate_expiry(expires_at, now),
            settings=_build_settings(settings),
            created_at=now,
        )
        share._pending_events.append(
            ShareGranted(
                share_id=share.id.value,
                resource_id=resource_id.value,
                granted_by=granted_by.value,
                granted_to=granted_to.value,
                access_level=access_level.value,
                occurred_at=now,
            )
        )
        return share

    def regrant(
        self,
        access_level: AccessLevel,
        settings: dict[str, bool] | None = None,
        expires_at: datetime | None = None,
        now: datetime | None = None,
    ) -> None:
        """Replace level, expiry and settings with those of a repeated share call.

        The latest call wins entirely: omitted settings fall back to defaults
        and an omitted expiry makes the share permanent.
        """
        now = now or datetime.now(UTC)
        self.expires_at = _validate_expiry(expires_at, now)
        self.access_level = access_level
        self.settings = _build_settings(settings)
        self._pending_events.append(
            ShareUpdated(
                share_id=self.id.value,
                resource_id=self.resource_id.value,
                granted_to=self.granted_to.value,
                access_level=access_level.value,
                occurred_at=now,
            )
        )

    def update_settings(self, changes: dict[str, bool]) -> None:
        """Merge partial settings into the current ones.

        Raises:
            ValidationError: If a key is not a known setting
        """
        try:
            self.settings = self.settings.merge(changes)
        except ValueError as e:
            raise ValidationError("settings", str(e)) from e

        self._pending_events.append(
            ShareUpdated(
                share_id=self.id.value,
                resource_id=self.resource_id.value,
                granted_to=self.granted_to.value,
                access_level=self.access_level.value,
                occurred_at=datetime.now(UTC),
            )
        )

    def revoke(self, revoked_by: PrincipalId) -> None:
        """Record the ShareRevoked event. Deletion is the repository's job."""
        self._pending_events.append(
            ShareRevoked(
                share_id=self.id.value,
                resource_id=self.resource_id.value,
                granted_to=self.granted_to.value,
                revoked_by=revoked_by.value,
                occurred_at=datetime.now(UTC),
            )
        )

    def is_live(self, now: datetime) -> bool:
        """Check if the share is in force at the given moment."""
        return self.expires_at is None or as_utc(self.expires_at) > as_utc(now)

    def seconds_until_expiry(self, now: datetime) -> float | None:
        """Seconds the share stays live, or None if it never expires."""
        if self.expires_at is None:
            return None
        return (as_utc(self.expires_at) - as_utc(now)).total_seconds()

    def can_be_managed_by(
        self, principal_id: PrincipalId, resource_owner: PrincipalId
    ) -> bool:
        """Check if the principal may revoke or reconfigure this share."""
        return principal_id in (resource_owner, self.granted_by)

    def collect_events(self) -> list[DomainEvent]:
        """Return and clear pending domain events."""
        events = self._pending_events.copy()
        self._pending_events.clear()
        return events


def _validate_expiry(expires_at: datetime | None, now: datetime) -> datetime | None:
    if expires_at is None:
        return None
    expires_at = as_utc(expires_at)
    if expires_at <= as_utc(now):
        raise ValidationError("expires_at", "Share expiry must be in the future")
    return expires_at


def _build_settings(settings: dict[str, bool] | None) -> ShareSettings:
    try:
        return ShareSettings().merge(settings or {})
    except ValueError as e:
        raise ValidationError("settings", str(e)) from e
