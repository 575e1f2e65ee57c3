"""Share application service for the access bounded context.

Owners grant direct, resource-scoped access to other principals. A
share is unique per (resource, grantee): sharing again updates the
existing share in place, and shares past their expiry are treated as
absent on every read path.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from access.application.observability import (
    DefaultShareServiceProbe,
    ShareServiceProbe,
)
from access.application.value_objects import SharedResource
from access.domain.aggregates import Resource, Share
from access.domain.exceptions import ForbiddenError, NotFoundError
from access.domain.value_objects import AccessLevel, PrincipalId, ResourceId, ShareId
from access.ports.cache import AccessCache, access_decision_key, shared_with_key
from access.ports.repositories import (
    IPrincipalRepository,
    IResourceRepository,
    IShareRepository,
)

SHARE_CHECK = "resource:share"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ShareService:
    """Application service for resource shares."""

    def __init__(
        self,
        session: AsyncSession,
        share_repository: IShareRepository,
        resource_repository: IResourceRepository,
        principal_repository: IPrincipalRepository,
        cache: AccessCache,
        probe: ShareServiceProbe | None = None,
        clock: Callable[[], datetime] | None = None,
        cache_ttl: float = 60.0,
    ):
        """Initialize ShareService with dependencies.

        Args:
            session: Database session for transaction management
            share_repository: Repository for share persistence
            resource_repository: Lookup of resources and their owners
            principal_repository: Lookup of grantees and display names
            cache: Read cache for shared-with-me listings
            probe: Optional domain probe for observability
            clock: Source of the current time, used for expiry checks
            cache_ttl: Upper bound in seconds on how long listings are cached
        """
        self._session = session
        self._share_repository = share_repository
        self._resource_repository = resource_repository
        self._principal_repository = principal_repository
        self._cache = cache
        self._probe = probe or DefaultShareServiceProbe()
        self._clock = clock or _utcnow
        self._cache_ttl = cache_ttl

    async def share_resource(
        self,
        resource_id: ResourceId,
        owner_id: PrincipalId,
        target_id: PrincipalId,
        access_level: AccessLevel,
        settings: dict[str, bool] | None = None,
        expires_at: datetime | None = None,
    ) -> Share:
        """Share a resource with another principal.

        If the target already holds a share on the resource (live or
        expired), it is updated in place with this call's level, settings
        and expiry.

        Raises:
            NotFoundError: If the resource or the target principal does not exist
            ForbiddenError: If owner_id is not the resource's owner
            ValidationError: If sharing with oneself, the expiry is in the
                past, or a setting is unknown
        """
        try:
            share, updated = await self._upsert(
                resource_id, owner_id, target_id, access_level, settings, expires_at
            )
        except IntegrityError:
            # A concurrent first share won the unique constraint; retry as an update.
            self._probe.share_conflict_retried(resource_id.value, target_id.value)
            share, updated = await self._upsert(
                resource_id, owner_id, target_id, access_level, settings, expires_at
            )

        await self._invalidate_grantee(resource_id, target_id)
        self._probe.share_granted(
            share_id=share.id.value,
            resource_id=resource_id.value,
            granted_to=target_id.value,
            access_level=share.access_level.value,
            expires_at=share.expires_at.isoformat() if share.expires_at else None,
            updated=updated,
        )
        return share

    async def revoke_share(self, share_id: ShareId, requester_id: PrincipalId) -> None:
        """Revoke a share.

        Only the resource owner or the granter may revoke. Anyone else gets
        the same error as for a missing share.

        Raises:
            NotFoundError: If the share does not exist or the requester may
                not manage it
        """
        async with self._session.begin():
            share = await self._get_managed_share(share_id, requester_id, "revoke_share")
            share.revoke(requester_id)
            await self._share_repository.delete(share)
            share.collect_events()

        await self._invalidate_grantee(share.resource_id, share.granted_to)
        self._probe.share_revoked(
            share_id=share_id.value,
            resource_id=share.resource_id.value,
            revoked_by=requester_id.value,
        )

    async def update_share_settings(
        self,
        share_id: ShareId,
        requester_id: PrincipalId,
        settings: dict[str, bool],
    ) -> Share:
        """Merge partial settings into a share.

        Raises:
            NotFoundError: If the share does not exist or the requester may
                not manage it
            ValidationError: If a setting is unknown
        """
        async with self._session.begin():
            share = await self._get_managed_share(
                share_id, requester_id, "update_share_settings"
            )
            share.update_settings(settings)
            await self._share_repository.save(share)
            share.collect_events()

        await self._cache.invalidate(shared_with_key(share.granted_to))
        self._probe.share_settings_updated(
            share_id=share_id.value, requester_id=requester_id.value
        )
        return share

    async def get_live_share(
        self, resource_id: ResourceId, principal_id: PrincipalId
    ) -> Share | None:
        """Get the live share of a resource to a principal, if any."""
        return await self._share_repository.get_live(
            resource_id, principal_id, self._clock()
        )

    async def list_shared_with_me(self, principal_id: PrincipalId) -> list[SharedResource]:
        """List resources shared with a principal, newest share first.

        Only live shares are listed. Entries served from the cache are
        filtered by expiry again, so a share never outlives its expiry
        because of caching.
        """
        now = self._clock()
        key = shared_with_key(principal_id)

        cached = await self._cache.get(key)
        if cached is not None:
            entries = [SharedResource.from_dict(item) for item in cached]
            return [entry for entry in entries if entry.is_live(now)]

        shares = await self._share_repository.list_live_for_grantee(principal_id, now)
        entries = await self._describe(shares)

        ttl = self._cache_ttl
        for share in shares:
            remaining = share.seconds_until_expiry(now)
            if remaining is not None:
                ttl = min(ttl, remaining)
        if ttl > 0:
            await self._cache.set(key, [entry.to_dict() for entry in entries], ttl)

        return entries

    async def list_shares_for_resource(
        self, resource_id: ResourceId, requester_id: PrincipalId
    ) -> list[Share]:
        """List the live shares of a resource. Owner only.

        Raises:
            NotFoundError: If the resource does not exist
            ForbiddenError: If the requester is not the owner
        """
        resource = await self._require_resource(resource_id)
        self._require_owner(resource, requester_id, "list_shares_for_resource")

        now = self._clock()
        shares = await self._share_repository.list_for_resource(resource_id)
        return [share for share in shares if share.is_live(now)]

    async def purge_expired_shares(self, older_than: timedelta) -> int:
        """Delete shares that expired more than older_than ago.

        Expired shares are already inert; this only reclaims storage.

        Returns:
            Number of shares deleted
        """
        cutoff = self._clock() - older_than
        async with self._session.begin():
            count = await self._share_repository.delete_expired_before(cutoff)

        self._probe.expired_shares_purged(cutoff=cutoff.isoformat(), count=count)
        return count

    async def _upsert(
        self,
        resource_id: ResourceId,
        owner_id: PrincipalId,
        target_id: PrincipalId,
        access_level: AccessLevel,
        settings: dict[str, bool] | None,
        expires_at: datetime | None,
    ) -> tuple[Share, bool]:
        now = self._clock()
        async with self._session.begin():
            resource = await self._require_resource(resource_id)
            self._require_owner(resource, owner_id, "share_resource")

            target = await self._principal_repository.get_by_id(target_id)
            if target is None:
                raise NotFoundError("principal", target_id.value)

            share = await self._share_repository.get_for_grantee(
                resource_id, target_id, for_update=True
            )
            updated = share is not None
            if share is not None:
                share.regrant(
                    access_level=access_level,
                    settings=settings,
                    expires_at=expires_at,
                    now=now,
                )
            else:
                share = Share.grant(
                    resource_id=resource_id,
                    granted_by=owner_id,
                    granted_to=target_id,
                    access_level=access_level,
                    settings=settings,
                    expires_at=expires_at,
                    now=now,
                )
            await self._share_repository.save(share)
            share.collect_events()

        return share, updated

    async def _require_resource(self, resource_id: ResourceId) -> Resource:
        resource = await self._resource_repository.get_by_id(resource_id)
        if resource is None:
            raise NotFoundError("resource", resource_id.value)
        return resource

    def _require_owner(
        self, resource: Resource, principal_id: PrincipalId, operation: str
    ) -> None:
        if resource.is_owned_by(principal_id):
            return
        self._probe.permission_denied(
            operation, resource.id.value, principal_id.value, SHARE_CHECK
        )
        raise ForbiddenError(
            SHARE_CHECK, f"Only the owner can manage shares of resource {resource.id}"
        )

    async def _get_managed_share(
        self, share_id: ShareId, requester_id: PrincipalId, operation: str
    ) -> Share:
        share = await self._share_repository.get_by_id(share_id, for_update=True)
        if share is None:
            raise NotFoundError("share", share_id.value)

        resource = await self._resource_repository.get_by_id(share.resource_id)
        owner_id = resource.owner_id if resource is not None else share.granted_by
        if not share.can_be_managed_by(requester_id, owner_id):
            self._probe.permission_denied(
                operation, share_id.value, requester_id.value, SHARE_CHECK
            )
            raise NotFoundError("share", share_id.value)
        return share

    async def _describe(self, shares: list[Share]) -> list[SharedResource]:
        """Join shares with resource names and owner/granter display names."""
        if not shares:
            return []

        resources = {
            resource.id: resource
            for resource in await self._resource_repository.list_by_ids(
                [share.resource_id for share in shares]
            )
        }
        people_ids = {share.granted_by for share in shares}
        people_ids.update(resource.owner_id for resource in resources.values())
        people = {
            principal.id: principal
            for principal in await self._principal_repository.list_by_ids(
                sorted(people_ids, key=lambda p: p.value)
            )
        }

        def display_name(principal_id: PrincipalId) -> str:
            principal = people.get(principal_id)
            if principal is None:
                return ""
            return principal.display_name or principal.email

        entries = []
        for share in shares:
            resource = resources.get(share.resource_id)
            if resource is None:
                continue
            entries.append(
                SharedResource(
                    share_id=share.id.value,
                    resource_id=resource.id.value,
                    resource_name=resource.name,
                    owner_id=resource.owner_id.value,
                    owner_name=display_name(resource.owner_id),
                    granted_by=share.granted_by.value,
                    granted_by_name=display_name(share.granted_by),
                    access_level=share.access_level,
                    settings=share.settings,
                    shared_at=share.created_at,
                    expires_at=share.expires_at,
                )
            )
        return entries

    async def _invalidate_grantee(
        self, resource_id: ResourceId, principal_id: PrincipalId
    ) -> None:
        await self._cache.invalidate(access_decision_key(resource_id, principal_id))
        await self._cache.invalidate(shared_with_key(principal_id))
