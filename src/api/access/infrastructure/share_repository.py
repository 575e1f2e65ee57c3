"""PostgreSQL implementation of IShareRepository."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from access.domain.aggregates import Share
from access.domain.value_objects import (
    AccessLevel,
    PrincipalId,
    ResourceId,
    ShareId,
    ShareSettings,
)
from access.infrastructure.models import ResourceShareModel
from access.infrastructure.observability import (
    DefaultShareRepositoryProbe,
    ShareRepositoryProbe,
)
from access.ports.repositories import IShareRepository


def _live_at(now: datetime):
    return or_(
        ResourceShareModel.expires_at.is_(None),
        ResourceShareModel.expires_at > now,
    )


class ShareRepository(IShareRepository):
    """Repository for Share aggregates backed by PostgreSQL.

    The (resource_id, granted_to) unique constraint backs the one-share-per-
    grantee rule. A concurrent duplicate insert surfaces as IntegrityError
    from save(), which flushes immediately.
    """

    def __init__(
        self,
        session: AsyncSession,
        probe: ShareRepositoryProbe | None = None,
    ) -> None:
        self._session = session
        self._probe = probe or DefaultShareRepositoryProbe()

    async def save(self, share: Share) -> None:
        """Insert or update a share."""
        stmt = select(ResourceShareModel).where(ResourceShareModel.id == share.id.value)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model:
            model.access_level = share.access_level.value
            model.settings = share.settings.to_dict()
            model.expires_at = share.expires_at
        else:
            self._session.add(
                ResourceShareModel(
                    id=share.id.value,
                    resource_id=share.resource_id.value,
                    granted_by=share.granted_by.value,
                    granted_to=share.granted_to.value,
                    access_level=share.access_level.value,
                    settings=share.settings.to_dict(),
                    expires_at=share.expires_at,
                    created_at=share.created_at or datetime.now(UTC),
                )
            )

        await self._session.flush()
        self._probe.share_saved(
            share.id.value, share.resource_id.value, share.granted_to.value
        )

    async def get_by_id(
        self, share_id: ShareId, for_update: bool = False
    ) -> Share | None:
        stmt = select(ResourceShareModel).where(ResourceShareModel.id == share_id.value)
        if for_update:
            stmt = stmt.with_for_update()
        return await self._fetch_one(stmt)

    async def get_for_grantee(
        self,
        resource_id: ResourceId,
        granted_to: PrincipalId,
        for_update: bool = False,
    ) -> Share | None:
        stmt = select(ResourceShareModel).where(
            ResourceShareModel.resource_id == resource_id.value,
            ResourceShareModel.granted_to == granted_to.value,
        )
        if for_update:
            stmt = stmt.with_for_update()
        return await self._fetch_one(stmt)

    async def get_live(
        self, resource_id: ResourceId, granted_to: PrincipalId, now: datetime
    ) -> Share | None:
        stmt = select(ResourceShareModel).where(
            ResourceShareModel.resource_id == resource_id.value,
            ResourceShareModel.granted_to == granted_to.value,
            _live_at(now),
        )
        return await self._fetch_one(stmt)

    async def list_live_for_grantee(
        self, granted_to: PrincipalId, now: datetime
    ) -> list[Share]:
        stmt = (
            select(ResourceShareModel)
            .where(ResourceShareModel.granted_to == granted_to.value, _live_at(now))
            .order_by(ResourceShareModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def list_for_resource(self, resource_id: ResourceId) -> list[Share]:
        stmt = (
            select(ResourceShareModel)
            .where(ResourceShareModel.resource_id == resource_id.value)
            .order_by(ResourceShareModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def delete(self, share: Share) -> bool:
        stmt = delete(ResourceShareModel).where(ResourceShareModel.id == share.id.value)
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            return False

        self._probe.share_deleted(share.id.value)
        return True

    async def delete_expired_before(self, cutoff: datetime) -> int:
        stmt = delete(ResourceShareModel).where(
            ResourceShareModel.expires_at.is_not(None),
            ResourceShareModel.expires_at < cutoff,
        )
        result = await self._session.execute(stmt)
        count = result.rowcount or 0
        self._probe.expired_shares_deleted(cutoff.isoformat(), count)
        return count

    async def _fetch_one(self, stmt) -> Share | None:
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model is not None else None

    @staticmethod
    def _to_domain(model: ResourceShareModel) -> Share:
        return Share(
            id=ShareId(model.id),
            resource_id=ResourceId(model.resource_id),
            granted_by=PrincipalId(model.granted_by),
            granted_to=PrincipalId(model.granted_to),
            access_level=AccessLevel(model.access_level),
            expires_at=model.expires_at,
            settings=ShareSettings.from_dict(model.settings),
            created_at=model.created_at,
        )
