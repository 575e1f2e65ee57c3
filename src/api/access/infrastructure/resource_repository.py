"""PostgreSQL implementation of IResourceRepository."""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from access.domain.aggregates import Resource
from access.domain.value_objects import GroupId, PrincipalId, ResourceId
from access.infrastructure.models import ResourceModel
from access.ports.repositories import IResourceRepository


class ResourceRepository(IResourceRepository):
    """Reads resource ownership and group links from PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, resource_id: ResourceId) -> Resource | None:
        stmt = select(ResourceModel).where(ResourceModel.id == resource_id.value)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model is not None else None

    async def list_by_ids(self, resource_ids: list[ResourceId]) -> list[Resource]:
        if not resource_ids:
            return []
        stmt = select(ResourceModel).where(
            ResourceModel.id.in_([resource_id.value for resource_id in resource_ids])
        )
        result = await self._session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def list_ids_by_group(self, group_id: GroupId) -> list[ResourceId]:
        stmt = (
            select(ResourceModel.id)
            .where(ResourceModel.group_id == group_id.value)
            .order_by(ResourceModel.id)
        )
        result = await self._session.execute(stmt)
        return [ResourceId(value) for value in result.scalars().all()]

    async def detach_group(self, group_id: GroupId) -> int:
        stmt = (
            update(ResourceModel)
            .where(ResourceModel.group_id == group_id.value)
            .values(group_id=None)
        )
        result = await self._session.execute(stmt)
        return result.rowcount or 0

    @staticmethod
    def _to_domain(model: ResourceModel) -> Resource:
        return Resource(
            id=ResourceId(model.id),
            owner_id=PrincipalId(model.owner_id),
            group_id=GroupId(model.group_id) if model.group_id else None,
            name=model.name,
        )
