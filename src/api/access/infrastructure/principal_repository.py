"""PostgreSQL implementation of IPrincipalRepository."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from access.domain.aggregates import Principal
from access.domain.value_objects import PrincipalId, SystemRole
from access.infrastructure.models import PrincipalModel
from access.ports.repositories import IPrincipalRepository


class PrincipalRepository(IPrincipalRepository):
    """Reads principals provisioned by the identity provider."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, principal_id: PrincipalId) -> Principal | None:
        stmt = select(PrincipalModel).where(PrincipalModel.id == principal_id.value)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model is not None else None

    async def get_by_email(self, email: str) -> Principal | None:
        normalized = email.strip().lower()
        if not normalized:
            return None
        stmt = select(PrincipalModel).where(func.lower(PrincipalModel.email) == normalized)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model is not None else None

    async def list_by_ids(self, principal_ids: list[PrincipalId]) -> list[Principal]:
        if not principal_ids:
            return []
        stmt = select(PrincipalModel).where(
            PrincipalModel.id.in_([principal_id.value for principal_id in principal_ids])
        )
        result = await self._session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    @staticmethod
    def _to_domain(model: PrincipalModel) -> Principal:
        return Principal(
            id=PrincipalId(model.id),
            email=model.email,
            display_name=model.display_name or "",
            system_role=SystemRole(model.system_role),
        )
