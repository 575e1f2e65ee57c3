"""Domain probes for access repository operations.

Following Domain-Oriented Observability patterns, these probes capture
domain-significant events of group and share persistence.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class GroupRepositoryProbe(Protocol):
    """Domain probe for group repository operations."""

    def group_saved(
        self, group_id: str, member_count: int, invitation_count: int
    ) -> None:
        """Record that a group and its memberships were saved."""
        ...

    def group_retrieved(self, group_id: str, member_count: int) -> None:
        """Record that a group was retrieved with members hydrated."""
        ...

    def group_not_found(self, group_id: str) -> None:
        """Record that a group was not found."""
        ...

    def group_deleted(self, group_id: str) -> None:
        """Record that a group was deleted."""
        ...

    def with_context(self, context: ObservationContext) -> GroupRepositoryProbe:
        """Create a new probe with observation context bound."""
        ...


class ShareRepositoryProbe(Protocol):
    """Domain probe for share repository operations."""

    def share_saved(self, share_id: str, resource_id: str, granted_to: str) -> None:
        """Record that a share was saved."""
        ...

    def share_deleted(self, share_id: str) -> None:
        """Record that a share was deleted."""
        ...

    def expired_shares_deleted(self, cutoff: str, count: int) -> None:
        """Record that long-expired shares were deleted."""
        ...

    def with_context(self, context: ObservationContext) -> ShareRepositoryProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultGroupRepositoryProbe:
    """Default implementation of GroupRepositoryProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultGroupRepositoryProbe:
        """Create a new probe with observation context bound."""
        return DefaultGroupRepositoryProbe(logger=self._logger, context=context)

    def group_saved(
        self, group_id: str, member_count: int, invitation_count: int
    ) -> None:
        """Record that a group and its memberships were saved."""
        self._logger.info(
            "group_saved",
            group_id=group_id,
            member_count=member_count,
            invitation_count=invitation_count,
            **self._get_context_kwargs(),
        )

    def group_retrieved(self, group_id: str, member_count: int) -> None:
        """Record that a group was retrieved with members hydrated."""
        self._logger.debug(
            "group_retrieved",
            group_id=group_id,
            member_count=member_count,
            **self._get_context_kwargs(),
        )

    def group_not_found(self, group_id: str) -> None:
        """Record that a group was not found."""
        self._logger.debug(
            "group_not_found",
            group_id=group_id,
            **self._get_context_kwargs(),
        )

    def group_deleted(self, group_id: str) -> None:
        """Record that a group was deleted."""
        self._logger.info(
            "group_deleted",
            group_id=group_id,
            **self._get_context_kwargs(),
        )


class DefaultShareRepositoryProbe:
    """Default implementation of ShareRepositoryProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultShareRepositoryProbe:
        """Create a new probe with observation context bound."""
        return DefaultShareRepositoryProbe(logger=self._logger, context=context)

    def share_saved(self, share_id: str, resource_id: str, granted_to: str) -> None:
        """Record that a share was saved."""
        self._logger.info(
            "share_saved",
            share_id=share_id,
            resource_id=resource_id,
            granted_to=granted_to,
            **self._get_context_kwargs(),
        )

    def share_deleted(self, share_id: str) -> None:
        """Record that a share was deleted."""
        self._logger.info(
            "share_deleted",
            share_id=share_id,
            **self._get_context_kwargs(),
        )

    def expired_shares_deleted(self, cutoff: str, count: int) -> None:
        """Record that long-expired shares were deleted."""
        self._logger.info(
            "expired_shares_deleted",
            cutoff=cutoff,
            count=count,
            **self._get_context_kwargs(),
        )
