"""Protocol for share application service observability."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class ShareServiceProbe(Protocol):
    """Domain probe for share application service operations."""

    def share_granted(
        self,
        share_id: str,
        resource_id: str,
        granted_to: str,
        access_level: str,
        expires_at: str | None,
        updated: bool,
    ) -> None:
        """Record that a share was created or updated in place."""
        ...

    def share_conflict_retried(self, resource_id: str, granted_to: str) -> None:
        """Record that a concurrent first share forced a retry as an update."""
        ...

    def share_revoked(self, share_id: str, resource_id: str, revoked_by: str) -> None:
        """Record that a share was revoked."""
        ...

    def share_settings_updated(self, share_id: str, requester_id: str) -> None:
        """Record that a share's settings changed."""
        ...

    def permission_denied(
        self, operation: str, target_id: str, principal_id: str, check: str
    ) -> None:
        """Record that a share operation failed its permission check."""
        ...

    def expired_shares_purged(self, cutoff: str, count: int) -> None:
        """Record a housekeeping purge of long-expired shares."""
        ...

    def with_context(self, context: ObservationContext) -> ShareServiceProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultShareServiceProbe:
    """Default implementation of ShareServiceProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultShareServiceProbe:
        """Create a new probe with observation context bound."""
        return DefaultShareServiceProbe(logger=self._logger, context=context)

    def share_granted(
        self,
        share_id: str,
        resource_id: str,
        granted_to: str,
        access_level: str,
        expires_at: str | None,
        updated: bool,
    ) -> None:
        self._logger.info(
            "share_updated" if updated else "share_granted",
            share_id=share_id,
            resource_id=resource_id,
            granted_to=granted_to,
            access_level=access_level,
            expires_at=expires_at,
            **self._get_context_kwargs(),
        )

    def share_conflict_retried(self, resource_id: str, granted_to: str) -> None:
        self._logger.warning(
            "share_conflict_retried",
            resource_id=resource_id,
            granted_to=granted_to,
            **self._get_context_kwargs(),
        )

    def share_revoked(self, share_id: str, resource_id: str, revoked_by: str) -> None:
        self._logger.info(
            "share_revoked",
            share_id=share_id,
            resource_id=resource_id,
            revoked_by=revoked_by,
            **self._get_context_kwargs(),
        )

    def share_settings_updated(self, share_id: str, requester_id: str) -> None:
        self._logger.info(
            "share_settings_updated",
            share_id=share_id,
            requester_id=requester_id,
            **self._get_context_kwargs(),
        )

    def permission_denied(
        self, operation: str, target_id: str, principal_id: str, check: str
    ) -> None:
        # The operation argument overrides any operation bound in the context
        context = self._get_context_kwargs()
        context.pop("operation", None)
        self._logger.warning(
            "share_permission_denied",
            operation=operation,
            target_id=target_id,
            principal_id=principal_id,
            check=check,
            **context,
        )

    def expired_shares_purged(self, cutoff: str, count: int) -> None:
        self._logger.info(
            "expired_shares_purged",
            cutoff=cutoff,
            count=count,
            **self._get_context_kwargs(),
        )
