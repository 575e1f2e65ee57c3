"""Protocol for access resolver observability.

Every decision is recorded with the mechanism that produced it, which is
all a caller needs to log authorization outcomes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class AccessResolverProbe(Protocol):
    """Domain probe for access resolution."""

    def access_resolved(
        self,
        resource_id: str,
        principal_id: str,
        allowed: bool,
        access_level: str | None,
        reason: str,
        cached: bool,
    ) -> None:
        """Record an access decision."""
        ...

    def action_checked(
        self,
        resource_id: str,
        principal_id: str,
        action: str,
        required_level: str,
        permitted: bool,
    ) -> None:
        """Record the outcome of a can_perform check."""
        ...

    def with_context(self, context: ObservationContext) -> AccessResolverProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultAccessResolverProbe:
    """Default implementation of AccessResolverProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultAccessResolverProbe:
        """Create a new probe with observation context bound."""
        return DefaultAccessResolverProbe(logger=self._logger, context=context)

    def access_resolved(
        self,
        resource_id: str,
        principal_id: str,
        allowed: bool,
        access_level: str | None,
        reason: str,
        cached: bool,
    ) -> None:
        self._logger.debug(
            "access_resolved",
            resource_id=resource_id,
            principal_id=principal_id,
            allowed=allowed,
            access_level=access_level,
            reason=reason,
            cached=cached,
            **self._get_context_kwargs(),
        )

    def action_checked(
        self,
        resource_id: str,
        principal_id: str,
        action: str,
        required_level: str,
        permitted: bool,
    ) -> None:
        self._logger.debug(
            "action_checked",
            resource_id=resource_id,
            principal_id=principal_id,
            action=action,
            required_level=required_level,
            permitted=permitted,
            **self._get_context_kwargs(),
        )
