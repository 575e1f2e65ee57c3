"""Domain probe for the access decision cache."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class CacheProbe(Protocol):
    """Domain probe for cache backends."""

    def cache_read_failed(self, key: str, error: str) -> None:
        """Record that a cache read failed and was treated as a miss."""
        ...

    def cache_write_failed(self, key: str, error: str) -> None:
        """Record that caching a value failed; the value was still returned."""
        ...

    def with_context(self, context: ObservationContext) -> CacheProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultCacheProbe:
    """Default implementation of CacheProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultCacheProbe:
        return DefaultCacheProbe(logger=self._logger, context=context)

    def cache_read_failed(self, key: str, error: str) -> None:
        self._logger.warning(
            "access_cache_read_failed",
            key=key,
            error=error,
            **self._get_context_kwargs(),
        )

    def cache_write_failed(self, key: str, error: str) -> None:
        self._logger.warning(
            "access_cache_write_failed",
            key=key,
            error=error,
            **self._get_context_kwargs(),
        )
