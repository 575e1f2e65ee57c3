"""Cache port for short-lived access decisions.

Cached values are JSON-compatible dicts or lists so that any backend
(in-process or shared) can store them.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from access.domain.value_objects import PrincipalId, ResourceId


@runtime_checkable
class AccessCache(Protocol):
    """Read cache consulted by the access resolver and share listings.

    Mutations that can change a cached answer must invalidate the keys
    they affect before reporting success.
    """

    async def get(self, key: str) -> Any | None:
        """Return the cached value, or None on a miss or expired entry."""
        ...

    async def set(self, key: str, value: Any, ttl: float) -> None:
        """Cache a value for ttl seconds."""
        ...

    async def invalidate(self, key: str) -> None:
        """Drop a key. Must not fail silently."""
        ...


def access_decision_key(resource_id: ResourceId, principal_id: PrincipalId) -> str:
    """Cache key of one principal's decision on one resource."""
    return f"access:{resource_id.value}:{principal_id.value}"


def shared_with_key(principal_id: PrincipalId) -> str:
    """Cache key of the list of resources shared with a principal."""
    return f"shared_with:{principal_id.value}"
