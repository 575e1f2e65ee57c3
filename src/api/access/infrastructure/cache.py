"""AccessCache implementations.

- InMemoryAccessCache: per-process TTL dictionary
- RedisAccessCache: shared cache for deployments with several processes
- NullAccessCache: caching disabled
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from access.infrastructure.observability import CacheProbe, DefaultCacheProbe
from access.ports.cache import AccessCache


class InMemoryAccessCache(AccessCache):
    """Per-process cache with lazy expiry.

    Values are returned as stored; callers store JSON-compatible data.
    """

    def __init__(self, clock: Callable[[], float] | None = None) -> None:
        """Initialize the cache.

        Args:
            clock: Monotonic seconds source, injectable for tests
        """
        self._clock = clock or time.monotonic
        self._entries: dict[str, tuple[float, Any]] = {}

    async def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: Any, ttl: float) -> None:
        if ttl <= 0:
            self._entries.pop(key, None)
            return
        self._entries[key] = (self._clock() + ttl, value)

    async def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)


class RedisAccessCache(AccessCache):
    """Redis-backed cache storing JSON payloads under a key prefix.

    A failed read is reported and treated as a miss, and a failed write
    only costs a later recomputation. A failed invalidation propagates:
    the caller must not report success while a stale decision may still
    be served.
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        key_prefix: str = "collab",
        probe: CacheProbe | None = None,
    ) -> None:
        self._redis = redis_client
        self._key_prefix = key_prefix
        self._probe = probe or DefaultCacheProbe()

    def _full_key(self, key: str) -> str:
        return f"{self._key_prefix}:{key}"

    async def get(self, key: str) -> Any | None:
        try:
            raw = await self._redis.get(self._full_key(key))
            if raw is None:
                return None
            if isinstance(raw, bytes):
                raw = raw.decode()
            return json.loads(raw)
        except (RedisError, ValueError) as e:
            self._probe.cache_read_failed(key, str(e))
            return None

    async def set(self, key: str, value: Any, ttl: float) -> None:
        ttl_ms = int(ttl * 1000)
        if ttl_ms <= 0:
            return
        try:
            await self._redis.psetex(self._full_key(key), ttl_ms, json.dumps(value))
        except RedisError as e:
            self._probe.cache_write_failed(key, str(e))

    async def invalidate(self, key: str) -> None:
        await self._redis.delete(self._full_key(key))


class NullAccessCache(AccessCache):
    """Cache that stores nothing; every read is a miss."""

    async def get(self, key: str) -> Any | None:
        return None

    async def set(self, key: str, value: Any, ttl: float) -> None:
        return None

    async def invalidate(self, key: str) -> None:
        return None
