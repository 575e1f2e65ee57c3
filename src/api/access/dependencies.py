"""Composition of the access bounded context.

Builds repositories and services from an AsyncSession, an AccessCache and
settings. Nothing here is a module-level singleton except the cache, which
must be shared by every service of a process for invalidation to work.
"""

from __future__ import annotations

from functools import lru_cache

import redis.asyncio as redis
from sqlalchemy.ext.asyncio import AsyncSession

from access.application.observability import (
    AccessResolverProbe,
    DefaultAccessResolverProbe,
    DefaultGroupServiceProbe,
    DefaultShareServiceProbe,
    GroupServiceProbe,
    ShareServiceProbe,
)
from access.application.services import AccessResolver, GroupService, ShareService
from access.infrastructure.cache import (
    InMemoryAccessCache,
    NullAccessCache,
    RedisAccessCache,
)
from access.infrastructure.group_repository import GroupRepository
from access.infrastructure.principal_repository import PrincipalRepository
from access.infrastructure.resource_repository import ResourceRepository
from access.infrastructure.share_repository import ShareRepository
from access.ports.cache import AccessCache
from infrastructure.settings import (
    AccessSettings,
    CacheSettings,
    get_access_settings,
    get_cache_settings,
)


def build_access_cache(settings: CacheSettings) -> AccessCache:
    """Create the cache backend selected by settings."""
    if settings.backend == "redis":
        client = redis.from_url(settings.redis_url)
        return RedisAccessCache(client, key_prefix=settings.key_prefix)
    if settings.backend == "none":
        return NullAccessCache()
    return InMemoryAccessCache()


@lru_cache
def get_access_cache() -> AccessCache:
    """Get the process-wide access cache."""
    return build_access_cache(get_cache_settings())


def get_group_service_probe() -> GroupServiceProbe:
    """Get GroupServiceProbe instance."""
    return DefaultGroupServiceProbe()


def get_share_service_probe() -> ShareServiceProbe:
    """Get ShareServiceProbe instance."""
    return DefaultShareServiceProbe()


def get_access_resolver_probe() -> AccessResolverProbe:
    """Get AccessResolverProbe instance."""
    return DefaultAccessResolverProbe()


def get_group_service(
    session: AsyncSession,
    cache: AccessCache | None = None,
    settings: AccessSettings | None = None,
    probe: GroupServiceProbe | None = None,
) -> GroupService:
    """Build a GroupService bound to a write session.

    Args:
        session: Write session; the service manages its transactions
        cache: Access cache to invalidate (defaults to the process cache)
        settings: Access settings (defaults to environment settings)
        probe: Optional probe override

    Returns:
        GroupService instance
    """
    settings = settings or get_access_settings()
    return GroupService(
        session=session,
        group_repository=GroupRepository(session=session),
        principal_repository=PrincipalRepository(session=session),
        resource_repository=ResourceRepository(session=session),
        cache=cache if cache is not None else get_access_cache(),
        probe=probe or get_group_service_probe(),
        default_max_members=settings.default_max_members,
    )


def get_share_service(
    session: AsyncSession,
    cache: AccessCache | None = None,
    cache_settings: CacheSettings | None = None,
    probe: ShareServiceProbe | None = None,
) -> ShareService:
    """Build a ShareService bound to a write session."""
    cache_settings = cache_settings or get_cache_settings()
    return ShareService(
        session=session,
        share_repository=ShareRepository(session=session),
        resource_repository=ResourceRepository(session=session),
        principal_repository=PrincipalRepository(session=session),
        cache=cache if cache is not None else get_access_cache(),
        probe=probe or get_share_service_probe(),
        cache_ttl=float(cache_settings.ttl_seconds),
    )


def get_access_resolver(
    session: AsyncSession,
    cache: AccessCache | None = None,
    cache_settings: CacheSettings | None = None,
    probe: AccessResolverProbe | None = None,
) -> AccessResolver:
    """Build an AccessResolver. A read session is sufficient."""
    cache_settings = cache_settings or get_cache_settings()
    return AccessResolver(
        resource_repository=ResourceRepository(session=session),
        share_repository=ShareRepository(session=session),
        group_repository=GroupRepository(session=session),
        principal_repository=PrincipalRepository(session=session),
        cache=cache if cache is not None else get_access_cache(),
        probe=probe or get_access_resolver_probe(),
        cache_ttl=float(cache_settings.ttl_seconds),
    )
