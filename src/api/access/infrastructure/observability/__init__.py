"""Observability probes for access infrastructure."""

from access.infrastructure.observability.cache_probe import (
    CacheProbe,
    DefaultCacheProbe,
)
from access.infrastructure.observability.repository_probe import (
    DefaultGroupRepositoryProbe,
    DefaultShareRepositoryProbe,
    GroupRepositoryProbe,
    ShareRepositoryProbe,
)

__all__ = [
    "CacheProbe",
    "DefaultCacheProbe",
    "DefaultGroupRepositoryProbe",
    "DefaultShareRepositoryProbe",
    "GroupRepositoryProbe",
    "ShareRepositoryProbe",
]
