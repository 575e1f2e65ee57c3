"""Ports (interfaces) for the access bounded context.

Ports define the contracts for repositories and the read cache without
specifying implementation details. This allows for dependency inversion
and makes the domain layer independent of infrastructure.
"""

from access.ports.cache import AccessCache, access_decision_key, shared_with_key
from access.ports.repositories import (
    IGroupRepository,
    IPrincipalRepository,
    IResourceRepository,
    IShareRepository,
)

__all__ = [
    "AccessCache",
    "IGroupRepository",
    "IPrincipalRepository",
    "IResourceRepository",
    "IShareRepository",
    "access_decision_key",
    "shared_with_key",
]
