"""Domain-Oriented Observability for the access application layer.

Probes for application service operations following Domain-Oriented Observability patterns.
"""

from access.application.observability.access_resolver_probe import (
    AccessResolverProbe,
    DefaultAccessResolverProbe,
)
from access.application.observability.group_service_probe import (
    DefaultGroupServiceProbe,
    GroupServiceProbe,
)
from access.application.observability.share_service_probe import (
    DefaultShareServiceProbe,
    ShareServiceProbe,
)

__all__ = [
    "AccessResolverProbe",
    "DefaultAccessResolverProbe",
    "GroupServiceProbe",
    "DefaultGroupServiceProbe",
    "ShareServiceProbe",
    "DefaultShareServiceProbe",
]
