"""Read models for resources and principals.

Neither is owned by this context: resources are only read for their owner
and group, and principals for their identity and system role.
"""

from __future__ import annotations

from dataclasses import dataclass

from access.domain.value_objects import GroupId, PrincipalId, ResourceId, SystemRole


@dataclass(frozen=True)
class Resource:
    """A protected resource (e.g. a project).

    Ownership never changes through this context. The group link is only
    ever cleared, when the group it points at is deleted.
    """

    id: ResourceId
    owner_id: PrincipalId
    group_id: GroupId | None = None
    name: str = ""

    def is_owned_by(self, principal_id: PrincipalId) -> bool:
        """Check if the principal is the resource owner."""
        return self.owner_id == principal_id


@dataclass(frozen=True)
class Principal:
    """An authenticated identity with its system-wide role."""

    id: PrincipalId
    email: str
    display_name: str = ""
    system_role: SystemRole = SystemRole.USER

    def __eq__(self, other: object) -> bool:
        """Principals are equal if they have the same ID (identity-based equality)."""
        if not isinstance(other, Principal):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        """Hash based on ID for use in sets and dicts."""
        return hash(self.id)
