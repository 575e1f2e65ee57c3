"""Value objects for the access domain.

Value objects are immutable descriptors that provide type safety and
domain semantics for identifiers, roles, permissions and access levels.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from datetime import datetime
from enum import StrEnum
from typing import Any

from ulid import ULID


@dataclass(frozen=True)
class GroupId:
    """Identifier for a Group aggregate.

    Uses ULID for sortability and distribution-friendly generation.
    """

    value: str

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def generate(cls) -> GroupId:
        """Generate a new GroupId using ULID."""
        return cls(value=str(ULID()))

    @classmethod
    def from_string(cls, value: str) -> GroupId:
        """Create GroupId from string value.

        Args:
            value: ULID string

        Returns:
            GroupId instance

        Raises:
            ValueError: If value is not a valid ULID
        """
        try:
            ULID.from_str(value)
        except ValueError as e:
            raise ValueError(f"Invalid GroupId: {value}") from e

        return cls(value=value)


@dataclass(frozen=True)
class ShareId:
    """Identifier for a Share aggregate."""

    value: str

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def generate(cls) -> ShareId:
        """Generate a new ShareId using ULID."""
        return cls(value=str(ULID()))

    @classmethod
    def from_string(cls, value: str) -> ShareId:
        """Create ShareId from string value.

        Raises:
            ValueError: If value is not a valid ULID
        """
        try:
            ULID.from_str(value)
        except ValueError as e:
            raise ValueError(f"Invalid ShareId: {value}") from e

        return cls(value=value)


@dataclass(frozen=True)
class InvitationId:
    """Identifier for a pending group invitation."""

    value: str

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def generate(cls) -> InvitationId:
        """Generate a new InvitationId using ULID."""
        return cls(value=str(ULID()))


@dataclass(frozen=True)
class PrincipalId:
    """Identifier for an authenticated principal.

    Principals are provisioned by an external identity provider, so the
    value is an opaque string rather than a ULID.
    """

    value: str

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise ValueError("PrincipalId cannot be empty")

    def __str__(self) -> str:
        """Return string representation."""
        return self.value


@dataclass(frozen=True)
class ResourceId:
    """Identifier for a protected resource (e.g. a project)."""

    value: str

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise ValueError("ResourceId cannot be empty")

    def __str__(self) -> str:
        """Return string representation."""
        return self.value


class SystemRole(StrEnum):
    """System-wide role held by every principal."""

    USER = "user"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    def is_administrator(self) -> bool:
        """Check if this role bypasses resource-level checks."""
        return self in (SystemRole.ADMIN, SystemRole.SUPER_ADMIN)


class GroupRole(StrEnum):
    """Roles for group membership.

    Kept separate from SystemRole: both define an ADMIN, and the two
    must never be confused by a lookup.
    """

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    VIEWER = "viewer"


class ResourceType(StrEnum):
    """Resource types known to the permission catalog.

    ANY is the explicit wildcard matching every resource type.
    """

    PROJECTS = "projects"
    PROFILE = "profile"
    SETTINGS = "settings"
    USERS = "users"
    GROUPS = "groups"
    BILLING = "billing"
    GROUP_PROJECTS = "group_projects"
    GROUP_MEMBERS = "group_members"
    GROUP_SETTINGS = "group_settings"
    ANY = "*"


class Action(StrEnum):
    """Actions that can be granted on a resource type.

    MANAGE implies the four CRUD actions on the same resource type.
    ANY is the explicit wildcard matching every action.
    """

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    MANAGE = "manage"
    ANY = "*"


class AccessLevel(StrEnum):
    """Ordered tier of permission on a resource: VIEW < EDIT < ADMIN."""

    VIEW = "view"
    EDIT = "edit"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        """Position of this level in the VIEW < EDIT < ADMIN ordering."""
        return _ACCESS_LEVEL_RANKS[self]

    def satisfies(self, minimum: AccessLevel) -> bool:
        """Check if this level is at least the given minimum."""
        return self.rank >= minimum.rank


_ACCESS_LEVEL_RANKS = {
    AccessLevel.VIEW: 1,
    AccessLevel.EDIT: 2,
    AccessLevel.ADMIN: 3,
}


class AccessReason(StrEnum):
    """Which mechanism justified (or failed to justify) an access decision."""

    OWNER = "owner"
    SYSTEM_ROLE = "system_role"
    SHARE = "share"
    GROUP_ROLE = "group_role"
    NO_GRANT = "no_grant"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class PermissionGrant:
    """A (resource type, action) pair held by a role."""

    resource_type: ResourceType
    action: Action

    def covers(self, resource_type: ResourceType, action: Action) -> bool:
        """Check if this grant authorizes the action on the resource type."""
        type_matches = (
            self.resource_type == ResourceType.ANY
            or self.resource_type == resource_type
        )
        if not type_matches:
            return False

        if self.action == Action.ANY or self.action == action:
            return True

        # MANAGE implies CRUD, but not the other way around
        return self.action == Action.MANAGE and action != Action.ANY


@dataclass(frozen=True)
class ShareSettings:
    """Per-share flags controlling what the grantee may do."""

    allow_download: bool = True
    allow_comments: bool = True
    allow_fork: bool = False
    require_approval: bool = False

    def merge(self, changes: dict[str, bool]) -> ShareSettings:
        """Return a copy with the given flags overridden.

        Raises:
            ValueError: If a key is not a known setting
        """
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise ValueError(f"Unknown share settings: {', '.join(sorted(unknown))}")
        return replace(self, **{k: bool(v) for k, v in changes.items()})

    def to_dict(self) -> dict[str, bool]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ShareSettings:
        """Build settings from a stored dict, ignoring unknown keys."""
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        return cls(**{k: bool(v) for k, v in data.items() if k in known})


@dataclass(frozen=True)
class GroupMember:
    """Represents a principal's membership in a group with a specific role."""

    principal_id: PrincipalId
    role: GroupRole
    joined_at: datetime | None = None

    def is_owner(self) -> bool:
        """Check if this member is an owner."""
        return self.role == GroupRole.OWNER

    def has_admin_privileges(self) -> bool:
        """Check if this member has admin or owner privileges."""
        return self.role in (GroupRole.OWNER, GroupRole.ADMIN)
