"""Repository protocols (ports) for the access bounded context.

Repository protocols define the interface for persisting and retrieving
aggregates. Every write happens inside a transaction opened by the calling
service; repositories never commit on their own.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from access.domain.aggregates import Group, Principal, Resource, Share
from access.domain.value_objects import (
    GroupId,
    GroupRole,
    PrincipalId,
    ResourceId,
    ShareId,
)


@runtime_checkable
class IGroupRepository(Protocol):
    """Repository for Group aggregate persistence.

    Returns fully hydrated Group aggregates: metadata, memberships and
    pending invitations.
    """

    async def save(self, group: Group) -> None:
        """Persist a group aggregate.

        Creates a new group or updates an existing one, and brings the
        stored memberships and invitations in line with the aggregate.

        Args:
            group: The Group aggregate to persist
        """
        ...

    async def get_by_id(
        self, group_id: GroupId, for_update: bool = False
    ) -> Group | None:
        """Retrieve a group by its ID.

        Args:
            group_id: The unique identifier of the group
            for_update: Lock the group row until the surrounding transaction
                ends, so that concurrent mutations of the group serialize

        Returns:
            The Group aggregate, or None if not found
        """
        ...

    async def delete(self, group: Group) -> bool:
        """Delete a group with its memberships and invitations.

        Args:
            group: The Group aggregate to delete (with deletion event recorded)

        Returns:
            True if deleted, False if not found
        """
        ...

    async def get_member_role(
        self, group_id: GroupId, principal_id: PrincipalId
    ) -> GroupRole | None:
        """Look up one principal's role without hydrating the whole group."""
        ...

    async def list_for_principal(self, principal_id: PrincipalId) -> list[Group]:
        """List groups the principal is a member of, most recently updated first."""
        ...

    async def list_public(self, limit: int, offset: int) -> list[Group]:
        """List public groups, newest first."""
        ...

    async def search(
        self, query: str, principal_id: PrincipalId | None, limit: int
    ) -> list[Group]:
        """Search name and description (case-insensitive).

        Only public groups and groups the principal belongs to are returned.
        """
        ...

    async def list_with_invitation_for(
        self, identity: str, for_update: bool = False
    ) -> list[Group]:
        """List groups holding a pending invitation for the identity."""
        ...


@runtime_checkable
class IShareRepository(Protocol):
    """Repository for Share aggregate persistence.

    Shares are unique per (resource, grantee). Read methods that take a
    ``now`` argument only return shares that are live at that moment.
    """

    async def save(self, share: Share) -> None:
        """Persist a share aggregate (insert or update)."""
        ...

    async def get_by_id(
        self, share_id: ShareId, for_update: bool = False
    ) -> Share | None:
        """Retrieve a share by ID regardless of expiry."""
        ...

    async def get_for_grantee(
        self,
        resource_id: ResourceId,
        granted_to: PrincipalId,
        for_update: bool = False,
    ) -> Share | None:
        """Retrieve the share of a resource to a principal regardless of expiry.

        Used by the write path, which updates an expired share in place
        rather than inserting a duplicate.
        """
        ...

    async def get_live(
        self, resource_id: ResourceId, granted_to: PrincipalId, now: datetime
    ) -> Share | None:
        """Retrieve the live share of a resource to a principal, if any."""
        ...

    async def list_live_for_grantee(
        self, granted_to: PrincipalId, now: datetime
    ) -> list[Share]:
        """List live shares granted to a principal, newest first."""
        ...

    async def list_for_resource(self, resource_id: ResourceId) -> list[Share]:
        """List every share of a resource, expired ones included."""
        ...

    async def delete(self, share: Share) -> bool:
        """Delete a share.

        Returns:
            True if deleted, False if not found
        """
        ...

    async def delete_expired_before(self, cutoff: datetime) -> int:
        """Delete shares that expired before the cutoff.

        Returns:
            Number of shares deleted
        """
        ...


@runtime_checkable
class IResourceRepository(Protocol):
    """Read access to protected resources.

    The only write is detaching resources from a deleted group.
    """

    async def get_by_id(self, resource_id: ResourceId) -> Resource | None:
        """Retrieve a resource's owner and group."""
        ...

    async def list_by_ids(self, resource_ids: list[ResourceId]) -> list[Resource]:
        """Retrieve several resources; missing ones are skipped."""
        ...

    async def list_ids_by_group(self, group_id: GroupId) -> list[ResourceId]:
        """List resources attached to a group."""
        ...

    async def detach_group(self, group_id: GroupId) -> int:
        """Clear the group link of every resource attached to the group.

        Returns:
            Number of resources detached
        """
        ...


@runtime_checkable
class IPrincipalRepository(Protocol):
    """Read access to principals provisioned by the identity provider."""

    async def get_by_id(self, principal_id: PrincipalId) -> Principal | None:
        """Retrieve a principal by ID."""
        ...

    async def get_by_email(self, email: str) -> Principal | None:
        """Retrieve a principal by (case-insensitive) e-mail."""
        ...

    async def list_by_ids(self, principal_ids: list[PrincipalId]) -> list[Principal]:
        """Retrieve several principals; missing ones are skipped."""
        ...
