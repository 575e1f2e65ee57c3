"""Fixtures for access context unit tests.

Services are exercised against in-memory repositories that honour the
repository protocols, a mocked session with transaction support, and a
controllable clock.
"""

import copy
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from access.application.services import AccessResolver, GroupService, ShareService
from access.domain.aggregates import Group, Principal, Resource, Share
from access.domain.value_objects import (
    GroupId,
    PrincipalId,
    ResourceId,
    ShareId,
    SystemRole,
)
from access.infrastructure.cache import InMemoryAccessCache


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)

    def monotonic(self) -> float:
        return self.now.timestamp()


class InMemoryGroupRepository:
    """IGroupRepository double storing copies, like a real store would."""

    def __init__(self):
        self.groups: dict[str, Group] = {}
        self.save_count = 0

    def _load(self, stored: Group) -> Group:
        group = copy.deepcopy(stored)
        group.collect_events()
        return group

    async def save(self, group: Group) -> None:
        self.save_count += 1
        self.groups[group.id.value] = copy.deepcopy(group)

    async def get_by_id(self, group_id: GroupId, for_update: bool = False):
        stored = self.groups.get(group_id.value)
        return self._load(stored) if stored is not None else None

    async def delete(self, group: Group) -> bool:
        return self.groups.pop(group.id.value, None) is not None

    async def get_member_role(self, group_id: GroupId, principal_id: PrincipalId):
        stored = self.groups.get(group_id.value)
        return stored.get_member_role(principal_id) if stored is not None else None

    async def list_for_principal(self, principal_id: PrincipalId) -> list[Group]:
        return [
            self._load(g) for g in self.groups.values() if g.has_member(principal_id)
        ]

    async def list_public(self, limit: int, offset: int) -> list[Group]:
        public = [self._load(g) for g in self.groups.values() if g.is_public]
        return public[offset : offset + limit]

    async def search(self, query: str, principal_id, limit: int) -> list[Group]:
        needle = query.lower()
        matches = []
        for stored in self.groups.values():
            visible = stored.is_public or (
                principal_id is not None and stored.has_member(principal_id)
            )
            text = f"{stored.name} {stored.description or ''}".lower()
            if visible and needle in text:
                matches.append(self._load(stored))
        return matches[:limit]

    async def list_with_invitation_for(self, identity: str, for_update: bool = False):
        return [
            self._load(g)
            for g in self.groups.values()
            if g.get_invitation(identity) is not None
        ]


class InMemoryShareRepository:
    """IShareRepository double enforcing one share per (resource, grantee)."""

    def __init__(self):
        self.shares: dict[str, Share] = {}

    async def save(self, share: Share) -> None:
        for stored in self.shares.values():
            if (
                stored.id != share.id
                and stored.resource_id == share.resource_id
                and stored.granted_to == share.granted_to
            ):
                raise AssertionError("duplicate share for (resource, grantee)")
        self.shares[share.id.value] = copy.deepcopy(share)

    async def get_by_id(self, share_id: ShareId, for_update: bool = False):
        stored = self.shares.get(share_id.value)
        return copy.deepcopy(stored) if stored is not None else None

    async def get_for_grantee(
        self, resource_id: ResourceId, granted_to: PrincipalId, for_update: bool = False
    ):
        for stored in self.shares.values():
            if stored.resource_id == resource_id and stored.granted_to == granted_to:
                return copy.deepcopy(stored)
        return None

    async def get_live(self, resource_id, granted_to, now: datetime):
        share = await self.get_for_grantee(resource_id, granted_to)
        return share if share is not None and share.is_live(now) else None

    async def list_live_for_grantee(self, granted_to, now: datetime) -> list[Share]:
        live = [
            copy.deepcopy(s)
            for s in self.shares.values()
            if s.granted_to == granted_to and s.is_live(now)
        ]
        return sorted(live, key=lambda s: s.created_at, reverse=True)

    async def list_for_resource(self, resource_id) -> list[Share]:
        return [
            copy.deepcopy(s) for s in self.shares.values() if s.resource_id == resource_id
        ]

    async def delete(self, share: Share) -> bool:
        return self.shares.pop(share.id.value, None) is not None

    async def delete_expired_before(self, cutoff: datetime) -> int:
        expired = [
            key
            for key, s in self.shares.items()
            if s.expires_at is not None and s.expires_at < cutoff
        ]
        for key in expired:
            del self.shares[key]
        return len(expired)


class InMemoryResourceRepository:
    """IResourceRepository double."""

    def __init__(self):
        self.resources: dict[str, Resource] = {}

    def add(self, resource: Resource) -> Resource:
        self.resources[resource.id.value] = resource
        return resource

    async def get_by_id(self, resource_id: ResourceId):
        return self.resources.get(resource_id.value)

    async def list_by_ids(self, resource_ids) -> list[Resource]:
        return [
            self.resources[r.value] for r in resource_ids if r.value in self.resources
        ]

    async def list_ids_by_group(self, group_id: GroupId) -> list[ResourceId]:
        return [r.id for r in self.resources.values() if r.group_id == group_id]

    async def detach_group(self, group_id: GroupId) -> int:
        attached = [r for r in self.resources.values() if r.group_id == group_id]
        for resource in attached:
            self.resources[resource.id.value] = replace(resource, group_id=None)
        return len(attached)


class InMemoryPrincipalRepository:
    """IPrincipalRepository double."""

    def __init__(self):
        self.principals: dict[str, Principal] = {}

    def add(self, principal: Principal) -> Principal:
        self.principals[principal.id.value] = principal
        return principal

    async def get_by_id(self, principal_id: PrincipalId):
        return self.principals.get(principal_id.value)

    async def get_by_email(self, email: str):
        normalized = email.strip().lower()
        for principal in self.principals.values():
            if principal.email.lower() == normalized:
                return principal
        return None

    async def list_by_ids(self, principal_ids) -> list[Principal]:
        return [
            self.principals[p.value] for p in principal_ids if p.value in self.principals
        ]


@pytest.fixture
def mock_session():
    """Create mock async session with transaction support."""
    session = AsyncMock()
    mock_transaction = MagicMock()
    mock_transaction.__aenter__ = AsyncMock(return_value=None)
    mock_transaction.__aexit__ = AsyncMock(return_value=None)
    session.begin = MagicMock(return_value=mock_transaction)
    return session


@pytest.fixture
def clock():
    return FrozenClock(datetime(2026, 3, 2, 9, 0, tzinfo=UTC))


@pytest.fixture
def cache(clock):
    return InMemoryAccessCache(clock=clock.monotonic)


@pytest.fixture
def group_repository():
    return InMemoryGroupRepository()


@pytest.fixture
def share_repository():
    return InMemoryShareRepository()


@pytest.fixture
def resource_repository():
    return InMemoryResourceRepository()


@pytest.fixture
def principal_repository():
    repo = InMemoryPrincipalRepository()
    for name, role in [
        ("alice", SystemRole.USER),
        ("bob", SystemRole.USER),
        ("carol", SystemRole.USER),
        ("dave", SystemRole.USER),
        ("erin", SystemRole.USER),
        ("admin", SystemRole.ADMIN),
        ("root", SystemRole.SUPER_ADMIN),
    ]:
        repo.add(
            Principal(
                id=PrincipalId(name),
                email=f"{name}@example.com",
                display_name=name.capitalize(),
                system_role=role,
            )
        )
    return repo


@pytest.fixture
def alice():
    return PrincipalId("alice")


@pytest.fixture
def bob():
    return PrincipalId("bob")


@pytest.fixture
def carol():
    return PrincipalId("carol")


@pytest.fixture
def dave():
    return PrincipalId("dave")


@pytest.fixture
def group_probe():
    return MagicMock()


@pytest.fixture
def share_probe():
    return MagicMock()


@pytest.fixture
def resolver_probe():
    return MagicMock()


@pytest.fixture
def group_service(
    mock_session,
    group_repository,
    principal_repository,
    resource_repository,
    cache,
    group_probe,
):
    return GroupService(
        session=mock_session,
        group_repository=group_repository,
        principal_repository=principal_repository,
        resource_repository=resource_repository,
        cache=cache,
        probe=group_probe,
    )


@pytest.fixture
def share_service(
    mock_session,
    share_repository,
    resource_repository,
    principal_repository,
    cache,
    share_probe,
    clock,
):
    return ShareService(
        session=mock_session,
        share_repository=share_repository,
        resource_repository=resource_repository,
        principal_repository=principal_repository,
        cache=cache,
        probe=share_probe,
        clock=clock,
    )


@pytest.fixture
def resolver(
    resource_repository,
    share_repository,
    group_repository,
    principal_repository,
    cache,
    resolver_probe,
    clock,
):
    return AccessResolver(
        resource_repository=resource_repository,
        share_repository=share_repository,
        group_repository=group_repository,
        principal_repository=principal_repository,
        cache=cache,
        probe=resolver_probe,
        clock=clock,
    )


@pytest.fixture
def make_group(group_repository, alice):
    """Store a group owned by alice with extra members: make_group(bob=GroupRole.MEMBER)."""

    async def _make(max_members: int = 10, is_public: bool = False, **members):
        group = Group.create(
            name="Platform",
            creator_id=alice,
            max_members=max_members,
            is_public=is_public,
        )
        for principal, role in members.items():
            group.add_member(PrincipalId(principal), role)
        group.collect_events()
        await group_repository.save(group)
        return group

    return _make


@pytest.fixture
def make_resource(resource_repository):
    def _make(resource_id: str = "proj-1", owner: str = "bob", group: Group | None = None):
        return resource_repository.add(
            Resource(
                id=ResourceId(resource_id),
                owner_id=PrincipalId(owner),
                group_id=group.id if group is not None else None,
                name=f"Project {resource_id}",
            )
        )

    return _make
