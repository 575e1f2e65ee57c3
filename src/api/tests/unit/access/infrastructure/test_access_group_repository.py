"""Unit tests for GroupRepository.

Tests verify repository behavior with a mocked AsyncSession.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from access.domain.aggregates import Group
from access.domain.value_objects import GroupId, GroupRole, PrincipalId
from access.infrastructure.group_repository import GroupRepository, _escape_like
from access.infrastructure.models import (
    GroupInvitationModel,
    GroupMembershipModel,
    GroupModel,
)
from access.ports.repositories import IGroupRepository

JOINED = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _scalar(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def _rows(*rows):
    result = MagicMock()
    result.scalars.return_value.all.return_value = list(rows)
    return result


@pytest.fixture
def mock_session():
    """Create mock async session."""
    session = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def mock_probe():
    """Create mock repository probe."""
    return MagicMock()


@pytest.fixture
def repository(mock_session, mock_probe):
    return GroupRepository(session=mock_session, probe=mock_probe)


@pytest.fixture
def group_model():
    return GroupModel(
        id="01HX0000000000000000000000",
        name="Platform",
        description=None,
        max_members=10,
        is_public=False,
        created_by="alice",
        created_at=JOINED,
        updated_at=JOINED,
    )


class TestProtocolCompliance:
    """Tests for protocol compliance."""

    def test_implements_protocol(self, repository):
        """Repository should implement IGroupRepository protocol."""
        assert isinstance(repository, IGroupRepository)


class TestSave:
    """Tests for save method."""

    @pytest.mark.asyncio
    async def test_inserts_group_and_owner_membership(
        self, repository, mock_session, mock_probe
    ):
        group = Group.create(name="Platform", creator_id=PrincipalId("alice"))
        mock_session.execute.side_effect = [_scalar(None), _rows(), _rows()]

        await repository.save(group)

        added = [call.args[0] for call in mock_session.add.call_args_list]
        assert isinstance(added[0], GroupModel)
        assert added[0].id == group.id.value
        assert added[0].created_by == "alice"
        assert isinstance(added[1], GroupMembershipModel)
        assert (added[1].principal_id, added[1].role) == ("alice", "owner")
        mock_probe.group_saved.assert_called_once_with(group.id.value, 1, 0)

    @pytest.mark.asyncio
    async def test_updates_existing_group(self, repository, mock_session, group_model):
        group = Group(
            id=GroupId(group_model.id),
            name="Platform Team",
            created_by=PrincipalId("alice"),
            max_members=5,
            is_public=True,
        )
        mock_session.execute.side_effect = [_scalar(group_model), _rows(), _rows()]

        await repository.save(group)

        assert group_model.name == "Platform Team"
        assert group_model.max_members == 5
        assert group_model.is_public is True
        mock_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_syncs_membership_rows(self, repository, mock_session, group_model):
        group = Group.create(name="Platform", creator_id=PrincipalId("alice"))
        group.id = GroupId(group_model.id)
        group.add_member(PrincipalId("carol"), GroupRole.VIEWER)
        alice_row = GroupMembershipModel(
            group_id=group_model.id, principal_id="alice", role="member", joined_at=JOINED
        )
        bob_row = GroupMembershipModel(
            group_id=group_model.id, principal_id="bob", role="member", joined_at=JOINED
        )
        mock_session.execute.side_effect = [
            _scalar(group_model),
            _rows(alice_row, bob_row),
            _rows(),
        ]

        await repository.save(group)

        mock_session.delete.assert_awaited_once_with(bob_row)
        assert alice_row.role == "owner"
        added = mock_session.add.call_args[0][0]
        assert (added.principal_id, added.role) == ("carol", "viewer")

    @pytest.mark.asyncio
    async def test_syncs_invitation_rows(self, repository, mock_session, group_model):
        group = Group.create(name="Platform", creator_id=PrincipalId("alice"))
        group.id = GroupId(group_model.id)
        invitation = group.invite("frank@example.com", GroupRole.MEMBER, group.created_by)
        stale = GroupInvitationModel(
            id="01HX0000000000000000000001",
            group_id=group_model.id,
            identity="old@example.com",
            role="member",
            invited_by="alice",
            created_at=JOINED,
        )
        owner_row = GroupMembershipModel(
            group_id=group_model.id, principal_id="alice", role="owner", joined_at=JOINED
        )
        mock_session.execute.side_effect = [
            _scalar(group_model),
            _rows(owner_row),
            _rows(stale),
        ]

        await repository.save(group)

        mock_session.delete.assert_awaited_once_with(stale)
        added = mock_session.add.call_args[0][0]
        assert isinstance(added, GroupInvitationModel)
        assert added.id == invitation.id.value
        assert added.identity == "frank@example.com"


class TestGetById:
    """Tests for get_by_id method."""

    @pytest.mark.asyncio
    async def test_returns_none_when_missing(self, repository, mock_session, mock_probe):
        mock_session.execute.return_value = _scalar(None)
        group_id = GroupId.generate()

        assert await repository.get_by_id(group_id) is None
        mock_probe.group_not_found.assert_called_once_with(group_id.value)

    @pytest.mark.asyncio
    async def test_hydrates_members_and_invitations(
        self, repository, mock_session, mock_probe, group_model
    ):
        member = GroupMembershipModel(
            group_id=group_model.id, principal_id="alice", role="owner", joined_at=JOINED
        )
        pending = GroupInvitationModel(
            id="01HX0000000000000000000002",
            group_id=group_model.id,
            identity="frank@example.com",
            role="viewer",
            invited_by="alice",
            created_at=JOINED,
        )
        mock_session.execute.side_effect = [
            _scalar(group_model),
            _rows(member),
            _rows(pending),
        ]

        group = await repository.get_by_id(GroupId(group_model.id), for_update=True)

        assert group.name == "Platform"
        assert group.get_member_role(PrincipalId("alice")) == GroupRole.OWNER
        assert group.get_invitation("frank@example.com").role == GroupRole.VIEWER
        assert group.seats_taken == 2
        assert group.collect_events() == []
        mock_probe.group_retrieved.assert_called_once_with(group_model.id, 1)


class TestDelete:
    """Tests for delete method."""

    @pytest.mark.asyncio
    async def test_returns_false_when_missing(self, repository, mock_session):
        mock_session.execute.return_value = _scalar(None)
        group = Group.create(name="Platform", creator_id=PrincipalId("alice"))

        assert await repository.delete(group) is False
        mock_session.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_deletes_rows(self, repository, mock_session, mock_probe, group_model):
        mock_session.execute.return_value = _scalar(group_model)
        group = Group.create(name="Platform", creator_id=PrincipalId("alice"))

        assert await repository.delete(group) is True
        mock_session.delete.assert_awaited_once_with(group_model)
        mock_probe.group_deleted.assert_called_once_with(group.id.value)


class TestQueries:
    """Tests for lookup helpers."""

    @pytest.mark.asyncio
    async def test_get_member_role(self, repository, mock_session):
        mock_session.execute.return_value = _scalar("admin")

        role = await repository.get_member_role(GroupId.generate(), PrincipalId("bob"))

        assert role is GroupRole.ADMIN

    @pytest.mark.asyncio
    async def test_get_member_role_for_non_member(self, repository, mock_session):
        mock_session.execute.return_value = _scalar(None)

        assert (
            await repository.get_member_role(GroupId.generate(), PrincipalId("bob"))
            is None
        )

    @pytest.mark.asyncio
    async def test_empty_listing_skips_hydration(self, repository, mock_session):
        mock_session.execute.return_value = _rows()

        assert await repository.list_public(limit=20, offset=0) == []
        assert mock_session.execute.await_count == 1

    def test_like_wildcards_are_escaped(self):
        assert _escape_like("50%_off\\") == "50\\%\\_off\\\\"
