"""Unit tests for GroupService.

Runs against in-memory repositories so that aggregate invariants, permission
checks and cache invalidation are exercised together.
"""

import pytest

from access.application.services import GroupService
from access.domain.exceptions import (
    ConflictError,
    ForbiddenError,
    HiddenResourceError,
    NotFoundError,
    ValidationError,
)
from access.domain.value_objects import GroupId, GroupRole, PrincipalId
from access.ports.cache import access_decision_key

ROOT = PrincipalId("root")
ADMIN = PrincipalId("admin")


class TestCreateGroup:
    """Tests for GroupService.create_group."""

    @pytest.mark.asyncio
    async def test_creator_is_owner(self, group_service, group_repository, alice):
        group = await group_service.create_group(name="Platform", creator_id=alice)

        stored = group_repository.groups[group.id.value]
        assert stored.get_member_role(alice) == GroupRole.OWNER
        assert stored.max_members == 10

    @pytest.mark.asyncio
    async def test_uses_transaction(self, group_service, mock_session, alice):
        await group_service.create_group(name="Platform", creator_id=alice)

        mock_session.begin.assert_called_once()

    @pytest.mark.asyncio
    async def test_probe_records_creation(self, group_service, group_probe, alice):
        group = await group_service.create_group(
            name="Platform", creator_id=alice, max_members=5
        )

        group_probe.group_created.assert_called_once_with(
            group_id=group.id.value,
            name="Platform",
            creator_id="alice",
            max_members=5,
        )

    @pytest.mark.asyncio
    async def test_default_capacity_comes_from_service(
        self,
        mock_session,
        group_repository,
        principal_repository,
        resource_repository,
        cache,
        alice,
    ):
        service = GroupService(
            session=mock_session,
            group_repository=group_repository,
            principal_repository=principal_repository,
            resource_repository=resource_repository,
            cache=cache,
            default_max_members=3,
        )

        group = await service.create_group(name="Trio", creator_id=alice)

        assert group.max_members == 3

    @pytest.mark.asyncio
    async def test_invalid_input_is_reported(
        self, group_service, group_probe, group_repository, alice
    ):
        with pytest.raises(ValidationError):
            await group_service.create_group(name="  ", creator_id=alice)

        group_probe.group_creation_failed.assert_called_once()
        assert group_repository.groups == {}


class TestInviteMember:
    """Tests for GroupService.invite_member."""

    @pytest.mark.asyncio
    async def test_known_identity_becomes_member(
        self, group_service, group_repository, group_probe, make_group, alice, bob
    ):
        group = await make_group()

        invitation = await group_service.invite_member(
            group.id, alice, "Bob@Example.com", GroupRole.MEMBER
        )

        assert invitation is None
        assert group_repository.groups[group.id.value].get_member_role(bob) == (
            GroupRole.MEMBER
        )
        group_probe.member_added.assert_called_once_with(
            group_id=group.id.value,
            principal_id="bob",
            role="member",
            inviter_id="alice",
        )

    @pytest.mark.asyncio
    async def test_unknown_identity_holds_a_seat(
        self, group_service, group_repository, make_group, alice
    ):
        group = await make_group()

        invitation = await group_service.invite_member(
            group.id, alice, "frank@example.com", GroupRole.VIEWER
        )

        assert invitation is not None
        stored = group_repository.groups[group.id.value]
        assert stored.get_invitation("frank@example.com") is not None
        assert stored.seats_taken == 2

    @pytest.mark.asyncio
    async def test_group_admin_can_invite(self, group_service, make_group, bob):
        group = await make_group(bob=GroupRole.ADMIN)

        await group_service.invite_member(
            group.id, bob, "carol@example.com", GroupRole.MEMBER
        )

    @pytest.mark.asyncio
    async def test_member_cannot_invite(
        self, group_service, group_probe, make_group, bob
    ):
        group = await make_group(bob=GroupRole.MEMBER)

        with pytest.raises(ForbiddenError) as exc_info:
            await group_service.invite_member(
                group.id, bob, "carol@example.com", GroupRole.MEMBER
            )

        assert exc_info.value.check == "group_members:manage"
        group_probe.permission_denied.assert_called_once_with(
            "invite_member", group.id.value, "bob", "group_members:manage"
        )

    @pytest.mark.asyncio
    async def test_super_admin_can_invite_without_membership(
        self, group_service, group_repository, make_group, carol
    ):
        group = await make_group()

        await group_service.invite_member(
            group.id, ROOT, "carol@example.com", GroupRole.MEMBER
        )

        assert group_repository.groups[group.id.value].has_member(carol)

    @pytest.mark.asyncio
    async def test_system_admin_holds_no_group_permissions(
        self, group_service, make_group
    ):
        """A system ADMIN is not a group ADMIN."""
        group = await make_group()

        with pytest.raises(ForbiddenError):
            await group_service.invite_member(
                group.id, ADMIN, "carol@example.com", GroupRole.MEMBER
            )

    @pytest.mark.asyncio
    async def test_full_group_rejects_invite(
        self, group_service, group_probe, make_group, alice
    ):
        group = await make_group(max_members=2, bob=GroupRole.MEMBER)

        with pytest.raises(ConflictError) as exc_info:
            await group_service.invite_member(
                group.id, alice, "carol@example.com", GroupRole.MEMBER
            )

        assert exc_info.value.invariant == "capacity"
        group_probe.invariant_rejected.assert_called_once_with(
            "invite_member", group.id.value, "capacity"
        )

    @pytest.mark.asyncio
    async def test_pending_invitations_count_towards_capacity(
        self, group_service, make_group, alice
    ):
        group = await make_group(max_members=2)
        await group_service.invite_member(
            group.id, alice, "frank@example.com", GroupRole.MEMBER
        )

        with pytest.raises(ConflictError):
            await group_service.invite_member(
                group.id, alice, "bob@example.com", GroupRole.MEMBER
            )

    @pytest.mark.asyncio
    async def test_existing_member_is_a_conflict(
        self, group_service, make_group, alice
    ):
        group = await make_group(bob=GroupRole.MEMBER)

        with pytest.raises(ConflictError) as exc_info:
            await group_service.invite_member(
                group.id, alice, "bob@example.com", GroupRole.ADMIN
            )

        assert exc_info.value.invariant == "duplicate_member"

    @pytest.mark.asyncio
    async def test_missing_group(self, group_service, alice):
        with pytest.raises(NotFoundError) as exc_info:
            await group_service.invite_member(
                GroupId.generate(), alice, "bob@example.com", GroupRole.MEMBER
            )

        assert exc_info.value.entity == "group"

    @pytest.mark.asyncio
    async def test_new_member_sees_fresh_access(
        self, group_service, make_group, make_resource, cache, alice, carol
    ):
        group = await make_group()
        resource = make_resource(owner="alice", group=group)
        key = access_decision_key(resource.id, carol)
        await cache.set(key, {"allowed": False}, 60)

        await group_service.invite_member(
            group.id, alice, "carol@example.com", GroupRole.VIEWER
        )

        assert await cache.get(key) is None


class TestAcceptPendingInvitations:
    """Tests for binding invitations on first authentication."""

    @pytest.mark.asyncio
    async def test_binds_every_pending_invitation(
        self, group_service, group_repository, group_probe, make_group, alice
    ):
        first = await make_group()
        second = await make_group()
        for group in (first, second):
            await group_service.invite_member(
                group.id, alice, "frank@example.com", GroupRole.MEMBER
            )
        frank = PrincipalId("frank")

        joined = await group_service.accept_pending_invitations(
            frank, "Frank@Example.com"
        )

        assert {g.id for g in joined} == {first.id, second.id}
        for group in (first, second):
            stored = group_repository.groups[group.id.value]
            assert stored.get_member_role(frank) == GroupRole.MEMBER
            assert stored.invitations == []
        group_probe.invitations_accepted.assert_called_once()

    @pytest.mark.asyncio
    async def test_nothing_pending(self, group_service, group_probe):
        joined = await group_service.accept_pending_invitations(
            PrincipalId("frank"), "frank@example.com"
        )

        assert joined == []
        group_probe.invitations_accepted.assert_not_called()


class TestRevokeInvitation:
    """Tests for GroupService.revoke_invitation."""

    @pytest.mark.asyncio
    async def test_revoke_frees_seat(
        self, group_service, group_repository, make_group, alice
    ):
        group = await make_group(max_members=2)
        invitation = await group_service.invite_member(
            group.id, alice, "frank@example.com", GroupRole.MEMBER
        )

        await group_service.revoke_invitation(group.id, invitation.id, alice)

        stored = group_repository.groups[group.id.value]
        assert stored.invitations == []
        assert not stored.is_full()

    @pytest.mark.asyncio
    async def test_viewer_cannot_revoke(self, group_service, make_group, alice, bob):
        group = await make_group(bob=GroupRole.VIEWER)
        invitation = await group_service.invite_member(
            group.id, alice, "frank@example.com", GroupRole.MEMBER
        )

        with pytest.raises(ForbiddenError):
            await group_service.revoke_invitation(group.id, invitation.id, bob)


class TestUpdateMemberRole:
    """Tests for GroupService.update_member_role."""

    @pytest.mark.asyncio
    async def test_owner_promotes_member(
        self, group_service, group_repository, make_group, alice, bob
    ):
        group = await make_group(bob=GroupRole.MEMBER)

        await group_service.update_member_role(group.id, bob, GroupRole.ADMIN, alice)

        assert group_repository.groups[group.id.value].get_member_role(bob) == (
            GroupRole.ADMIN
        )

    @pytest.mark.asyncio
    async def test_cannot_demote_last_owner(
        self, group_service, group_repository, group_probe, make_group, alice
    ):
        group = await make_group()

        with pytest.raises(ConflictError):
            await group_service.update_member_role(
                group.id, alice, GroupRole.MEMBER, alice
            )

        assert group_repository.groups[group.id.value].get_member_role(alice) == (
            GroupRole.OWNER
        )
        group_probe.invariant_rejected.assert_called_once_with(
            "update_member_role", group.id.value, "last_owner"
        )

    @pytest.mark.asyncio
    async def test_role_change_invalidates_cached_access(
        self, group_service, make_group, make_resource, cache, alice, bob
    ):
        group = await make_group(bob=GroupRole.ADMIN)
        resource = make_resource(owner="alice", group=group)
        key = access_decision_key(resource.id, bob)
        await cache.set(key, {"allowed": True}, 60)

        await group_service.update_member_role(group.id, bob, GroupRole.VIEWER, alice)

        assert await cache.get(key) is None


class TestRemoveMember:
    """Tests for GroupService.remove_member and leave_group."""

    @pytest.mark.asyncio
    async def test_admin_removes_member(
        self, group_service, group_repository, make_group, bob, carol
    ):
        group = await make_group(bob=GroupRole.ADMIN, carol=GroupRole.MEMBER)

        await group_service.remove_member(group.id, carol, bob)

        assert not group_repository.groups[group.id.value].has_member(carol)

    @pytest.mark.asyncio
    async def test_removed_member_loses_cached_access(
        self, group_service, make_group, make_resource, cache, alice, carol
    ):
        group = await make_group(carol=GroupRole.MEMBER)
        resource = make_resource(owner="alice", group=group)
        key = access_decision_key(resource.id, carol)
        await cache.set(key, {"allowed": True}, 60)

        await group_service.remove_member(group.id, carol, alice)

        assert await cache.get(key) is None

    @pytest.mark.asyncio
    async def test_unknown_member(self, group_service, make_group, alice, carol):
        group = await make_group()

        with pytest.raises(NotFoundError) as exc_info:
            await group_service.remove_member(group.id, carol, alice)

        assert exc_info.value.entity == "member"

    @pytest.mark.asyncio
    async def test_member_leaves(
        self, group_service, group_repository, group_probe, make_group, bob
    ):
        group = await make_group(bob=GroupRole.MEMBER)

        await group_service.leave_group(group.id, bob)

        assert not group_repository.groups[group.id.value].has_member(bob)
        group_probe.member_removed.assert_called_once_with(
            group_id=group.id.value, principal_id="bob", remover_id="bob"
        )

    @pytest.mark.asyncio
    async def test_last_owner_cannot_leave(
        self, group_service, group_probe, make_group, alice
    ):
        group = await make_group(bob=GroupRole.ADMIN)

        with pytest.raises(ConflictError):
            await group_service.leave_group(group.id, alice)

        group_probe.invariant_rejected.assert_called_once_with(
            "leave_group", group.id.value, "last_owner"
        )


class TestUpdateGroup:
    """Tests for GroupService.update_group."""

    @pytest.mark.asyncio
    async def test_owner_updates_details(
        self, group_service, group_repository, make_group, alice
    ):
        group = await make_group()

        await group_service.update_group(
            group.id, alice, name="Platform Team", is_public=True
        )

        stored = group_repository.groups[group.id.value]
        assert stored.name == "Platform Team"
        assert stored.is_public is True

    @pytest.mark.asyncio
    async def test_group_admin_cannot_update_settings(
        self, group_service, make_group, bob
    ):
        group = await make_group(bob=GroupRole.ADMIN)

        with pytest.raises(ForbiddenError) as exc_info:
            await group_service.update_group(group.id, bob, name="Renamed")

        assert exc_info.value.check == "group_settings:update"

    @pytest.mark.asyncio
    async def test_capacity_below_seats_taken(self, group_service, make_group, alice):
        group = await make_group(bob=GroupRole.MEMBER, carol=GroupRole.MEMBER)

        with pytest.raises(ConflictError):
            await group_service.update_group(group.id, alice, max_members=2)


class TestDeleteGroup:
    """Tests for GroupService.delete_group."""

    @pytest.mark.asyncio
    async def test_creator_deletes_and_resources_are_detached(
        self,
        group_service,
        group_repository,
        resource_repository,
        group_probe,
        make_group,
        make_resource,
        alice,
    ):
        group = await make_group(bob=GroupRole.MEMBER)
        make_resource("proj-1", owner="alice", group=group)
        make_resource("proj-2", owner="bob", group=group)

        await group_service.delete_group(group.id, alice)

        assert group.id.value not in group_repository.groups
        assert all(r.group_id is None for r in resource_repository.resources.values())
        assert set(resource_repository.resources) == {"proj-1", "proj-2"}
        group_probe.group_deleted.assert_called_once_with(
            group_id=group.id.value, requester_id="alice", detached_resources=2
        )

    @pytest.mark.asyncio
    async def test_deletion_invalidates_members_access(
        self, group_service, make_group, make_resource, cache, alice, bob
    ):
        group = await make_group(bob=GroupRole.MEMBER)
        resource = make_resource(owner="alice", group=group)
        key = access_decision_key(resource.id, bob)
        await cache.set(key, {"allowed": True}, 60)

        await group_service.delete_group(group.id, alice)

        assert await cache.get(key) is None

    @pytest.mark.asyncio
    async def test_other_owner_cannot_delete(
        self, group_service, group_repository, make_group, bob
    ):
        group = await make_group(bob=GroupRole.OWNER)

        with pytest.raises(ForbiddenError) as exc_info:
            await group_service.delete_group(group.id, bob)

        assert exc_info.value.check == "group:delete"
        assert group.id.value in group_repository.groups

    @pytest.mark.asyncio
    async def test_system_admin_cannot_delete(self, group_service, make_group):
        group = await make_group()

        with pytest.raises(ForbiddenError):
            await group_service.delete_group(group.id, ADMIN)

    @pytest.mark.asyncio
    async def test_super_admin_deletes(
        self, group_service, group_repository, make_group
    ):
        group = await make_group()

        await group_service.delete_group(group.id, ROOT)

        assert group.id.value not in group_repository.groups


class TestGroupQueries:
    """Tests for the read-side operations."""

    @pytest.mark.asyncio
    async def test_private_group_hidden_from_stranger(
        self, group_service, make_group, carol
    ):
        group = await make_group()

        with pytest.raises(HiddenResourceError):
            await group_service.get_group(group.id, carol)

    @pytest.mark.asyncio
    async def test_public_group_visible_to_anyone(
        self, group_service, make_group, carol
    ):
        group = await make_group(is_public=True)

        found = await group_service.get_group(group.id, carol)

        assert found.id == group.id

    @pytest.mark.asyncio
    async def test_system_admin_sees_private_group(self, group_service, make_group):
        group = await make_group()

        found = await group_service.get_group(group.id, ADMIN)

        assert found.id == group.id

    @pytest.mark.asyncio
    async def test_get_member_role(self, group_service, make_group, bob, carol):
        group = await make_group(bob=GroupRole.VIEWER)

        assert await group_service.get_member_role(group.id, bob) == GroupRole.VIEWER
        assert await group_service.get_member_role(group.id, carol) is None

    @pytest.mark.asyncio
    async def test_list_groups_for_principal(
        self, group_service, make_group, bob
    ):
        mine = await make_group(bob=GroupRole.MEMBER)
        await make_group()

        groups = await group_service.list_groups_for_principal(bob)

        assert [g.id for g in groups] == [mine.id]

    @pytest.mark.asyncio
    async def test_list_public_groups_clamps_limit(self, group_service, make_group):
        await make_group(is_public=True)
        await make_group(is_public=True)
        await make_group()

        assert len(await group_service.list_public_groups()) == 2
        assert len(await group_service.list_public_groups(limit=0)) == 1

    @pytest.mark.asyncio
    async def test_search_blank_query(self, group_service):
        assert await group_service.search_groups("   ") == []

    @pytest.mark.asyncio
    async def test_search_hides_private_groups_of_others(
        self, group_service, group_repository, make_group, alice, carol
    ):
        await make_group()

        assert await group_service.search_groups("plat", carol) == []
        assert len(await group_service.search_groups("plat", alice)) == 1
