"""Protocol for group application service observability.

Defines the interface for domain probes that capture application-level
domain events for group service operations.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class GroupServiceProbe(Protocol):
    """Domain probe for group application service operations."""

    def group_created(
        self,
        group_id: str,
        name: str,
        creator_id: str,
        max_members: int,
    ) -> None:
        """Record that a group was created."""
        ...

    def group_creation_failed(
        self,
        name: str,
        creator_id: str,
        error: str,
    ) -> None:
        """Record that group creation failed."""
        ...

    def group_updated(self, group_id: str, updater_id: str) -> None:
        """Record that group metadata was updated."""
        ...

    def group_deleted(
        self, group_id: str, requester_id: str, detached_resources: int
    ) -> None:
        """Record that a group was deleted and its resources detached."""
        ...

    def member_added(
        self, group_id: str, principal_id: str, role: str, inviter_id: str
    ) -> None:
        """Record that a known principal was added to a group."""
        ...

    def invitation_held(
        self, group_id: str, invitation_id: str, role: str, inviter_id: str
    ) -> None:
        """Record that an invitation is held for an identity without a principal."""
        ...

    def invitation_revoked(
        self, group_id: str, invitation_id: str, requester_id: str
    ) -> None:
        """Record that a pending invitation was withdrawn."""
        ...

    def invitations_accepted(self, principal_id: str, group_ids: list[str]) -> None:
        """Record that pending invitations were bound to a principal."""
        ...

    def member_role_changed(
        self, group_id: str, principal_id: str, new_role: str, updater_id: str
    ) -> None:
        """Record that a member's role changed."""
        ...

    def member_removed(
        self, group_id: str, principal_id: str, remover_id: str
    ) -> None:
        """Record that a member was removed (or left, when remover is the member)."""
        ...

    def permission_denied(
        self, operation: str, group_id: str, principal_id: str, check: str
    ) -> None:
        """Record that a group operation failed its permission check."""
        ...

    def invariant_rejected(
        self, operation: str, group_id: str, invariant: str
    ) -> None:
        """Record that a mutation was rejected to protect a group invariant."""
        ...

    def with_context(self, context: ObservationContext) -> GroupServiceProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultGroupServiceProbe:
    """Default implementation of GroupServiceProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultGroupServiceProbe:
        """Create a new probe with observation context bound."""
        return DefaultGroupServiceProbe(logger=self._logger, context=context)

    def group_created(
        self,
        group_id: str,
        name: str,
        creator_id: str,
        max_members: int,
    ) -> None:
        """Record that a group was created."""
        self._logger.info(
            "group_created",
            group_id=group_id,
            name=name,
            creator_id=creator_id,
            max_members=max_members,
            **self._get_context_kwargs(),
        )

    def group_creation_failed(
        self,
        name: str,
        creator_id: str,
        error: str,
    ) -> None:
        """Record that group creation failed."""
        self._logger.error(
            "group_creation_failed",
            name=name,
            creator_id=creator_id,
            error=error,
            **self._get_context_kwargs(),
        )

    def group_updated(self, group_id: str, updater_id: str) -> None:
        self._logger.info(
            "group_updated",
            group_id=group_id,
            updater_id=updater_id,
            **self._get_context_kwargs(),
        )

    def group_deleted(
        self, group_id: str, requester_id: str, detached_resources: int
    ) -> None:
        self._logger.info(
            "group_deleted",
            group_id=group_id,
            requester_id=requester_id,
            detached_resources=detached_resources,
            **self._get_context_kwargs(),
        )

    def member_added(
        self, group_id: str, principal_id: str, role: str, inviter_id: str
    ) -> None:
        self._logger.info(
            "group_member_added",
            group_id=group_id,
            principal_id=principal_id,
            role=role,
            inviter_id=inviter_id,
            **self._get_context_kwargs(),
        )

    def invitation_held(
        self, group_id: str, invitation_id: str, role: str, inviter_id: str
    ) -> None:
        self._logger.info(
            "group_invitation_held",
            group_id=group_id,
            invitation_id=invitation_id,
            role=role,
            inviter_id=inviter_id,
            **self._get_context_kwargs(),
        )

    def invitation_revoked(
        self, group_id: str, invitation_id: str, requester_id: str
    ) -> None:
        self._logger.info(
            "group_invitation_revoked",
            group_id=group_id,
            invitation_id=invitation_id,
            requester_id=requester_id,
            **self._get_context_kwargs(),
        )

    def invitations_accepted(self, principal_id: str, group_ids: list[str]) -> None:
        self._logger.info(
            "group_invitations_accepted",
            principal_id=principal_id,
            group_ids=group_ids,
            count=len(group_ids),
            **self._get_context_kwargs(),
        )

    def member_role_changed(
        self, group_id: str, principal_id: str, new_role: str, updater_id: str
    ) -> None:
        self._logger.info(
            "group_member_role_changed",
            group_id=group_id,
            principal_id=principal_id,
            new_role=new_role,
            updater_id=updater_id,
            **self._get_context_kwargs(),
        )

    def member_removed(
        self, group_id: str, principal_id: str, remover_id: str
    ) -> None:
        self._logger.info(
            "group_member_removed",
            group_id=group_id,
            principal_id=principal_id,
            remover_id=remover_id,
            self_service=principal_id == remover_id,
            **self._get_context_kwargs(),
        )

    def permission_denied(
        self, operation: str, group_id: str, principal_id: str, check: str
    ) -> None:
        # The operation argument overrides any operation bound in the context
        context = self._get_context_kwargs()
        context.pop("operation", None)
        self._logger.warning(
            "group_permission_denied",
            operation=operation,
            group_id=group_id,
            principal_id=principal_id,
            check=check,
            **context,
        )

    def invariant_rejected(
        self, operation: str, group_id: str, invariant: str
    ) -> None:
        context = self._get_context_kwargs()
        context.pop("operation", None)
        self._logger.warning(
            "group_invariant_rejected",
            operation=operation,
            group_id=group_id,
            invariant=invariant,
            **context,
        )
