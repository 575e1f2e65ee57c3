"""Pending group invitation for an identity that has no principal yet."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from access.domain.exceptions import ValidationError
from access.domain.value_objects import GroupId, GroupRole, InvitationId, PrincipalId


def normalize_identity(identity: str) -> str:
    """Normalise an invitation identity (e-mail) for lookups.

    Raises:
        ValidationError: If the identity is blank
    """
    normalized = (identity or "").strip().lower()
    if not normalized:
        raise ValidationError("target_identity", "Invitation identity cannot be empty")
    return normalized


@dataclass(frozen=True)
class Invitation:
    """An invitation held against an identity rather than a principal.

    The invitation occupies a seat in the group until it is either bound to
    a real principal (on that identity's first authentication) or revoked.
    """

    id: InvitationId
    group_id: GroupId
    identity: str
    role: GroupRole
    invited_by: PrincipalId
    created_at: datetime

    @classmethod
    def create(
        cls,
        group_id: GroupId,
        identity: str,
        role: GroupRole,
        invited_by: PrincipalId,
    ) -> Invitation:
        """Factory method for creating a new pending invitation."""
        return cls(
            id=InvitationId.generate(),
            group_id=group_id,
            identity=normalize_identity(identity),
            role=role,
            invited_by=invited_by,
            created_at=datetime.now(UTC),
        )
