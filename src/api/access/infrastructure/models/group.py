"""SQLAlchemy ORM models for groups, memberships and pending invitations."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models import Base, TimestampMixin


class GroupModel(Base, TimestampMixin):
    """ORM model for groups table (metadata only).

    Memberships and invitations live in their own tables and are loaded
    by the repository when it hydrates the Group aggregate. Group names
    are not unique.
    """

    __tablename__ = "groups"

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    max_members: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    is_public: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, index=True
    )
    created_by: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("principals.id", ondelete="RESTRICT"),
        nullable=False,
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<GroupModel(id={self.id}, name={self.name})>"


class GroupMembershipModel(Base):
    """ORM model for group_memberships table.

    A principal holds at most one membership, with one role, per group.
    """

    __tablename__ = "group_memberships"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    group_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
    )
    principal_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("principals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(String(16), nullable=False)
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (UniqueConstraint("group_id", "principal_id"),)

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<GroupMembershipModel(group_id={self.group_id}, "
            f"principal_id={self.principal_id}, role={self.role})>"
        )


class GroupInvitationModel(Base):
    """ORM model for group_invitations table.

    An invitation holds a seat for an identity with no principal yet. The
    identity is stored normalised (trimmed, lowercased).
    """

    __tablename__ = "group_invitations"

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    group_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
    )
    identity: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(16), nullable=False)
    invited_by: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    __table_args__ = (UniqueConstraint("group_id", "identity"),)

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<GroupInvitationModel(id={self.id}, group_id={self.group_id}, "
            f"identity={self.identity})>"
        )
