"""create access tables

Revision ID: 3c1f0a9e7b21
Revises:
Create Date: 2026-10-19 09:12:44.318205

Creates principals, groups, group_memberships, group_invitations,
resources and resource_shares. Membership and invitation rows cascade
with their group; resources are detached (group_id set to NULL) when
their group is deleted.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "3c1f0a9e7b21"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create the access tables.

    Key constraints:
    - principals unique on lower(email)
    - group_memberships unique on (group_id, principal_id)
    - group_invitations unique on (group_id, identity)
    - resource_shares unique on (resource_id, granted_to)
    """
    op.create_table(
        "principals",
        sa.Column("id", sa.String(255), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("system_role", sa.String(32), nullable=False, server_default="user"),
        *_timestamps(),
        sa.UniqueConstraint("email", name="uq_principals_email"),
    )
    # E-mails are unique regardless of case
    op.create_index(
        "uq_principals_email_lower",
        "principals",
        [sa.text("lower(email)")],
        unique=True,
    )

    op.create_table(
        "groups",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("max_members", sa.Integer, nullable=False, server_default="10"),
        sa.Column("is_public", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column(
            "created_by",
            sa.String(255),
            sa.ForeignKey("principals.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        *_timestamps(),
        sa.CheckConstraint("max_members >= 2", name="ck_groups_max_members_min"),
    )
    op.create_index("idx_groups_name", "groups", ["name"])
    op.create_index("idx_groups_is_public", "groups", ["is_public"])

    op.create_table(
        "group_memberships",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "group_id",
            sa.String(26),
            sa.ForeignKey("groups.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "principal_id",
            sa.String(255),
            sa.ForeignKey("principals.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("role", sa.String(16), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "group_id",
            "principal_id",
            name="uq_group_memberships_group_id_principal_id",
        ),
    )
    op.create_index(
        "idx_group_memberships_principal_id", "group_memberships", ["principal_id"]
    )

    op.create_table(
        "group_invitations",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column(
            "group_id",
            sa.String(26),
            sa.ForeignKey("groups.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("identity", sa.String(320), nullable=False),
        sa.Column("role", sa.String(16), nullable=False),
        sa.Column("invited_by", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "group_id", "identity", name="uq_group_invitations_group_id_identity"
        ),
    )
    op.create_index(
        "idx_group_invitations_identity", "group_invitations", ["identity"]
    )

    op.create_table(
        "resources",
        sa.Column("id", sa.String(255), primary_key=True),
        sa.Column(
            "owner_id",
            sa.String(255),
            sa.ForeignKey("principals.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "group_id",
            sa.String(26),
            sa.ForeignKey("groups.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("name", sa.String(255), nullable=False, server_default=""),
        *_timestamps(),
    )
    op.create_index("idx_resources_owner_id", "resources", ["owner_id"])
    op.create_index("idx_resources_group_id", "resources", ["group_id"])

    op.create_table(
        "resource_shares",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column(
            "resource_id",
            sa.String(255),
            sa.ForeignKey("resources.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("granted_by", sa.String(255), nullable=False),
        sa.Column(
            "granted_to",
            sa.String(255),
            sa.ForeignKey("principals.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("access_level", sa.String(16), nullable=False),
        sa.Column("settings", sa.JSON, nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint(
            "resource_id",
            "granted_to",
            name="uq_resource_shares_resource_id_granted_to",
        ),
    )
    op.create_index(
        "idx_resource_shares_granted_to", "resource_shares", ["granted_to"]
    )
    # Partial index: only expiring shares are scanned by expiry queries
    op.create_index(
        "idx_resource_shares_expires_at",
        "resource_shares",
        ["expires_at"],
        postgresql_where=sa.text("expires_at IS NOT NULL"),
    )


def downgrade() -> None:
    """Drop the access tables and their indexes."""
    op.drop_index("idx_resource_shares_expires_at", table_name="resource_shares")
    op.drop_index("idx_resource_shares_granted_to", table_name="resource_shares")
    op.drop_table("resource_shares")

    op.drop_index("idx_resources_group_id", table_name="resources")
    op.drop_index("idx_resources_owner_id", table_name="resources")
    op.drop_table("resources")

    op.drop_index("idx_group_invitations_identity", table_name="group_invitations")
    op.drop_table("group_invitations")

    op.drop_index("idx_group_memberships_principal_id", table_name="group_memberships")
    op.drop_table("group_memberships")

    op.drop_index("idx_groups_is_public", table_name="groups")
    op.drop_index("idx_groups_name", table_name="groups")
    op.drop_table("groups")

    op.drop_index("uq_principals_email_lower", table_name="principals")
    op.drop_table("principals")
