"""SQLAlchemy ORM model for the resources table.

Resources (projects) are owned by another part of the product. This
context reads their owner and group, and clears the group link when the
group is deleted.
"""

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models import Base, TimestampMixin


class ResourceModel(Base, TimestampMixin):
    """ORM model for resources table.

    Foreign Key Constraints:
    - owner_id references principals.id with RESTRICT delete
    - group_id references groups.id with SET NULL delete; the repository
      also detaches resources explicitly before a group is deleted
    """

    __tablename__ = "resources"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    owner_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("principals.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    group_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("groups.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<ResourceModel(id={self.id}, owner_id={self.owner_id}, "
            f"group_id={self.group_id})>"
        )
