"""SQLAlchemy ORM model for the resource_shares table."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models import Base, TimestampMixin


class ResourceShareModel(Base, TimestampMixin):
    """ORM model for resource_shares table.

    One row per (resource, grantee). Expired rows stay until housekeeping
    removes them; queries filter them out by expires_at.
    """

    __tablename__ = "resource_shares"

    id: Mapped[str] = mapped_column(String(26), primary_key=True)
    resource_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("resources.id", ondelete="CASCADE"),
        nullable=False,
    )
    granted_by: Mapped[str] = mapped_column(String(255), nullable=False)
    granted_to: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("principals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    access_level: Mapped[str] = mapped_column(String(16), nullable=False)
    settings: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )

    __table_args__ = (UniqueConstraint("resource_id", "granted_to"),)

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<ResourceShareModel(id={self.id}, resource_id={self.resource_id}, "
            f"granted_to={self.granted_to}, access_level={self.access_level})>"
        )
