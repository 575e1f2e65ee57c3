"""SQLAlchemy ORM model for the principals table.

Principals are provisioned by the external identity provider. This
context only reads them for their e-mail, display name and system role.
"""

from sqlalchemy import Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models import Base, TimestampMixin


class PrincipalModel(Base, TimestampMixin):
    """ORM model for principals table.

    Note: id is VARCHAR(255) to accommodate external identity provider IDs.
    E-mail lookups are case-insensitive, so e-mails are unique on lower(email).
    """

    __tablename__ = "principals"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    system_role: Mapped[str] = mapped_column(
        String(32), nullable=False, default="user"
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<PrincipalModel(id={self.id}, system_role={self.system_role})>"


Index(
    "uq_principals_email_lower",
    func.lower(PrincipalModel.email),
    unique=True,
)
