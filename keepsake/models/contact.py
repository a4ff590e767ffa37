"""
Contact model: one owner's relationship to one email address.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from keepsake.models.base import Base, TimestampMixin, UUIDMixin, enum_column
from keepsake.models.enums import ContactType, InvitationStatus, TrustedRole
from keepsake.services.identity.normalization import normalize_email

if TYPE_CHECKING:
    from keepsake.models.user import User


class Contact(Base, UUIDMixin, TimestampMixin):
    """
    Contact model.
    Keyed by (owner_id, normalized email). Trusted contacts carry a role and
    take part in the posthumous release.
    """

    __tablename__ = "contacts"
    __table_args__ = (
        UniqueConstraint("owner_id", "email", name="uq_owner_contact_email"),
        CheckConstraint(
            "(contact_type = 'trusted' AND role IS NOT NULL) OR "
            "(contact_type = 'regular' AND role IS NULL)",
            name="ck_contacts_trusted_role",
        ),
        Index(
            "uq_contacts_primary_per_type",
            "owner_id",
            "contact_type",
            unique=True,
            postgresql_where=text("is_primary"),
            sqlite_where=text("is_primary = 1"),
        ),
    )

    # Foreign Keys
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Contact Info
    email: Mapped[str] = mapped_column(
        String(255), nullable=False, index=True, comment="Normalized contact email (unique per owner)"
    )

    full_name: Mapped[str] = mapped_column(String(255), nullable=False)

    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    relationship_label: Mapped[str | None] = mapped_column(
        String(100), nullable=True, comment="Free-form relationship (sister, friend, lawyer)"
    )

    # Relationship type
    contact_type: Mapped[ContactType] = mapped_column(
        enum_column(ContactType, "contact_type"), nullable=False, default=ContactType.REGULAR
    )

    role: Mapped[TrustedRole | None] = mapped_column(
        enum_column(TrustedRole, "trusted_contact_role"), nullable=True
    )

    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Identity resolution
    invitation_status: Mapped[InvitationStatus] = mapped_column(
        enum_column(InvitationStatus, "invitation_status"),
        nullable=False,
        default=InvitationStatus.PENDING_CONFIRMATION,
        index=True,
    )

    target_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        nullable=True,
        index=True,
        comment="Contact's own account once resolved (lookup only, never ownership)",
    )

    confirmed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, comment="When target_user_id was first set"
    )

    # Relationships
    owner: Mapped["User"] = relationship(
        "User", back_populates="contacts", foreign_keys=[owner_id]
    )

    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        return normalize_email(value)

    @property
    def is_trusted(self) -> bool:
        return self.contact_type == ContactType.TRUSTED

    @property
    def is_registered(self) -> bool:
        return self.invitation_status == InvitationStatus.REGISTERED

    def __repr__(self) -> str:
        return (
            f"<Contact(id={self.id}, email={self.email}, type={self.contact_type}, "
            f"status={self.invitation_status})>"
        )
