"""
User model.
Doubles as the owner profile that carries deceased status.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from keepsake.models.base import Base, TimestampMixin, UUIDMixin
from keepsake.services.identity.normalization import normalize_email

if TYPE_CHECKING:
    from keepsake.models.contact import Contact
    from keepsake.models.video import Video


class User(Base, UUIDMixin, TimestampMixin):
    """
    User model.
    An account that may own contacts and videos, and may itself be someone's contact.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    first_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(120), nullable=True)

    # Legacy status
    deceased_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, comment="Set once when a trusted contact confirms death"
    )

    deceased_confirmed_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, nullable=True, comment="Account that confirmed the death (no FK, lookup only)"
    )

    # Relationships
    contacts: Mapped[list["Contact"]] = relationship(
        "Contact",
        back_populates="owner",
        cascade="all, delete-orphan",
        foreign_keys="Contact.owner_id",
    )

    videos: Mapped[list["Video"]] = relationship(
        "Video", back_populates="owner", cascade="all, delete-orphan"
    )

    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        return normalize_email(value)

    @property
    def is_deceased(self) -> bool:
        return self.deceased_at is not None

    @property
    def display_label(self) -> str:
        """Name shown to contacts and embedded in the confirmation sentence."""
        if self.display_name and self.display_name.strip():
            return self.display_name.strip()
        full = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return full or "Unknown User"

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, deceased={self.is_deceased})>"
