"""Audit trail of deceased-confirmation attempts."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from keepsake.models.base import Base, UUIDMixin, enum_column
from keepsake.models.enums import ConfirmationOutcome, VerificationMethod


class DeceasedConfirmation(Base, UUIDMixin):
    """
    One row per confirm-deceased call, whatever the outcome.

    target_owner_id has no foreign key so attempts against unknown accounts
    are still recorded.
    """

    __tablename__ = "deceased_confirmations"

    target_owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    caller_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    outcome: Mapped[ConfirmationOutcome] = mapped_column(
        enum_column(ConfirmationOutcome, "confirmation_outcome"), nullable=False
    )
    verification_method: Mapped[VerificationMethod | None] = mapped_column(
        enum_column(VerificationMethod, "verification_method"), nullable=True
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    detail: Mapped[str | None] = mapped_column(String(255), nullable=True)
    shares_granted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<DeceasedConfirmation {self.outcome} target={self.target_owner_id} by={self.caller_id}>"
