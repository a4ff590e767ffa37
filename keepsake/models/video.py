"""
Video and share models.
Media bytes live in object storage; these rows only track ownership and access.
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from keepsake.models.base import Base, TimestampMixin, UUIDMixin, enum_column
from keepsake.models.enums import ShareType, VideoVisibility
from keepsake.services.identity.normalization import normalize_email

if TYPE_CHECKING:
    from keepsake.models.user import User


class Video(Base, UUIDMixin, TimestampMixin):
    """A recorded message. TRUSTED_RELEASE videos stay private until the owner's death is confirmed."""

    __tablename__ = "videos"

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    storage_path: Mapped[str] = mapped_column(
        String(1024), nullable=False, comment="Object key inside the storage bucket"
    )

    visibility: Mapped[VideoVisibility] = mapped_column(
        enum_column(VideoVisibility, "video_visibility"),
        nullable=False,
        default=VideoVisibility.PRIVATE,
        index=True,
    )

    owner: Mapped["User"] = relationship("User", back_populates="videos")
    shares: Mapped[list["VideoShare"]] = relationship(
        "VideoShare", back_populates="video", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Video(id={self.id}, title={self.title}, visibility={self.visibility})>"


class VideoShare(Base, UUIDMixin, TimestampMixin):
    """Grants one recipient address access to one video."""

    __tablename__ = "video_shares"
    __table_args__ = (
        UniqueConstraint("video_id", "recipient_email", name="uq_video_share_recipient"),
    )

    video_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("videos.id", ondelete="CASCADE"), nullable=False, index=True
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    recipient_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    recipient_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True, index=True)

    share_type: Mapped[ShareType] = mapped_column(
        enum_column(ShareType, "share_type"), nullable=False, default=ShareType.DIRECT
    )

    confirmation_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, nullable=True, comment="Deceased confirmation that produced this share"
    )

    video: Mapped["Video"] = relationship("Video", back_populates="shares")

    @validates("recipient_email")
    def _normalize_email(self, key: str, value: str) -> str:
        return normalize_email(value)

    def __repr__(self) -> str:
        return f"<VideoShare(video_id={self.video_id}, recipient={self.recipient_email}, type={self.share_type})>"
