"""
Media access for released legacy videos.

Writes legacy_release shares during the release cascade and serves the
read path for trusted contacts after the owner's death.
"""

import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from keepsake.core.logging import get_logger
from keepsake.integrations.storage.client import StorageClient
from keepsake.models.contact import Contact
from keepsake.models.enums import ShareType, VideoVisibility
from keepsake.models.user import User
from keepsake.models.video import Video, VideoShare
from keepsake.services.identity.normalization import normalize_email
from keepsake.services.legacy.authorization import AuthorizationGate, LegacyAction

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReleasedVideo:
    video_id: uuid.UUID
    title: str
    created_at: datetime
    url: str


class MediaAccess:
    """Share writes and signed reads for trusted_release videos."""

    def __init__(
        self,
        db: Session,
        gate: AuthorizationGate | None = None,
        storage: StorageClient | None = None,
    ):
        self.db = db
        self.gate = gate or AuthorizationGate(db)
        self._storage = storage
        self._owns_storage = storage is None

    @property
    def storage(self) -> StorageClient:
        if self._storage is None:
            self._storage = StorageClient()
        return self._storage

    def close(self) -> None:
        """Close a storage client created here; injected clients are left open."""
        if self._owns_storage and self._storage is not None:
            self._storage.close()

    def releasable_videos(self, owner_id: uuid.UUID) -> list[Video]:
        return list(
            self.db.execute(
                select(Video)
                .where(
                    Video.owner_id == owner_id,
                    Video.visibility == VideoVisibility.TRUSTED_RELEASE,
                )
                .order_by(Video.created_at, Video.id)
            ).scalars().all()
        )

    def grant_release(
        self,
        owner_id: uuid.UUID,
        contacts: Iterable[Contact],
        confirmation_id: uuid.UUID,
    ) -> int:
        """
        Share every releasable video with every given contact.

        Runs inside the caller's transaction and only flushes. Existing
        shares for the same (video, recipient) are kept as they are.

        Returns:
            Number of shares created
        """
        contacts = list(contacts)
        videos = self.releasable_videos(owner_id)
        if not videos or not contacts:
            return 0

        existing = set(
            self.db.execute(
                select(VideoShare.video_id, VideoShare.recipient_email).where(
                    VideoShare.video_id.in_([v.id for v in videos])
                )
            ).all()
        )

        granted = 0
        for video in videos:
            for contact in contacts:
                recipient = normalize_email(contact.email)
                if (video.id, recipient) in existing:
                    continue
                self.db.add(
                    VideoShare(
                        id=uuid.uuid4(),
                        video_id=video.id,
                        owner_id=owner_id,
                        recipient_email=recipient,
                        recipient_id=contact.target_user_id,
                        share_type=ShareType.LEGACY_RELEASE,
                        confirmation_id=confirmation_id,
                    )
                )
                existing.add((video.id, recipient))
                granted += 1

        self.db.flush()
        return granted

    def released_videos_for(self, caller: User, owner_id: uuid.UUID) -> list[ReleasedVideo]:
        """
        Videos released to the caller by a deceased owner, with signed URLs.

        Raises:
            AuthorizationError: Caller is not a trusted contact of a deceased owner
            StorageError: URLs could not be signed
        """
        self.gate.require(LegacyAction.VIEW_RELEASED_MEDIA, caller.id, owner_id)

        videos = self.db.execute(
            select(Video)
            .join(VideoShare, VideoShare.video_id == Video.id)
            .where(
                Video.owner_id == owner_id,
                VideoShare.recipient_email == normalize_email(caller.email),
                # A direct share made before the release also counts for trusted_release videos
                or_(
                    VideoShare.share_type == ShareType.LEGACY_RELEASE,
                    Video.visibility == VideoVisibility.TRUSTED_RELEASE,
                ),
            )
            .order_by(Video.created_at, Video.id)
        ).scalars().all()

        return [
            ReleasedVideo(
                video_id=video.id,
                title=video.title,
                created_at=video.created_at,
                url=self.storage.create_signed_url(video.storage_path),
            )
            for video in videos
        ]
