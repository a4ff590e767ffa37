"""
SQLAlchemy models package.
All models are imported here for Alembic auto-generation to detect changes.
"""

from keepsake.models.admin import AdminUser
from keepsake.models.audit import DeceasedConfirmation
from keepsake.models.base import Base
from keepsake.models.contact import Contact
from keepsake.models.enums import (
    AdminRole,
    ConfirmationOutcome,
    ContactType,
    InvitationStatus,
    NotificationType,
    ShareType,
    TrustedRole,
    VerificationMethod,
    VideoVisibility,
)
from keepsake.models.notification import Notification
from keepsake.models.user import User
from keepsake.models.video import Video, VideoShare

__all__ = [
    "Base",
    "User",
    "Contact",
    "Video",
    "VideoShare",
    "DeceasedConfirmation",
    "Notification",
    "AdminUser",
    "AdminRole",
    "ConfirmationOutcome",
    "ContactType",
    "InvitationStatus",
    "NotificationType",
    "ShareType",
    "TrustedRole",
    "VerificationMethod",
    "VideoVisibility",
]
