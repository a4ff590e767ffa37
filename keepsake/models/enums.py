"""
Closed value sets for contacts, legacy release and notifications.
"""

from enum import Enum


class ContactType(str, Enum):
    REGULAR = "regular"
    TRUSTED = "trusted"


class TrustedRole(str, Enum):
    EXECUTOR = "executor"
    LEGACY_MESSENGER = "legacy_messenger"
    GUARDIAN = "guardian"


class InvitationStatus(str, Enum):
    """
    Contact invitation lifecycle.

    Every non-registered state can move to REGISTERED; REGISTERED is terminal.
    PENDING means an invitation email was requested but not yet delivered,
    INVITED that it was delivered.
    """

    PENDING_CONFIRMATION = "pending_confirmation"
    PENDING = "pending"
    INVITED = "invited"
    REGISTERED = "registered"

    @property
    def is_registered(self) -> bool:
        return self is InvitationStatus.REGISTERED


class VerificationMethod(str, Enum):
    FAMILY_NOTIFICATION = "family_notification"
    OFFICIAL_DOCUMENT = "official_document"
    FUNERAL_SERVICE = "funeral_service"
    MEDICAL_PROFESSIONAL = "medical_professional"
    OTHER = "other"


class ConfirmationOutcome(str, Enum):
    CONFIRMED = "confirmed"
    ALREADY_CONFIRMED = "already_confirmed"
    REJECTED_UNAUTHORIZED = "rejected_unauthorized"
    REJECTED_VALIDATION = "rejected_validation"
    FAILED = "failed"


class VideoVisibility(str, Enum):
    PRIVATE = "private"
    TRUSTED_RELEASE = "trusted_release"
    CONTACTS = "contacts"
    PUBLIC = "public"


class ShareType(str, Enum):
    DIRECT = "direct"
    LEGACY_RELEASE = "legacy_release"


class NotificationType(str, Enum):
    LEGACY_RELEASE = "legacy_release"
    PASSING_NOTICE = "passing_notice"
    CONTACT_REGISTERED = "contact_registered"
    TRUSTED_CONTACT_ADDED = "trusted_contact_added"


class AdminRole(str, Enum):
    SUPER_ADMIN = "super_admin"
    MODERATOR = "moderator"
