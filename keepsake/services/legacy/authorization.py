"""
Authorization for legacy actions and admin routes.

Checks run against the database at the moment of the action. Nothing here
is cached between requests.
"""

import uuid
from collections.abc import Iterable
from enum import Enum

from sqlalchemy import select
from sqlalchemy.orm import Session

from keepsake.core.config import settings
from keepsake.core.errors import AuthorizationError
from keepsake.models.admin import AdminUser
from keepsake.models.contact import Contact
from keepsake.models.enums import AdminRole, ContactType, InvitationStatus, TrustedRole
from keepsake.models.user import User


class LegacyAction(str, Enum):
    CONFIRM_DECEASED = "confirm_deceased"
    VIEW_RELEASED_MEDIA = "view_released_media"


class AuthorizationGate:
    """
    Decides whether a caller may act on a target owner's legacy.

    Both actions need a registered trusted contact row of the target whose
    target_user_id is the caller. Initiating a confirmation is further
    limited to the configured roles; viewing also needs the release to have
    happened.
    """

    def __init__(self, db: Session, initiator_roles: Iterable[str | TrustedRole] | None = None):
        self.db = db
        roles = initiator_roles if initiator_roles is not None else settings.deceased_initiator_roles
        self.initiator_roles = frozenset(TrustedRole(r) for r in roles)

    def trusted_relationship(
        self, caller_account_id: uuid.UUID, target_owner_id: uuid.UUID
    ) -> Contact | None:
        return self.db.execute(
            select(Contact).where(
                Contact.owner_id == target_owner_id,
                Contact.contact_type == ContactType.TRUSTED,
                Contact.invitation_status == InvitationStatus.REGISTERED,
                Contact.target_user_id == caller_account_id,
            )
        ).scalars().first()

    def can_perform(
        self, action: LegacyAction, caller_account_id: uuid.UUID, target_owner_id: uuid.UUID
    ) -> bool:
        if caller_account_id == target_owner_id:
            return False

        relationship = self.trusted_relationship(caller_account_id, target_owner_id)
        if relationship is None:
            return False

        if action == LegacyAction.CONFIRM_DECEASED:
            return relationship.role in self.initiator_roles

        if action == LegacyAction.VIEW_RELEASED_MEDIA:
            deceased_at = self.db.execute(
                select(User.deceased_at).where(User.id == target_owner_id)
            ).scalar_one_or_none()
            return deceased_at is not None

        return False

    def require(
        self, action: LegacyAction, caller_account_id: uuid.UUID, target_owner_id: uuid.UUID
    ) -> None:
        """Raise the generic AuthorizationError unless the action is allowed."""
        if not self.can_perform(action, caller_account_id, target_owner_id):
            raise AuthorizationError()


class AdminAuthorizer:
    """Role check for admin routes, backed by the admin_users table."""

    def __init__(self, db: Session):
        self.db = db

    def role_of(self, caller_id: uuid.UUID) -> AdminRole | None:
        return self.db.execute(
            select(AdminUser.role).where(AdminUser.user_id == caller_id)
        ).scalar_one_or_none()

    def check(self, caller_id: uuid.UUID, required: AdminRole | None = None) -> bool:
        role = self.role_of(caller_id)
        if role is None:
            return False
        if required == AdminRole.SUPER_ADMIN:
            return role == AdminRole.SUPER_ADMIN
        return True
