"""
Notification fan-out: in-app rows and email for contact and release events.

Runs from Celery tasks after the triggering transaction committed. A failed
email is logged and counted; it never fails the fan-out.
"""

import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from keepsake.core.config import settings
from keepsake.core.errors import EmailDeliveryError, NotFoundError
from keepsake.core.logging import get_logger, mask_email
from keepsake.integrations.email.client import EmailClient
from keepsake.models.contact import Contact
from keepsake.models.enums import ContactType, NotificationType
from keepsake.models.notification import Notification
from keepsake.models.user import User
from keepsake.services.notifications import templates

logger = get_logger(__name__)


@dataclass
class FanOutSummary:
    in_app: int = 0
    emailed: int = 0
    email_failures: int = 0
    skipped: int = 0


class NotificationService:
    """Builds and delivers notifications for one database session."""

    def __init__(
        self,
        db: Session,
        email_client: EmailClient | None = None,
        notify_regular: bool | None = None,
    ):
        self.db = db
        self._owns_email = email_client is None
        self.email = email_client or EmailClient()
        self.notify_regular = (
            settings.notify_regular_contacts_on_release if notify_regular is None else notify_regular
        )

    def close(self) -> None:
        """Close the email client if this service created it."""
        if self._owns_email:
            self.email.close()

    def notify_release(self, owner_id: uuid.UUID, confirmation_id: uuid.UUID) -> FanOutSummary:
        """
        Tell the owner's contacts about a confirmed passing.

        Trusted contacts get a release notification (in-app when registered,
        email always). Regular contacts get a passing notice without media
        access when the policy allows it.
        """
        owner = self._owner(owner_id)
        summary = FanOutSummary()
        contacts = self.db.execute(
            select(Contact).where(Contact.owner_id == owner_id).order_by(Contact.id)
        ).scalars().all()

        for contact in contacts:
            if contact.contact_type == ContactType.TRUSTED:
                if contact.is_registered and contact.target_user_id:
                    self._add_in_app(
                        contact.target_user_id,
                        NotificationType.LEGACY_RELEASE,
                        title=f"{owner.display_label} left messages for you",
                        message="Video messages have been released to you.",
                        data={"owner_id": str(owner_id), "confirmation_id": str(confirmation_id)},
                    )
                    summary.in_app += 1
                subject, html = templates.legacy_release_email(
                    owner.display_label, contact.full_name, str(owner_id)
                )
            elif self.notify_regular:
                if contact.is_registered and contact.target_user_id:
                    self._add_in_app(
                        contact.target_user_id,
                        NotificationType.PASSING_NOTICE,
                        title=f"In memory of {owner.display_label}",
                        message=f"{owner.display_label} has passed away.",
                        data={"owner_id": str(owner_id)},
                    )
                    summary.in_app += 1
                subject, html = templates.passing_notice_email(owner.display_label, contact.full_name)
            else:
                summary.skipped += 1
                continue

            self._send(contact.email, subject, html, summary)

        self.db.commit()
        logger.info(
            f"Release fan-out for owner {owner_id}: {summary.in_app} in-app, "
            f"{summary.emailed} emailed, {summary.email_failures} failed, {summary.skipped} skipped"
        )
        return summary

    def notify_invitation(self, contact_id: uuid.UUID) -> bool:
        """
        Email a newly added contact.

        Returns:
            True if the email was delivered
        """
        contact = self.db.get(Contact, contact_id)
        if contact is None:
            raise NotFoundError("Contact not found")
        owner = self._owner(contact.owner_id)

        if contact.is_registered:
            subject, html = templates.existing_user_invitation_email(
                owner.display_label, contact.full_name, contact.is_trusted
            )
            if contact.is_trusted and contact.target_user_id:
                self._add_in_app(
                    contact.target_user_id,
                    NotificationType.TRUSTED_CONTACT_ADDED,
                    title=f"{owner.display_label} added you as a trusted contact",
                    message=f"Role: {contact.role.value.replace('_', ' ')}",
                    data={"owner_id": str(owner.id), "contact_id": str(contact.id)},
                )
                self.db.commit()
        else:
            subject, html = templates.invitation_email(
                owner.display_label, contact.full_name, contact.is_trusted
            )

        summary = FanOutSummary()
        self._send(contact.email, subject, html, summary)
        return summary.emailed == 1

    def notify_contact_registered(self, contact_ids: list[uuid.UUID]) -> int:
        """In-app note to each owner whose contact just joined."""
        if not contact_ids:
            return 0
        contacts = self.db.execute(
            select(Contact).where(Contact.id.in_(contact_ids))
        ).scalars().all()
        for contact in contacts:
            self._add_in_app(
                contact.owner_id,
                NotificationType.CONTACT_REGISTERED,
                title=f"{contact.full_name} joined",
                message=f"{contact.full_name} now has an account and is linked to your contacts.",
                data={"contact_id": str(contact.id)},
            )
        self.db.commit()
        return len(contacts)

    def _owner(self, owner_id: uuid.UUID) -> User:
        owner = self.db.get(User, owner_id)
        if owner is None:
            raise NotFoundError("Owner not found")
        return owner

    def _add_in_app(
        self,
        user_id: uuid.UUID,
        type_: NotificationType,
        title: str,
        message: str,
        data: dict | None = None,
    ) -> None:
        self.db.add(
            Notification(
                id=uuid.uuid4(),
                user_id=user_id,
                type=type_,
                title=title,
                message=message,
                data=data,
            )
        )

    def _send(self, to: str, subject: str, html: str, summary: FanOutSummary) -> None:
        try:
            if self.email.send(to, subject, html):
                summary.emailed += 1
            else:
                summary.skipped += 1
        except EmailDeliveryError as e:
            summary.email_failures += 1
            logger.error(f"Email to {mask_email(to)} failed: {e}")
