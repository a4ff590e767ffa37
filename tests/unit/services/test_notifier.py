"""
Unit tests for notification fan-out.
"""

import uuid
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import select

from keepsake.core.errors import EmailDeliveryError, NotFoundError
from keepsake.models import Notification
from keepsake.models.enums import ContactType, NotificationType, TrustedRole
from keepsake.services.notifications.notifier import NotificationService


@pytest.fixture
def owner(make_user):
    return make_user("owner@example.com", display_name="Olivia Owner")


@pytest.fixture
def email_client():
    client = MagicMock()
    client.send.return_value = True
    return client


def notifications_for(db, user_id):
    return db.execute(select(Notification).where(Notification.user_id == user_id)).scalars().all()


class TestNotifyRelease:
    """Test NotificationService.notify_release."""

    def test_trusted_and_regular_contacts(self, db, owner, email_client, make_user, make_contact):
        trusted_account = make_user("trusted@example.com")
        regular_account = make_user("regular@example.com")
        make_contact(owner, trusted_account.email, account=trusted_account)
        make_contact(owner, "pending-trusted@example.com", role=TrustedRole.GUARDIAN)
        make_contact(owner, regular_account.email, contact_type=ContactType.REGULAR, account=regular_account)

        summary = NotificationService(db, email_client=email_client, notify_regular=True).notify_release(
            owner.id, uuid.uuid4()
        )

        assert summary.in_app == 2
        assert summary.emailed == 3
        [release] = notifications_for(db, trusted_account.id)
        assert release.type == NotificationType.LEGACY_RELEASE
        assert release.data["owner_id"] == str(owner.id)
        [notice] = notifications_for(db, regular_account.id)
        assert notice.type == NotificationType.PASSING_NOTICE
        recipients = {c.args[0] for c in email_client.send.call_args_list}
        assert recipients == {"trusted@example.com", "pending-trusted@example.com", "regular@example.com"}

    def test_regular_contacts_skipped_when_disabled(self, db, owner, email_client, make_contact):
        make_contact(owner, "trusted@example.com")
        make_contact(owner, "regular@example.com", contact_type=ContactType.REGULAR)

        summary = NotificationService(db, email_client=email_client, notify_regular=False).notify_release(
            owner.id, uuid.uuid4()
        )

        assert summary.skipped == 1
        email_client.send.assert_called_once()
        assert email_client.send.call_args.args[0] == "trusted@example.com"

    def test_email_failure_is_counted_not_raised(self, db, owner, email_client, make_contact):
        make_contact(owner, "a@example.com")
        make_contact(owner, "b@example.com", role=TrustedRole.GUARDIAN)
        email_client.send.side_effect = [EmailDeliveryError("bounced"), True]

        summary = NotificationService(db, email_client=email_client).notify_release(owner.id, uuid.uuid4())

        assert summary.email_failures == 1
        assert summary.emailed == 1

    def test_unknown_owner(self, db, email_client):
        with pytest.raises(NotFoundError):
            NotificationService(db, email_client=email_client).notify_release(uuid.uuid4(), uuid.uuid4())


class TestNotifyInvitation:
    """Test NotificationService.notify_invitation."""

    def test_new_user_gets_signup_invitation(self, db, owner, email_client, make_contact):
        contact = make_contact(owner, "new@example.com")

        assert NotificationService(db, email_client=email_client).notify_invitation(contact.id) is True

        to, subject, html = email_client.send.call_args.args
        assert to == "new@example.com"
        assert "Olivia Owner" in subject
        assert "/signup" in html

    def test_registered_trusted_contact_gets_in_app_notice(self, db, owner, email_client, make_user, make_contact):
        account = make_user("member@example.com")
        contact = make_contact(owner, account.email, role=TrustedRole.LEGACY_MESSENGER, account=account)

        NotificationService(db, email_client=email_client).notify_invitation(contact.id)

        [notice] = notifications_for(db, account.id)
        assert notice.type == NotificationType.TRUSTED_CONTACT_ADDED
        assert "legacy messenger" in notice.message
        assert "/signup" not in email_client.send.call_args.args[2]

    def test_disabled_email_reports_not_delivered(self, db, owner, email_client, make_contact):
        contact = make_contact(owner, "new@example.com")
        email_client.send.return_value = False
        assert NotificationService(db, email_client=email_client).notify_invitation(contact.id) is False

    def test_missing_contact(self, db, email_client):
        with pytest.raises(NotFoundError):
            NotificationService(db, email_client=email_client).notify_invitation(uuid.uuid4())


class TestNotifyContactRegistered:
    def test_owner_is_told(self, db, owner, email_client, make_contact):
        contact = make_contact(owner, "joined@example.com", full_name="June")

        assert NotificationService(db, email_client=email_client).notify_contact_registered([contact.id]) == 1

        [notice] = notifications_for(db, owner.id)
        assert notice.type == NotificationType.CONTACT_REGISTERED
        assert "June" in notice.title


class TestClose:
    def test_closes_email_client_it_created(self, db):
        created = MagicMock()
        with patch("keepsake.services.notifications.notifier.EmailClient", return_value=created):
            NotificationService(db).close()
        created.close.assert_called_once()

    def test_leaves_injected_email_client_open(self, db, email_client):
        NotificationService(db, email_client=email_client).close()
        email_client.close.assert_not_called()
