"""
Unit tests for the relationship lifecycle: registration, reconciliation and the reverse query.
"""

import uuid
from unittest.mock import MagicMock

import pytest

from keepsake.core.errors import AuthorizationError, NotFoundError
from keepsake.models import Contact
from keepsake.models.enums import ContactType, InvitationStatus, TrustedRole
from keepsake.services.contacts.lifecycle import RelationshipLifecycle
from keepsake.services.identity.resolver import IdentityResolver


@pytest.fixture
def owner(make_user):
    return make_user("owner@example.com", display_name="Olivia Owner")


@pytest.fixture
def lifecycle(db):
    return RelationshipLifecycle(db)


class TestMarkRegistered:
    """REGISTERED is one-way and keeps the first account id."""

    def test_sets_all_fields_together(self, db, lifecycle, owner, make_contact, make_user):
        contact = make_contact(owner, "friend@example.com")
        account = make_user("friend@example.com")

        assert lifecycle.mark_registered(contact.id, account.id) is True
        db.commit()
        db.refresh(contact)

        assert contact.invitation_status == InvitationStatus.REGISTERED
        assert contact.target_user_id == account.id
        assert contact.confirmed_at is not None

    def test_second_call_is_noop(self, db, lifecycle, owner, make_contact, make_user):
        account = make_user("friend@example.com")
        contact = make_contact(owner, "friend@example.com", account=account)

        assert lifecycle.mark_registered(contact.id, uuid.uuid4()) is False
        db.commit()
        db.refresh(contact)

        assert contact.target_user_id == account.id

    def test_mark_invited_never_touches_registered(self, db, lifecycle, owner, make_contact, make_user):
        account = make_user("friend@example.com")
        contact = make_contact(owner, "friend@example.com", account=account)

        assert lifecycle.mark_invited(contact.id) is False
        db.refresh(contact)
        assert contact.invitation_status == InvitationStatus.REGISTERED

    def test_mark_invited_from_pending(self, db, lifecycle, owner, make_contact):
        contact = make_contact(owner, "new@example.com", status=InvitationStatus.PENDING)

        assert lifecycle.mark_invited(contact.id) is True
        db.refresh(contact)
        assert contact.invitation_status == InvitationStatus.INVITED


class TestRecheck:
    """Test RelationshipLifecycle.recheck."""

    def test_recheck_registers_after_signup(self, lifecycle, owner, make_contact, make_user):
        contact = make_contact(owner, "late@example.com")
        account = make_user("LATE@example.com")

        result = lifecycle.recheck(owner.id, contact.id)

        assert result.invitation_status == InvitationStatus.REGISTERED
        assert result.target_user_id == account.id

    def test_recheck_without_account_keeps_status(self, lifecycle, owner, make_contact):
        contact = make_contact(owner, "late@example.com")
        result = lifecycle.recheck(owner.id, contact.id)
        assert result.invitation_status == InvitationStatus.PENDING_CONFIRMATION

    def test_recheck_other_owner_not_found(self, lifecycle, owner, make_contact, make_user):
        other = make_user("other@example.com")
        contact = make_contact(other, "x@example.com")
        with pytest.raises(NotFoundError):
            lifecycle.recheck(owner.id, contact.id)


class TestReconcile:
    """Test the background reconciliation sweep."""

    def test_reconcile_registers_resolvable_rows(self, db, lifecycle, owner, make_contact, make_user):
        other_owner = make_user("owner2@example.com")
        c1 = make_contact(owner, "joined@example.com")
        c2 = make_contact(other_owner, "joined@example.com")
        c3 = make_contact(owner, "stranger@example.com")
        account = make_user("joined@example.com")

        summary = lifecycle.reconcile(batch_size=1)

        assert summary.checked == 3
        assert summary.registered == 2
        assert summary.unresolved == 1
        assert set(summary.registered_contact_ids) == {c1.id, c2.id}
        for contact in (c1, c2, c3):
            db.refresh(contact)
        assert c1.target_user_id == account.id
        assert c2.target_user_id == account.id
        assert c3.invitation_status == InvitationStatus.PENDING_CONFIRMATION

    def test_reconcile_resolves_each_email_once(self, db, owner, make_contact, make_user):
        other_owner = make_user("owner2@example.com")
        make_contact(owner, "same@example.com")
        make_contact(other_owner, "same@example.com")
        directory = MagicMock()
        directory.find_account_id.return_value = None

        RelationshipLifecycle(db, resolver=IdentityResolver(directory)).reconcile()

        directory.find_account_id.assert_called_once_with("same@example.com")

    def test_reconcile_is_idempotent(self, lifecycle, owner, make_contact, make_user):
        make_contact(owner, "joined@example.com")
        make_user("joined@example.com")

        assert lifecycle.reconcile().registered == 1
        second = lifecycle.reconcile()
        assert second.checked == 0
        assert second.registered == 0


class TestLinkAccount:
    """Test linking pending rows to a new account."""

    def test_link_account(self, db, lifecycle, owner, make_contact, make_user):
        pending = make_contact(owner, "newbie@example.com")
        account = make_user("newbie@example.com")

        linked = lifecycle.link_account(account.id)

        assert linked == [pending.id]
        db.refresh(pending)
        assert pending.target_user_id == account.id

    def test_link_unknown_account(self, lifecycle):
        with pytest.raises(NotFoundError):
            lifecycle.link_account(uuid.uuid4())


class TestRelationshipsFor:
    """Reverse query: owners who trust the caller."""

    def test_lists_trusted_relationships_only(self, lifecycle, owner, make_contact, make_user):
        caller = make_user("helper@example.com")
        second_owner = make_user("second@example.com", first_name="Sam", last_name="Second")
        make_contact(owner, "HELPER@example.com", role=TrustedRole.GUARDIAN, account=caller)
        make_contact(second_owner, "helper@example.com", contact_type=ContactType.REGULAR)

        rels = lifecycle.relationships_for(caller)

        assert len(rels) == 1
        assert rels[0].owner_id == owner.id
        assert rels[0].owner_display_name == "Olivia Owner"
        assert rels[0].role == TrustedRole.GUARDIAN
        assert rels[0].owner_deceased is False

    def test_includes_unregistered_rows_for_my_email(self, lifecycle, owner, make_contact, make_user):
        caller = make_user("helper@example.com")
        make_contact(owner, "helper@example.com")

        rels = lifecycle.relationships_for(caller)

        assert [r.invitation_status for r in rels] == [InvitationStatus.PENDING_CONFIRMATION]

    def test_other_email_is_refused(self, lifecycle, owner, make_contact, make_user):
        caller = make_user("helper@example.com")
        make_contact(owner, "victim@example.com")

        with pytest.raises(AuthorizationError):
            lifecycle.relationships_for(caller, email="victim@example.com")

    def test_matching_email_param_is_accepted(self, lifecycle, owner, make_contact, make_user):
        caller = make_user("helper@example.com")
        make_contact(owner, "helper@example.com")
        assert len(lifecycle.relationships_for(caller, email=" HELPER@example.com")) == 1

    def test_no_rows_returns_empty(self, lifecycle, make_user):
        caller = make_user("lonely@example.com")
        assert lifecycle.relationships_for(caller) == []
