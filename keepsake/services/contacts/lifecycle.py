"""
Relationship lifecycle: moving contacts to REGISTERED as identities resolve,
and the reverse "who trusts me" query.

The REGISTERED transition is one-way. Every write goes through a conditional
UPDATE that skips rows already registered, so concurrent sweeps and
re-checks converge on the same result.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from keepsake.core.config import settings
from keepsake.core.errors import AuthorizationError, NotFoundError
from keepsake.core.logging import get_logger, mask_email
from keepsake.models.contact import Contact
from keepsake.models.enums import ContactType, InvitationStatus, TrustedRole
from keepsake.models.user import User
from keepsake.services.identity.normalization import emails_match, normalize_email
from keepsake.services.identity.resolver import IdentityResolver

logger = get_logger(__name__)


@dataclass
class ReconcileSummary:
    checked: int = 0
    registered: int = 0
    unresolved: int = 0
    registered_contact_ids: list[uuid.UUID] = field(default_factory=list)


@dataclass(frozen=True)
class TrustedRelationship:
    owner_id: uuid.UUID
    owner_display_name: str
    owner_email: str
    role: TrustedRole
    is_primary: bool
    invitation_status: InvitationStatus
    created_at: datetime
    owner_deceased: bool


class RelationshipLifecycle:
    """Invitation status transitions and relationship queries."""

    def __init__(self, db: Session, resolver: IdentityResolver | None = None):
        self.db = db
        self.resolver = resolver or IdentityResolver.for_session(db)

    def mark_registered(self, contact_id: uuid.UUID, account_id: uuid.UUID) -> bool:
        """
        Tie a contact row to its account.

        target_user_id, confirmed_at and the status change land in one
        statement. Rows already registered are left untouched.

        Returns:
            True if this call performed the transition
        """
        result = self.db.execute(
            update(Contact)
            .where(
                Contact.id == contact_id,
                Contact.invitation_status != InvitationStatus.REGISTERED,
            )
            .values(
                invitation_status=InvitationStatus.REGISTERED,
                target_user_id=account_id,
                confirmed_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def mark_invited(self, contact_id: uuid.UUID) -> bool:
        """PENDING -> INVITED once the invitation email went out."""
        result = self.db.execute(
            update(Contact)
            .where(
                Contact.id == contact_id,
                Contact.invitation_status == InvitationStatus.PENDING,
            )
            .values(invitation_status=InvitationStatus.INVITED)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount == 1

    def recheck(self, owner_id: uuid.UUID, contact_id: uuid.UUID) -> Contact:
        """Explicit re-resolution of one contact, triggered from the UI."""
        contact = self.db.execute(
            select(Contact).where(Contact.id == contact_id, Contact.owner_id == owner_id)
        ).scalar_one_or_none()
        if contact is None:
            raise NotFoundError("Contact not found")

        if contact.invitation_status != InvitationStatus.REGISTERED:
            resolution = self.resolver.resolve(contact.email)
            if resolution.exists and self.mark_registered(contact.id, resolution.account_id):
                logger.info(f"Contact {contact.id} registered on re-check")
            self.db.commit()
            self.db.refresh(contact)
        return contact

    def reconcile(self, batch_size: int | None = None) -> ReconcileSummary:
        """
        Sweep every non-registered contact and re-resolve its email.

        Walks rows by id so rows leaving the non-registered set mid-sweep do
        not shift later pages. Each distinct email is resolved once.

        Args:
            batch_size: Rows per page (defaults to settings.reconcile_batch_size)

        Returns:
            ReconcileSummary with counts and the ids that became registered
        """
        batch_size = batch_size or settings.reconcile_batch_size
        summary = ReconcileSummary()
        cache: dict[str, uuid.UUID | None] = {}
        last_id: uuid.UUID | None = None

        while True:
            stmt = (
                select(Contact.id, Contact.email)
                .where(Contact.invitation_status != InvitationStatus.REGISTERED)
                .order_by(Contact.id)
                .limit(batch_size)
            )
            if last_id is not None:
                stmt = stmt.where(Contact.id > last_id)
            rows = self.db.execute(stmt).all()
            if not rows:
                break

            for contact_id, email in rows:
                summary.checked += 1
                if email not in cache:
                    resolution = self.resolver.resolve(email)
                    cache[email] = resolution.account_id if resolution.exists else None
                account_id = cache[email]
                if account_id is None:
                    summary.unresolved += 1
                    continue
                if self.mark_registered(contact_id, account_id):
                    summary.registered += 1
                    summary.registered_contact_ids.append(contact_id)

            self.db.commit()
            last_id = rows[-1][0]
            if len(rows) < batch_size:
                break

        logger.info(
            f"Reconciliation checked {summary.checked} contacts: "
            f"{summary.registered} registered, {summary.unresolved} unresolved"
        )
        return summary

    def link_account(self, account_id: uuid.UUID) -> list[uuid.UUID]:
        """
        Link every pending contact row for a newly created account.

        Returns:
            Ids of contacts that became registered
        """
        account = self.db.get(User, account_id)
        if account is None:
            raise NotFoundError("Account not found")

        pending_ids = self.db.execute(
            select(Contact.id).where(
                Contact.email == account.email,
                Contact.invitation_status != InvitationStatus.REGISTERED,
            )
        ).scalars().all()

        linked = [cid for cid in pending_ids if self.mark_registered(cid, account.id)]
        self.db.commit()
        if linked:
            logger.info(f"Linked {len(linked)} contact rows to new account {mask_email(account.email)}")
        return linked

    def relationships_for(self, caller: User, email: str | None = None) -> list[TrustedRelationship]:
        """
        Trusted relationships in which the caller is the contact.

        Keyed only by the caller's own verified email. A different email in
        the request is refused rather than looked up.
        """
        if email is not None and not emails_match(email, caller.email):
            raise AuthorizationError()

        rows = self.db.execute(
            select(Contact, User)
            .join(User, User.id == Contact.owner_id)
            .where(
                Contact.email == normalize_email(caller.email),
                Contact.contact_type == ContactType.TRUSTED,
                Contact.owner_id != caller.id,
            )
            .order_by(Contact.created_at, Contact.id)
        ).all()

        return [
            TrustedRelationship(
                owner_id=owner.id,
                owner_display_name=owner.display_label,
                owner_email=owner.email,
                role=contact.role,
                is_primary=contact.is_primary,
                invitation_status=contact.invitation_status,
                created_at=contact.created_at,
                owner_deceased=owner.is_deceased,
            )
            for contact, owner in rows
        ]
