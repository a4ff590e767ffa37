"""
Contact store: owner-scoped writes and reads of contact rows.

Handles:
- Duplicate detection on the normalized email (conflict, never merge)
- Trusted/regular role rules
- At most one primary contact per owner and contact type
- Initial invitation status from identity resolution
"""

import uuid
from collections.abc import Callable
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from keepsake.core.errors import ConflictError, NotFoundError, ValidationError
from keepsake.core.logging import get_logger, mask_email
from keepsake.models.contact import Contact
from keepsake.models.enums import ContactType, InvitationStatus, TrustedRole
from keepsake.models.user import User
from keepsake.schemas.contacts import ContactCreate, ContactUpdate
from keepsake.services.identity.normalization import normalize_email, validate_email
from keepsake.services.identity.resolver import IdentityResolver

logger = get_logger(__name__)

InvitationDispatcher = Callable[[uuid.UUID], None]


def check_role(contact_type: ContactType, role: TrustedRole | None) -> None:
    """Trusted contacts need a role; regular contacts may not have one."""
    if contact_type == ContactType.TRUSTED and role is None:
        raise ValidationError("Trusted contacts require a role")
    if contact_type == ContactType.REGULAR and role is not None:
        raise ValidationError("Only trusted contacts can have a role")


class ContactStore:
    """Durable owner -> contact relationships."""

    def __init__(
        self,
        db: Session,
        resolver: IdentityResolver | None = None,
        dispatch_invitation: InvitationDispatcher | None = None,
    ):
        self.db = db
        self.resolver = resolver or IdentityResolver.for_session(db)
        self.dispatch_invitation = dispatch_invitation

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, owner_id: uuid.UUID, contact_id: uuid.UUID) -> Contact:
        """Fetch one of the owner's contacts. Other owners' rows are reported as missing."""
        contact = self.db.execute(
            select(Contact).where(Contact.id == contact_id, Contact.owner_id == owner_id)
        ).scalar_one_or_none()
        if contact is None:
            raise NotFoundError("Contact not found")
        return contact

    def find_by_email(self, owner_id: uuid.UUID, email: str) -> Contact | None:
        return self.db.execute(
            select(Contact).where(
                Contact.owner_id == owner_id, Contact.email == normalize_email(email)
            )
        ).scalar_one_or_none()

    def list_for_owner(
        self, owner_id: uuid.UUID, contact_type: ContactType | None = None
    ) -> list[Contact]:
        stmt = select(Contact).where(Contact.owner_id == owner_id)
        if contact_type is not None:
            stmt = stmt.where(Contact.contact_type == contact_type)
        stmt = stmt.order_by(
            Contact.contact_type, Contact.is_primary.desc(), Contact.full_name, Contact.id
        )
        return list(self.db.execute(stmt).scalars().all())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add(self, owner_id: uuid.UUID, data: ContactCreate) -> Contact:
        """
        Add a contact for an owner.

        Args:
            owner_id: Owning account
            data: Contact fields as submitted

        Returns:
            The created Contact

        Raises:
            ValidationError: Malformed email, role rules, or adding oneself
            ConflictError: Owner already has a contact with this normalized email
        """
        email = validate_email(data.email)
        check_role(data.contact_type, data.role)

        owner = self.db.get(User, owner_id)
        if owner is None:
            raise NotFoundError("Owner not found")
        if owner.email == email:
            raise ValidationError("You cannot add yourself as a contact")

        if self.find_by_email(owner_id, email) is not None:
            raise ConflictError()

        resolution = self.resolver.resolve(email)
        now = datetime.now(timezone.utc)
        if resolution.exists:
            status = InvitationStatus.REGISTERED
        elif data.send_invitation:
            status = InvitationStatus.PENDING
        else:
            status = InvitationStatus.PENDING_CONFIRMATION

        contact = Contact(
            id=uuid.uuid4(),
            owner_id=owner_id,
            email=email,
            full_name=data.full_name.strip(),
            phone=data.phone,
            relationship_label=data.relationship_label,
            contact_type=data.contact_type,
            role=data.role,
            is_primary=data.is_primary,
            invitation_status=status,
            target_user_id=resolution.account_id if resolution.exists else None,
            confirmed_at=now if resolution.exists else None,
        )

        if data.is_primary:
            self._clear_primary(owner_id, data.contact_type)
        self.db.add(contact)
        self._commit_or_conflict(owner_id, email, creating=True)

        logger.info(
            f"Owner {owner_id} added {contact.contact_type.value} contact "
            f"{mask_email(email)} (status={status.value})"
        )

        if data.send_invitation:
            self._dispatch_invitation(contact.id)
        return contact

    def update(self, owner_id: uuid.UUID, contact_id: uuid.UUID, data: ContactUpdate) -> Contact:
        """Apply a partial edit. Type, role and primacy are validated together."""
        contact = self.get(owner_id, contact_id)
        fields = data.model_dump(exclude_unset=True)

        new_type = fields.get("contact_type") or contact.contact_type
        if "role" in fields:
            new_role = fields["role"]
        elif new_type == ContactType.REGULAR:
            new_role = None
        else:
            new_role = contact.role
        check_role(new_type, new_role)

        new_primary = fields.get("is_primary")
        if new_primary is None:
            new_primary = contact.is_primary
        if new_primary:
            self._clear_primary(owner_id, new_type, exclude_id=contact.id)

        if fields.get("full_name") is not None:
            contact.full_name = fields["full_name"].strip()
        for name in ("phone", "relationship_label"):
            if name in fields:
                setattr(contact, name, fields[name])
        contact.contact_type = new_type
        contact.role = new_role
        contact.is_primary = new_primary

        self._commit_or_conflict(owner_id, contact.email, creating=False)
        logger.info(f"Owner {owner_id} updated contact {contact.id}")
        return contact

    def remove(self, owner_id: uuid.UUID, contact_id: uuid.UUID) -> None:
        """Delete the relationship. Media already released stays released."""
        contact = self.get(owner_id, contact_id)
        self.db.delete(contact)
        self.db.commit()
        logger.info(f"Owner {owner_id} removed contact {contact_id}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _clear_primary(
        self,
        owner_id: uuid.UUID,
        contact_type: ContactType,
        exclude_id: uuid.UUID | None = None,
    ) -> None:
        """Unset the current primary in the same transaction that sets the new one."""
        stmt = update(Contact).where(
            Contact.owner_id == owner_id,
            Contact.contact_type == contact_type,
            Contact.is_primary.is_(True),
        )
        if exclude_id is not None:
            stmt = stmt.where(Contact.id != exclude_id)
        self.db.execute(
            stmt.values(is_primary=False).execution_options(synchronize_session="fetch")
        )

    def _commit_or_conflict(self, owner_id: uuid.UUID, email: str, creating: bool) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Contact write for owner {owner_id} hit a constraint: {e.orig}")
            if creating and self.find_by_email(owner_id, email) is not None:
                raise ConflictError() from e
            raise ConflictError("Contact was changed concurrently, please retry") from e

    def _dispatch_invitation(self, contact_id: uuid.UUID) -> None:
        if self.dispatch_invitation is None:
            return
        try:
            self.dispatch_invitation(contact_id)
        except Exception as e:
            logger.error(f"Could not enqueue invitation for contact {contact_id}: {e}")
