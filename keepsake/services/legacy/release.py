"""
Release orchestrator: the deceased-confirmation protocol.

Order of checks:
1. Authorization (before anything about the target is read)
2. Typed confirmation sentence
3. Already-deceased short circuit
4. Conditional status update + share cascade in one transaction
5. Notification fan-out after commit

Every attempt leaves exactly one audit row.
"""

import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from keepsake.core.errors import AuthorizationError, ReleaseFailedError, ValidationError
from keepsake.core.logging import get_logger
from keepsake.models.audit import DeceasedConfirmation
from keepsake.models.contact import Contact
from keepsake.models.enums import ConfirmationOutcome, ContactType
from keepsake.models.user import User
from keepsake.schemas.legacy import CONFIRMATION_SENTENCE, ConfirmDeceasedRequest
from keepsake.services.legacy.authorization import AuthorizationGate, LegacyAction
from keepsake.services.legacy.media import MediaAccess

logger = get_logger(__name__)

NotificationDispatcher = Callable[[uuid.UUID, uuid.UUID], None]


@dataclass(frozen=True)
class ConfirmationResult:
    success: bool
    already_confirmed: bool
    confirmation_id: uuid.UUID | None
    shares_granted: int = 0

    @property
    def message(self) -> str:
        if self.already_confirmed:
            return "This passing has already been confirmed."
        return "Passing confirmed. Legacy videos have been released to trusted contacts."


class ReleaseOrchestrator:
    """Runs confirm_deceased end to end."""

    def __init__(
        self,
        db: Session,
        gate: AuthorizationGate | None = None,
        media: MediaAccess | None = None,
        dispatch_notifications: NotificationDispatcher | None = None,
    ):
        self.db = db
        self.gate = gate or AuthorizationGate(db)
        self.media = media or MediaAccess(db, gate=self.gate)
        self.dispatch_notifications = dispatch_notifications

    def confirm_deceased(
        self, caller_id: uuid.UUID, request: ConfirmDeceasedRequest
    ) -> ConfirmationResult:
        """
        Confirm an owner's death and release their legacy videos.

        Args:
            caller_id: Authenticated account making the claim
            request: Target owner, verification method, notes and typed sentence

        Returns:
            ConfirmationResult; already_confirmed=True when someone got there first

        Raises:
            AuthorizationError: Caller may not confirm for this owner
            ValidationError: Typed sentence does not match
            ReleaseFailedError: Cascade failed and was rolled back (retryable)
        """
        target_id = request.target_owner_id
        correlation_id = uuid.uuid4().hex[:12]
        log_prefix = f"[confirm {correlation_id}]"

        if not self.gate.can_perform(LegacyAction.CONFIRM_DECEASED, caller_id, target_id):
            self._record(caller_id, request, ConfirmationOutcome.REJECTED_UNAUTHORIZED)
            logger.warning(f"{log_prefix} Unauthorized confirmation attempt by {caller_id}")
            raise AuthorizationError()

        owner = self._load_owner(target_id)
        if owner is None:
            self._record(caller_id, request, ConfirmationOutcome.REJECTED_UNAUTHORIZED)
            raise AuthorizationError()

        expected = CONFIRMATION_SENTENCE.format(name=owner.display_label)
        if request.confirmation_text.strip() != expected:
            self._record(
                caller_id,
                request,
                ConfirmationOutcome.REJECTED_VALIDATION,
                detail="confirmation text mismatch",
            )
            raise ValidationError(f'Please type exactly: "{expected}"')

        if owner.is_deceased:
            return self._already_confirmed(caller_id, request, log_prefix)

        confirmation_id = uuid.uuid4()
        try:
            won = self._mark_deceased(target_id, caller_id)
            if won:
                granted = self.media.grant_release(
                    target_id, self._trusted_contacts(target_id), confirmation_id
                )
                self.db.add(
                    DeceasedConfirmation(
                        id=confirmation_id,
                        target_owner_id=target_id,
                        caller_id=caller_id,
                        outcome=ConfirmationOutcome.CONFIRMED,
                        verification_method=request.verification_method,
                        notes=request.notes,
                        shares_granted=granted,
                    )
                )
                self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"{log_prefix} Release cascade for {target_id} failed: {e}")
            self._record(
                caller_id,
                request,
                ConfirmationOutcome.FAILED,
                detail=type(e).__name__,
            )
            raise ReleaseFailedError() from e

        if not won:
            self.db.rollback()
            return self._already_confirmed(caller_id, request, log_prefix)

        self.db.refresh(owner)
        logger.info(
            f"{log_prefix} Owner {target_id} confirmed deceased by {caller_id}; "
            f"{granted} shares granted"
        )
        self._dispatch(target_id, confirmation_id, log_prefix)

        return ConfirmationResult(
            success=True,
            already_confirmed=False,
            confirmation_id=confirmation_id,
            shares_granted=granted,
        )

    def _load_owner(self, owner_id: uuid.UUID) -> User | None:
        return self.db.get(User, owner_id, populate_existing=True)

    def _mark_deceased(self, owner_id: uuid.UUID, caller_id: uuid.UUID) -> bool:
        """Set deceased_at only if nobody has yet. True when this call won."""
        result = self.db.execute(
            update(User)
            .where(User.id == owner_id, User.deceased_at.is_(None))
            .values(
                deceased_at=datetime.now(timezone.utc),
                deceased_confirmed_by=caller_id,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def _trusted_contacts(self, owner_id: uuid.UUID) -> list[Contact]:
        return list(
            self.db.execute(
                select(Contact).where(
                    Contact.owner_id == owner_id,
                    Contact.contact_type == ContactType.TRUSTED,
                )
            ).scalars().all()
        )

    def _already_confirmed(
        self, caller_id: uuid.UUID, request: ConfirmDeceasedRequest, log_prefix: str
    ) -> ConfirmationResult:
        audit_id = self._record(caller_id, request, ConfirmationOutcome.ALREADY_CONFIRMED)
        logger.info(f"{log_prefix} Owner {request.target_owner_id} was already confirmed deceased")
        return ConfirmationResult(success=True, already_confirmed=True, confirmation_id=audit_id)

    def _record(
        self,
        caller_id: uuid.UUID,
        request: ConfirmDeceasedRequest,
        outcome: ConfirmationOutcome,
        detail: str | None = None,
    ) -> uuid.UUID | None:
        """Write one audit row in its own transaction."""
        entry = DeceasedConfirmation(
            id=uuid.uuid4(),
            target_owner_id=request.target_owner_id,
            caller_id=caller_id,
            outcome=outcome,
            verification_method=request.verification_method,
            notes=request.notes,
            detail=detail,
            shares_granted=0,
        )
        try:
            self.db.add(entry)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Could not record {outcome.value} confirmation attempt: {e}")
            return None
        return entry.id

    def _dispatch(self, owner_id: uuid.UUID, confirmation_id: uuid.UUID, log_prefix: str) -> None:
        if self.dispatch_notifications is None:
            return
        try:
            self.dispatch_notifications(owner_id, confirmation_id)
        except Exception as e:
            logger.error(f"{log_prefix} Notification dispatch failed (release stands): {e}")
