"""
Celery tasks for identity reconciliation and notification fan-out.
Each task opens its own session and commits its own work.
"""

import uuid
from contextlib import closing
from typing import Any

from keepsake.core.database import session_scope
from keepsake.core.errors import NotFoundError
from keepsake.core.logging import get_logger
from keepsake.services.contacts.lifecycle import RelationshipLifecycle
from keepsake.services.notifications.notifier import NotificationService
from keepsake.worker.celery_app import celery_app

logger = get_logger(__name__)


@celery_app.task(name="reconcile_contacts_task")
def reconcile_contacts_task(batch_size: int | None = None) -> dict[str, Any]:
    """
    Re-resolve every non-registered contact.

    Scheduled by beat; also enqueued from the admin API.
    """
    correlation_id = str(uuid.uuid4())
    logger.info(f"[{correlation_id}] Starting contact reconciliation")

    with session_scope() as db:
        summary = RelationshipLifecycle(db).reconcile(batch_size=batch_size)
        if summary.registered_contact_ids:
            with closing(NotificationService(db)) as notifier:
                notifier.notify_contact_registered(summary.registered_contact_ids)

    logger.info(f"[{correlation_id}] Reconciliation complete")
    return {
        "status": "completed",
        "checked": summary.checked,
        "registered": summary.registered,
        "unresolved": summary.unresolved,
    }


@celery_app.task(name="link_account_contacts_task")
def link_account_contacts_task(account_id: str) -> dict[str, Any]:
    """Link pending contact rows to a newly provisioned account."""
    with session_scope() as db:
        linked = RelationshipLifecycle(db).link_account(uuid.UUID(account_id))
        if linked:
            with closing(NotificationService(db)) as notifier:
                notifier.notify_contact_registered(linked)
    return {"status": "completed", "linked": len(linked)}


@celery_app.task(name="send_invitation_email_task")
def send_invitation_email_task(contact_id: str) -> dict[str, Any]:
    """Invite a contact by email and move PENDING rows to INVITED."""
    cid = uuid.UUID(contact_id)
    with session_scope() as db, closing(NotificationService(db)) as notifier:
        try:
            delivered = notifier.notify_invitation(cid)
        except NotFoundError:
            logger.warning(f"Contact {contact_id} was removed before its invitation went out")
            return {"status": "skipped", "reason": "contact_not_found"}

        if delivered:
            RelationshipLifecycle(db).mark_invited(cid)
    return {"status": "completed", "delivered": delivered}


@celery_app.task(name="send_release_notifications_task")
def send_release_notifications_task(owner_id: str, confirmation_id: str) -> dict[str, Any]:
    """Fan out release and passing notices after a confirmed death."""
    with session_scope() as db, closing(NotificationService(db)) as notifier:
        summary = notifier.notify_release(
            uuid.UUID(owner_id), uuid.UUID(confirmation_id)
        )
    return {
        "status": "completed",
        "in_app": summary.in_app,
        "emailed": summary.emailed,
        "email_failures": summary.email_failures,
    }
