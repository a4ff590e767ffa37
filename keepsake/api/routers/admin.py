"""
Admin routes: confirmation audit trail and manual reconciliation.
"""

import uuid

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from keepsake.api.deps import require_admin
from keepsake.core.database import get_sync_db
from keepsake.core.logging import get_logger
from keepsake.models.audit import DeceasedConfirmation
from keepsake.models.user import User
from keepsake.schemas.legacy import ConfirmationAuditRead
from keepsake.worker.tasks import reconcile_contacts_task

logger = get_logger(__name__)

router = APIRouter()


class ReconcileResponse(BaseModel):
    """Response for an enqueued reconciliation sweep."""

    task_id: str
    status: str


@router.get("/confirmations/{owner_id}", response_model=list[ConfirmationAuditRead])
def confirmation_history(
    owner_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_sync_db),
) -> list[ConfirmationAuditRead]:
    rows = db.execute(
        select(DeceasedConfirmation)
        .where(DeceasedConfirmation.target_owner_id == owner_id)
        .order_by(DeceasedConfirmation.created_at, DeceasedConfirmation.id)
    ).scalars().all()
    return [ConfirmationAuditRead.model_validate(row) for row in rows]


@router.post("/reconcile", response_model=ReconcileResponse, status_code=status.HTTP_202_ACCEPTED)
def start_reconcile(admin: User = Depends(require_admin)) -> ReconcileResponse:
    task = reconcile_contacts_task.delay()
    logger.info(f"Admin {admin.id} enqueued reconciliation task {task.id}")
    return ReconcileResponse(task_id=task.id, status="queued")
