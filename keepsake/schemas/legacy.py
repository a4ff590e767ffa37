"""Request/response models for the deceased confirmation and release flow."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from keepsake.models.enums import ConfirmationOutcome, VerificationMethod

CONFIRMATION_SENTENCE = "I confirm that {name} has passed away"


class ConfirmDeceasedRequest(BaseModel):
    target_owner_id: uuid.UUID
    verification_method: VerificationMethod
    notes: str | None = Field(default=None, max_length=2000)
    confirmation_text: str = Field(..., min_length=1, max_length=500)


class ConfirmDeceasedResponse(BaseModel):
    success: bool
    already_confirmed: bool
    confirmation_id: uuid.UUID | None = None
    message: str


class ReleasedVideoRead(BaseModel):
    video_id: uuid.UUID
    title: str
    created_at: datetime
    url: str


class ConfirmationAuditRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    target_owner_id: uuid.UUID
    caller_id: uuid.UUID
    outcome: ConfirmationOutcome
    verification_method: VerificationMethod | None
    notes: str | None
    detail: str | None
    shares_granted: int
    created_at: datetime
