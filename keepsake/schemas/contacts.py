"""Request/response models for contacts and relationships."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from keepsake.models.enums import ContactType, InvitationStatus, TrustedRole


class ContactCreate(BaseModel):
    """Add a contact for the calling owner."""

    email: str = Field(..., max_length=255, description="Contact email (any case/whitespace)")
    full_name: str = Field(..., min_length=1, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    relationship_label: str | None = Field(default=None, max_length=100)
    contact_type: ContactType = ContactType.REGULAR
    role: TrustedRole | None = Field(
        default=None, description="Required for trusted contacts, forbidden for regular ones"
    )
    is_primary: bool = False
    send_invitation: bool = Field(
        default=False, description="Email an invitation when the address has no account yet"
    )


class ContactUpdate(BaseModel):
    """Partial edit of a contact. Email is immutable; remove and re-add instead."""

    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    relationship_label: str | None = Field(default=None, max_length=100)
    contact_type: ContactType | None = None
    role: TrustedRole | None = None
    is_primary: bool | None = None


class ContactRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    owner_id: uuid.UUID
    email: str
    full_name: str
    phone: str | None
    relationship_label: str | None
    contact_type: ContactType
    role: TrustedRole | None
    is_primary: bool
    invitation_status: InvitationStatus
    target_user_id: uuid.UUID | None
    confirmed_at: datetime | None
    created_at: datetime


class TrustedRelationshipRead(BaseModel):
    """A relationship in which the caller is someone else's trusted contact."""

    model_config = ConfigDict(from_attributes=True)

    owner_id: uuid.UUID
    owner_display_name: str
    owner_email: str
    role: TrustedRole
    is_primary: bool
    invitation_status: InvitationStatus
    created_at: datetime
    owner_deceased: bool
