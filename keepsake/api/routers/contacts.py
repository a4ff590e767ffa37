"""
Contact routes: the owner's own contact list.
"""

import uuid

from fastapi import APIRouter, Depends, Query, Response, status

from keepsake.api.deps import get_contact_store, get_current_user, get_lifecycle
from keepsake.models.enums import ContactType
from keepsake.models.user import User
from keepsake.schemas.contacts import ContactCreate, ContactRead, ContactUpdate
from keepsake.services.contacts.lifecycle import RelationshipLifecycle
from keepsake.services.contacts.store import ContactStore

router = APIRouter()


@router.post("", response_model=ContactRead, status_code=status.HTTP_201_CREATED)
def add_contact(
    data: ContactCreate,
    user: User = Depends(get_current_user),
    store: ContactStore = Depends(get_contact_store),
) -> ContactRead:
    """
    Add a contact.

    Returns 409 when the normalized email is already one of the caller's contacts.
    """
    return ContactRead.model_validate(store.add(user.id, data))


@router.get("", response_model=list[ContactRead])
def list_contacts(
    contact_type: ContactType | None = Query(default=None),
    user: User = Depends(get_current_user),
    store: ContactStore = Depends(get_contact_store),
) -> list[ContactRead]:
    return [ContactRead.model_validate(c) for c in store.list_for_owner(user.id, contact_type)]


@router.patch("/{contact_id}", response_model=ContactRead)
def update_contact(
    contact_id: uuid.UUID,
    data: ContactUpdate,
    user: User = Depends(get_current_user),
    store: ContactStore = Depends(get_contact_store),
) -> ContactRead:
    return ContactRead.model_validate(store.update(user.id, contact_id, data))


@router.delete("/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_contact(
    contact_id: uuid.UUID,
    user: User = Depends(get_current_user),
    store: ContactStore = Depends(get_contact_store),
) -> Response:
    store.remove(user.id, contact_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{contact_id}/recheck", response_model=ContactRead)
def recheck_contact(
    contact_id: uuid.UUID,
    user: User = Depends(get_current_user),
    lifecycle: RelationshipLifecycle = Depends(get_lifecycle),
) -> ContactRead:
    """Re-resolve one contact's email against registered accounts."""
    return ContactRead.model_validate(lifecycle.recheck(user.id, contact_id))
