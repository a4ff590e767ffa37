"""
Reverse relationship routes: owners who list the caller as a trusted contact.
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, Query

from keepsake.api.deps import get_current_user, get_lifecycle
from keepsake.models.user import User
from keepsake.schemas.contacts import TrustedRelationshipRead
from keepsake.services.contacts.lifecycle import RelationshipLifecycle

router = APIRouter()


@router.get("/trusted", response_model=list[TrustedRelationshipRead])
def my_trusted_relationships(
    email: str | None = Query(default=None),
    user: User = Depends(get_current_user),
    lifecycle: RelationshipLifecycle = Depends(get_lifecycle),
) -> list[TrustedRelationshipRead]:
    return [
        TrustedRelationshipRead(**asdict(rel))
        for rel in lifecycle.relationships_for(user, email=email)
    ]
