"""
Request dependencies: authenticated caller and service wiring.
"""

import uuid
from collections.abc import Iterator

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from keepsake.core.database import get_sync_db
from keepsake.core.errors import AuthenticationError, AuthorizationError
from keepsake.core.logging import get_logger, mask_email
from keepsake.integrations.supabase.auth import SupabaseAuthClient
from keepsake.models.user import User
from keepsake.services.contacts.lifecycle import RelationshipLifecycle
from keepsake.services.contacts.store import ContactStore
from keepsake.services.identity.normalization import normalize_email
from keepsake.services.legacy.authorization import AdminAuthorizer
from keepsake.services.legacy.media import MediaAccess
from keepsake.services.legacy.release import ReleaseOrchestrator
from keepsake.worker.tasks import (
    link_account_contacts_task,
    send_invitation_email_task,
    send_release_notifications_task,
)

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_auth_client() -> Iterator[SupabaseAuthClient]:
    client = SupabaseAuthClient()
    try:
        yield client
    finally:
        client.close()


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_sync_db),
    auth_client: SupabaseAuthClient = Depends(get_auth_client),
) -> User:
    """
    Resolve the bearer token to a local account.

    Only the provider-verified email is trusted; nothing the client sends
    about roles or identity is used. First-time callers get a local User and
    their pending contact rows are linked in the background. A known provider
    account that arrives with a new email has its stored email updated.
    """
    if credentials is None:
        raise AuthenticationError()

    identity = auth_client.get_identity(credentials.credentials)
    if not identity.email_verified:
        raise AuthenticationError("Email address not verified")

    email = normalize_email(identity.email)
    user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if user is not None:
        return user

    try:
        account_id = uuid.UUID(identity.user_id)
    except ValueError as e:
        raise AuthenticationError("Invalid authentication token") from e

    user = db.get(User, account_id)
    if user is not None:
        # Same provider account, email changed at the provider
        user.email = email
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise AuthenticationError("Email address already belongs to another account") from e
        logger.info(f"Updated email of account {account_id} to {mask_email(email)}")
    else:
        user = User(id=account_id, email=email)
        db.add(user)
        try:
            db.commit()
        except IntegrityError as e:
            # Another request provisioned the same account first
            db.rollback()
            existing = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
            if existing is None:
                existing = db.get(User, account_id)
            if existing is None:
                raise AuthenticationError("Could not provision account") from e
            return existing
        logger.info(f"Provisioned account {account_id} for {mask_email(email)}")

    try:
        link_account_contacts_task.delay(str(account_id))
    except Exception as e:
        logger.error(f"Could not enqueue contact linking for {account_id}: {e}")
    return user


def require_admin(
    user: User = Depends(get_current_user), db: Session = Depends(get_sync_db)
) -> User:
    if not AdminAuthorizer(db).check(user.id):
        raise AuthorizationError()
    return user


def _enqueue_invitation(contact_id: uuid.UUID) -> None:
    send_invitation_email_task.delay(str(contact_id))


def _enqueue_release_notifications(owner_id: uuid.UUID, confirmation_id: uuid.UUID) -> None:
    send_release_notifications_task.delay(str(owner_id), str(confirmation_id))


def get_contact_store(db: Session = Depends(get_sync_db)) -> ContactStore:
    return ContactStore(db, dispatch_invitation=_enqueue_invitation)


def get_lifecycle(db: Session = Depends(get_sync_db)) -> RelationshipLifecycle:
    return RelationshipLifecycle(db)


def get_media_access(db: Session = Depends(get_sync_db)) -> Iterator[MediaAccess]:
    media = MediaAccess(db)
    try:
        yield media
    finally:
        media.close()


def get_release_orchestrator(db: Session = Depends(get_sync_db)) -> ReleaseOrchestrator:
    return ReleaseOrchestrator(db, dispatch_notifications=_enqueue_release_notifications)
