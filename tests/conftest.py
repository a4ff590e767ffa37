"""
Pytest configuration and shared fixtures.
"""

import os

# Settings are read at import time; give the required keys test values first.
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-service-key")

import uuid
from collections.abc import Callable, Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from keepsake.core.database import enable_sqlite_savepoints
from keepsake.models import Base, Contact, User, Video
from keepsake.models.enums import (
    ContactType,
    InvitationStatus,
    TrustedRole,
    VideoVisibility,
)


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """In-memory SQLite engine shared across threads (TestClient)."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """Test database session."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db: Session) -> Callable[..., User]:
    """Factory for persisted accounts."""

    def _make(email: str, display_name: str | None = None, **fields) -> User:
        user = User(id=uuid.uuid4(), email=email, display_name=display_name, **fields)
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_contact(db: Session) -> Callable[..., Contact]:
    """Factory for contact rows written directly, bypassing the store."""

    def _make(
        owner: User,
        email: str,
        contact_type: ContactType = ContactType.TRUSTED,
        role: TrustedRole | None = TrustedRole.EXECUTOR,
        account: User | None = None,
        status: InvitationStatus | None = None,
        **fields,
    ) -> Contact:
        if contact_type == ContactType.REGULAR:
            role = None
        contact = Contact(
            id=uuid.uuid4(),
            owner_id=owner.id,
            email=email,
            full_name=fields.pop("full_name", email.split("@")[0].title()),
            contact_type=contact_type,
            role=role,
            invitation_status=status
            or (InvitationStatus.REGISTERED if account else InvitationStatus.PENDING_CONFIRMATION),
            target_user_id=account.id if account else None,
            **fields,
        )
        db.add(contact)
        db.commit()
        return contact

    return _make


@pytest.fixture
def make_video(db: Session) -> Callable[..., Video]:
    def _make(
        owner: User,
        title: str = "For my family",
        visibility: VideoVisibility = VideoVisibility.TRUSTED_RELEASE,
    ) -> Video:
        video = Video(
            id=uuid.uuid4(),
            owner_id=owner.id,
            title=title,
            storage_path=f"{owner.id}/{uuid.uuid4()}.mp4",
            visibility=visibility,
        )
        db.add(video)
        db.commit()
        return video

    return _make
