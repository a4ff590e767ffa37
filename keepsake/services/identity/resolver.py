"""
Identity resolution: does an email belong to a registered account?

The resolver only reads the account directory. A directory failure is
reported as "unresolved" so the contact write that depends on it still
succeeds; the reconciliation sweep retries later.
"""

import uuid
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import Executable

from keepsake.core.errors import DirectoryUnavailableError
from keepsake.core.logging import get_logger, mask_email
from keepsake.models.user import User
from keepsake.services.identity.normalization import normalize_email

logger = get_logger(__name__)


@dataclass(frozen=True)
class Resolution:
    """Result of resolving one email address."""

    exists: bool
    account_id: uuid.UUID | None = None

    @classmethod
    def unresolved(cls) -> "Resolution":
        return cls(exists=False, account_id=None)


class AccountDirectory(Protocol):
    """Lookup of registered accounts by normalized email."""

    def find_account_id(self, normalized_email: str) -> uuid.UUID | None: ...


class DatabaseAccountDirectory:
    """Account directory backed by the users table."""

    def __init__(self, db: Session):
        self.db = db

    def lookup_statement(self, normalized_email: str) -> Executable:
        return select(User.id).where(User.email == normalized_email)

    def find_account_id(self, normalized_email: str) -> uuid.UUID | None:
        # Savepoint: a failed lookup must not abort the caller's transaction
        try:
            with self.db.begin_nested():
                return self.db.execute(self.lookup_statement(normalized_email)).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DirectoryUnavailableError(f"Account directory query failed: {e}") from e


class IdentityResolver:
    """Maps a free-text email to a registered account id."""

    def __init__(self, directory: AccountDirectory):
        self.directory = directory

    @classmethod
    def for_session(cls, db: Session) -> "IdentityResolver":
        return cls(DatabaseAccountDirectory(db))

    def resolve(self, email: str | None) -> Resolution:
        """
        Resolve an email address.

        Args:
            email: Raw address as typed; normalized here regardless of caller

        Returns:
            Resolution with exists=True and the account id when registered,
            otherwise an unresolved Resolution (also on directory failure)
        """
        normalized = normalize_email(email)
        if not normalized:
            return Resolution.unresolved()

        try:
            account_id = self.directory.find_account_id(normalized)
        except DirectoryUnavailableError as e:
            logger.warning(f"Identity lookup deferred for {mask_email(normalized)}: {e}")
            return Resolution.unresolved()

        if account_id is None:
            return Resolution.unresolved()
        return Resolution(exists=True, account_id=account_id)
