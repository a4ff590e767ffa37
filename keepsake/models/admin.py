"""Admin role assignments."""

import uuid

from sqlalchemy import ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from keepsake.models.base import Base, TimestampMixin, UUIDMixin, enum_column
from keepsake.models.enums import AdminRole


class AdminUser(Base, UUIDMixin, TimestampMixin):
    """Accounts holding an admin role. Replaces any shared admin password."""

    __tablename__ = "admin_users"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    role: Mapped[AdminRole] = mapped_column(
        enum_column(AdminRole, "admin_role"), nullable=False, default=AdminRole.MODERATOR
    )

    def __repr__(self) -> str:
        return f"<AdminUser(user_id={self.user_id}, role={self.role})>"
