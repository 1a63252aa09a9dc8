"""
Account models: lifecycle profile and role assignment.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, String, func, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from opsconsole.kernel.models.base import Base, TimestampMixin, generate_uuid


class AccountRole(str, Enum):
    """Account roles. Admin overrides every module-level check."""
    ADMIN = "admin"
    MEMBER = "member"


class AccountStatus(str, Enum):
    """Account lifecycle status. Only active accounts reach any module."""
    PENDING = "pending"
    ACTIVE = "active"
    SUSPENDED = "suspended"


class Profile(Base, TimestampMixin):
    """
    Per-identity profile row.

    The id is the identity provider's user id. Permissions live here in two
    shapes: ``module_permissions`` (module -> level) and the deprecated
    ``allowed_modules`` list, which is only read for migration.
    """

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
    )
    email: Mapped[Optional[str]] = mapped_column(
        String(255),
        index=True,
        nullable=True,
    )
    full_name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    status: Mapped[AccountStatus] = mapped_column(
        String(50),
        default=AccountStatus.PENDING,
        nullable=False,
    )
    allowed_modules: Mapped[Optional[List[str]]] = mapped_column(
        JSON,
        nullable=True,
    )
    module_permissions: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSON,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Profile {self.email or self.id} status={self.status}>"


class UserRoleAssignment(Base):
    """Role row for an account. At most one per user."""

    __tablename__ = "user_roles"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
    )
    role: Mapped[AccountRole] = mapped_column(
        String(50),
        default=AccountRole.MEMBER,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<UserRoleAssignment user={self.user_id} role={self.role}>"
