# clinic/modules/users/models.py
from __future__ import annotations

import uuid
from typing import Optional
from enum import Enum as PyEnum
from sqlalchemy import ForeignKey
import datetime as dt
from sqlalchemy import func, true

from sqlalchemy import (
    String,
    Text,
    Boolean,
    CheckConstraint,
    UniqueConstraint,
    Index,
)
from sqlalchemy.orm import Mapped, mapped_column

from clinic.db.base import Base, UUIDPKMixin, TimestampMixin, ReprMixin


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    action: Mapped[str] = mapped_column(String(64), nullable=False)
    details: Mapped[str | None] = mapped_column(Text)
    timestamp: Mapped[dt.datetime] = mapped_column(server_default=func.now())


class UserRole(PyEnum):
    PROFESSIONAL = "PROFESSIONAL"
    ADMIN = "ADMIN"


class User(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    Staff account. Professionals own schedules, blocks and appointments.
    """

    __tablename__ = "users"
    __repr_attrs__ = ("id", "national_id", "role", "is_active")

    national_id: Mapped[str] = mapped_column(String(20), nullable=False)
    full_name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    role: Mapped[str] = mapped_column(
        String(20), nullable=False, server_default=UserRole.PROFESSIONAL.value
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=true(), default=True
    )

    # Public profile (professionals only)
    specialty: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    last_login_at: Mapped[Optional[dt.datetime]] = mapped_column(nullable=True)

    __table_args__ = (
        UniqueConstraint("national_id", name="uq_users_national_id"),
        CheckConstraint(
            "role IN ('PROFESSIONAL', 'ADMIN')", name="ck_users_role_valid"
        ),
        Index("ix_users_active_role", "is_active", "role"),
    )

    @property
    def role_enum(self) -> UserRole:
        """Get role as UserRole enum instance."""
        return UserRole(self.role)
