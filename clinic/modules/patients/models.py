# clinic/modules/patients/models.py
from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

from sqlalchemy import Boolean, Date, ForeignKey, Index, String, UniqueConstraint, true
from sqlalchemy.orm import Mapped, mapped_column

from clinic.db.base import Base, UUIDPKMixin, TimestampMixin, ReprMixin


class Patient(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    Patient record, keyed by national id. Created by a professional or found-or-created
    by a public booking.
    """

    __tablename__ = "patients"
    __repr_attrs__ = ("id", "national_id", "last_name")

    national_id: Mapped[str] = mapped_column(String(20), nullable=False)
    first_name: Mapped[str] = mapped_column(String(60), nullable=False)
    last_name: Mapped[str] = mapped_column(String(60), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    birth_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=true(), default=True
    )

    created_by_professional_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        UniqueConstraint("national_id", name="uq_patients_national_id"),
        Index("ix_patients_last_first", "last_name", "first_name"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
