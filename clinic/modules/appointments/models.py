# clinic/modules/appointments/models.py
from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import (
    DateTime,
    String,
    Text,
    ForeignKey,
    Index,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clinic.db.base import Base, UUIDPKMixin, TimestampMixin, ReprMixin
from clinic.modules.patients.models import Patient


class ApptStatus(PyEnum):
    SCHEDULED = "SCHEDULED"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELED_BY_PROFESSIONAL = "CANCELED_BY_PROFESSIONAL"
    CANCELED_BY_PATIENT = "CANCELED_BY_PATIENT"
    NO_SHOW = "NO_SHOW"

    @property
    def is_canceled(self) -> bool:
        return self in CANCELED_STATUSES


CANCELED_STATUSES = frozenset(
    {ApptStatus.CANCELED_BY_PROFESSIONAL, ApptStatus.CANCELED_BY_PATIENT}
)
CANCELED_VALUES = tuple(sorted(s.value for s in CANCELED_STATUSES))

# Only non-canceled rows occupy a slot
_ACTIVE_ROW = text(
    "status NOT IN ({})".format(", ".join(f"'{v}'" for v in CANCELED_VALUES))
)


class Appointment(UUIDPKMixin, TimestampMixin, ReprMixin, Base):
    """
    One booked slot. ``starts_at`` is clinic wall-clock time (naive).
    """

    __tablename__ = "appointments"
    __repr_attrs__ = ("id", "professional_id", "starts_at", "status")

    professional_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    patient_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=True,
    )

    starts_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=ApptStatus.SCHEDULED.value,
        server_default=ApptStatus.SCHEDULED.value,
    )
    status_changed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    reason_for_visit: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    professional_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    patient_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    patient: Mapped[Optional[Patient]] = relationship(
        "Patient",
        foreign_keys=[patient_id],
        lazy="joined",
    )

    __table_args__ = (
        # Double-booking backstop: one live appointment per professional and start
        Index(
            "uq_appt_professional_start_active",
            "professional_id",
            "starts_at",
            unique=True,
            postgresql_where=_ACTIVE_ROW,
            sqlite_where=_ACTIVE_ROW,
        ),
        Index("ix_appt_patient", "patient_id"),
    )

    @property
    def status_enum(self) -> ApptStatus:
        return ApptStatus(self.status)
