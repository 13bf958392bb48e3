# clinic/modules/appointments/schemas.py
from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from clinic.core.timeutils import to_local_naive
from clinic.modules.appointments.models import ApptStatus
from clinic.modules.patients.schemas import PatientIdentity


def _local_slot_start(v: datetime) -> datetime:
    v = to_local_naive(v)
    return v.replace(second=0, microsecond=0)


class PublicBookingRequest(BaseModel):
    """
    Public booking form. ``starts_at`` is the exact slot start (ISO 8601).
    """
    professional_id: UUID
    starts_at: datetime
    patient: PatientIdentity
    reason_for_visit: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("starts_at")
    @classmethod
    def _normalize_start(cls, v: datetime) -> datetime:
        return _local_slot_start(v)


class BookingConfirmation(BaseModel):
    """
    Summary shown on the confirmation screen.
    """
    id: UUID
    starts_at: datetime
    patient_id: UUID
    professional_id: UUID
    status: str


class ManualAppointmentCreate(BaseModel):
    """
    Professional books an existing patient. professional_id comes from the token.
    """
    patient_id: UUID
    starts_at: datetime
    reason_for_visit: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("starts_at")
    @classmethod
    def _normalize_start(cls, v: datetime) -> datetime:
        return _local_slot_start(v)


class AppointmentStatusUpdate(BaseModel):
    status: ApptStatus

    @field_validator("status", mode="before")
    @classmethod
    def _upper(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class AppointmentReprogram(BaseModel):
    starts_at: datetime

    @field_validator("starts_at")
    @classmethod
    def _normalize_start(cls, v: datetime) -> datetime:
        return _local_slot_start(v)


class AppointmentNotesUpdate(BaseModel):
    professional_notes: Optional[str] = None
    patient_notes: Optional[str] = None


class AppointmentPublic(BaseModel):
    id: UUID
    professional_id: UUID
    patient_id: Optional[UUID] = None
    starts_at: datetime
    status: str
    status_changed_at: Optional[datetime] = None
    reason_for_visit: Optional[str] = None
    professional_notes: Optional[str] = None
    patient_notes: Optional[str] = None

    class Config:
        from_attributes = True


class AppointmentListItem(AppointmentPublic):
    """
    Calendar entry, with the patient's display fields flattened in.
    """
    patient_full_name: Optional[str] = None
    patient_national_id: Optional[str] = None
    patient_email: Optional[str] = None
    patient_phone: Optional[str] = None
