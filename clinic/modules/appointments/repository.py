# clinic/modules/appointments/repository.py
from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.modules.appointments.models import Appointment, ApptStatus, CANCELED_VALUES
from clinic.modules.patients.models import Patient


def _is_active():
    return Appointment.status.not_in(CANCELED_VALUES)


async def find_active_at(
    session: AsyncSession,
    *,
    professional_id: UUID,
    starts_at: datetime,
    exclude_id: Optional[UUID] = None,
    for_update: bool = False,
) -> Optional[Appointment]:
    """
    Non-canceled appointment occupying (professional, starts_at), if any.
    """
    stmt = select(Appointment).where(
        Appointment.professional_id == professional_id,
        Appointment.starts_at == starts_at,
        _is_active(),
    )
    if exclude_id is not None:
        stmt = stmt.where(Appointment.id != exclude_id)
    if for_update:
        stmt = stmt.with_for_update(of=Appointment)
    return (await session.execute(stmt.limit(1))).scalars().first()


async def list_active_starts_between(
    session: AsyncSession, *, professional_id: UUID, start: datetime, end: datetime
) -> list[datetime]:
    """
    Start times of non-canceled appointments with start in [start, end).
    """
    stmt = (
        select(Appointment.starts_at)
        .where(
            Appointment.professional_id == professional_id,
            Appointment.starts_at >= start,
            Appointment.starts_at < end,
            _is_active(),
        )
        .order_by(Appointment.starts_at)
    )
    return list((await session.execute(stmt)).scalars().all())


async def list_for_professional(
    session: AsyncSession,
    *,
    professional_id: Optional[UUID],
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    patient_national_id: Optional[str] = None,
) -> Sequence[Appointment]:
    stmt = select(Appointment)
    if professional_id is not None:
        stmt = stmt.where(Appointment.professional_id == professional_id)
    if start is not None:
        stmt = stmt.where(Appointment.starts_at >= start)
    if end is not None:
        stmt = stmt.where(Appointment.starts_at < end)
    if patient_national_id:
        stmt = stmt.where(
            Appointment.patient_id.in_(
                select(Patient.id).where(Patient.national_id == patient_national_id.strip())
            )
        )
    stmt = stmt.order_by(Appointment.starts_at)
    return (await session.execute(stmt)).scalars().all()


async def get_owned(
    session: AsyncSession,
    *,
    appointment_id: UUID,
    professional_id: Optional[UUID],
    for_update: bool = False,
) -> Optional[Appointment]:
    """
    Appointment by id, restricted to ``professional_id`` unless it is None (admin).
    """
    stmt = select(Appointment).where(Appointment.id == appointment_id)
    if professional_id is not None:
        stmt = stmt.where(Appointment.professional_id == professional_id)
    if for_update:
        stmt = stmt.with_for_update(of=Appointment)
    return (await session.execute(stmt)).scalars().first()


async def insert_appointment(
    session: AsyncSession,
    *,
    professional_id: UUID,
    patient_id: Optional[UUID],
    starts_at: datetime,
    reason_for_visit: Optional[str] = None,
) -> Appointment:
    """
    Flushes the INSERT so constraint violations surface here.
    """
    appt = Appointment(
        professional_id=professional_id,
        patient_id=patient_id,
        starts_at=starts_at,
        status=ApptStatus.SCHEDULED.value,
        reason_for_visit=reason_for_visit,
    )
    session.add(appt)
    await session.flush()
    return appt


async def delete_appointment(session: AsyncSession, *, appointment_id: UUID) -> int:
    res = await session.execute(delete(Appointment).where(Appointment.id == appointment_id))
    return res.rowcount or 0
