# clinic/modules/patients/repository.py
from __future__ import annotations

from datetime import date
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.modules.appointments.models import Appointment
from clinic.modules.patients.models import Patient


async def get_by_id(session: AsyncSession, patient_id: UUID) -> Optional[Patient]:
    return await session.get(Patient, patient_id)


async def get_by_national_id(session: AsyncSession, national_id: str) -> Optional[Patient]:
    stmt = select(Patient).where(Patient.national_id == national_id.strip())
    return (await session.execute(stmt)).scalar_one_or_none()


async def national_id_taken(
    session: AsyncSession, national_id: str, *, exclude_id: Optional[UUID] = None
) -> bool:
    stmt = select(Patient.id).where(Patient.national_id == national_id.strip())
    if exclude_id is not None:
        stmt = stmt.where(Patient.id != exclude_id)
    return (await session.execute(stmt)).first() is not None


async def create_patient(
    session: AsyncSession,
    *,
    national_id: str,
    first_name: str,
    last_name: str,
    email: str,
    phone: Optional[str] = None,
    birth_date: Optional[date] = None,
    created_by_professional_id: Optional[UUID] = None,
) -> Patient:
    patient = Patient(
        national_id=national_id,
        first_name=first_name,
        last_name=last_name,
        email=email,
        phone=phone,
        birth_date=birth_date,
        is_active=True,
        created_by_professional_id=created_by_professional_id,
    )
    session.add(patient)
    await session.flush()
    return patient


async def update_contact(
    session: AsyncSession,
    patient: Patient,
    *,
    first_name: str,
    last_name: str,
    email: str,
    phone: Optional[str],
    birth_date: Optional[date],
) -> Patient:
    """
    Overwrite name/contact fields in place; identifier and national id are kept.
    """
    patient.first_name = first_name
    patient.last_name = last_name
    patient.email = email
    patient.phone = phone
    patient.birth_date = birth_date
    await session.flush()
    return patient


async def list_for_professional(
    session: AsyncSession, professional_id: UUID, *, include_inactive: bool = False
) -> Sequence[Patient]:
    """
    Patients with at least one appointment with the professional, or created by them.
    """
    with_appointments = select(Appointment.patient_id).where(
        Appointment.professional_id == professional_id,
        Appointment.patient_id.is_not(None),
    )
    stmt = select(Patient).where(
        or_(
            Patient.id.in_(with_appointments),
            Patient.created_by_professional_id == professional_id,
        )
    )
    if not include_inactive:
        stmt = stmt.where(Patient.is_active.is_(True))
    stmt = stmt.order_by(Patient.last_name, Patient.first_name)
    return (await session.execute(stmt)).scalars().all()
