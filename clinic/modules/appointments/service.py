# clinic/modules/appointments/service.py
"""
Appointment write paths.

Every path that puts an appointment on a (professional, start) pair goes
through the same sequence inside one transaction:

    lock professional row -> locked read of the slot -> write -> flush -> commit

The professional row lock serialises concurrent bookings for the same
professional on PostgreSQL (a FOR UPDATE read of a row that does not exist yet
locks nothing). The partial unique index on (professional_id, starts_at) is
the backstop: an IntegrityError on the appointment flush is reported as a
slot conflict, never as a server error. On SQLite the engine opens every
transaction with BEGIN IMMEDIATE, which gives the same guarantee.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.core.timeutils import format_hhmm, local_now
from clinic.modules.appointments import repository as appt_repo
from clinic.modules.appointments.models import Appointment, ApptStatus
from clinic.modules.appointments.schemas import (
    AppointmentListItem,
    AppointmentNotesUpdate,
    AppointmentPublic,
    BookingConfirmation,
    ManualAppointmentCreate,
    PublicBookingRequest,
)
from clinic.modules.availability.service import get_available_slots
from clinic.modules.log import write_audit_log
from clinic.modules.patients import repository as patients_repo
from clinic.modules.users import repository as users_repo
from clinic.modules.users.models import User, UserRole

logger = logging.getLogger(__name__)


# Custom errors for router mapping to HTTP
class SlotConflict(Exception):
    """
    The slot is occupied by a non-canceled appointment, or is not offered.
    """


class AppointmentNotFound(Exception):
    """
    No appointment found (or not owned by the caller).
    """


class ProfessionalNotFound(Exception):
    pass


class PatientNotFound(Exception):
    pass


def _to_public(appt: Appointment) -> AppointmentPublic:
    return AppointmentPublic.model_validate(appt)


def _to_list_item(appt: Appointment) -> AppointmentListItem:
    item = AppointmentListItem.model_validate(appt)
    if appt.patient is not None:
        item.patient_full_name = appt.patient.full_name
        item.patient_national_id = appt.patient.national_id
        item.patient_email = appt.patient.email
        item.patient_phone = appt.patient.phone
    return item


async def _lock_professional(session: AsyncSession, professional_id: UUID) -> User:
    professional = await users_repo.get_active_professional(
        session, professional_id, for_update=True
    )
    if professional is None:
        raise ProfessionalNotFound("professional_not_found")
    return professional


async def _ensure_slot_free(
    session: AsyncSession,
    *,
    professional_id: UUID,
    starts_at: datetime,
    exclude_id: Optional[UUID] = None,
) -> None:
    taken = await appt_repo.find_active_at(
        session,
        professional_id=professional_id,
        starts_at=starts_at,
        exclude_id=exclude_id,
        for_update=True,
    )
    if taken is not None:
        raise SlotConflict("slot_already_taken")


async def _ensure_bookable(
    session: AsyncSession, *, professional_id: UUID, starts_at: datetime
) -> None:
    # The start must be a slot the availability query offers right now.
    slots = await get_available_slots(session, professional_id, starts_at.date())
    if format_hhmm(starts_at) not in slots:
        raise SlotConflict("slot_not_available")


async def _flush_slot_write(session: AsyncSession) -> None:
    try:
        await session.flush()
    except IntegrityError as exc:
        raise SlotConflict("slot_already_taken") from exc


# PUBLIC BOOKING
async def book_public_appointment(
    session: AsyncSession, payload: PublicBookingRequest
) -> BookingConfirmation:
    """
    Reserve a slot for a patient coming from the public booking page.

    Steps (one transaction, committed here):
    1. lock the professional, re-check the slot under the lock and
       confirm it is still an offered slot (on the rule grid, not past,
       not blocked)
    2. find the patient by national id and refresh contact fields,
       or create the patient owned by this professional
    3. insert the appointment as SCHEDULED
    Any error rolls everything back; no half-created patient survives.
    """
    identity = payload.patient
    try:
        await _lock_professional(session, payload.professional_id)
        await _ensure_slot_free(
            session,
            professional_id=payload.professional_id,
            starts_at=payload.starts_at,
        )
        await _ensure_bookable(
            session,
            professional_id=payload.professional_id,
            starts_at=payload.starts_at,
        )

        patient = await patients_repo.get_by_national_id(session, identity.national_id)
        if patient is not None:
            await patients_repo.update_contact(
                session,
                patient,
                first_name=identity.first_name,
                last_name=identity.last_name,
                email=identity.email,
                phone=identity.phone,
                birth_date=identity.birth_date,
            )
        else:
            patient = await patients_repo.create_patient(
                session,
                national_id=identity.national_id,
                first_name=identity.first_name,
                last_name=identity.last_name,
                email=identity.email,
                phone=identity.phone,
                birth_date=identity.birth_date,
                created_by_professional_id=payload.professional_id,
            )

        try:
            appt = await appt_repo.insert_appointment(
                session,
                professional_id=payload.professional_id,
                patient_id=patient.id,
                starts_at=payload.starts_at,
                reason_for_visit=payload.reason_for_visit,
            )
        except IntegrityError as exc:
            raise SlotConflict("slot_already_taken") from exc

        await write_audit_log(
            session,
            None,
            "PUBLIC_BOOKING",
            f"appointment={appt.id} professional={payload.professional_id} "
            f"starts_at={payload.starts_at.isoformat()}",
        )
        confirmation = BookingConfirmation(
            id=appt.id,
            starts_at=appt.starts_at,
            patient_id=patient.id,
            professional_id=appt.professional_id,
            status=ApptStatus.SCHEDULED.value,
        )
        await session.commit()
    except SlotConflict:
        await session.rollback()
        logger.info(
            "Booking conflict for professional %s at %s",
            payload.professional_id,
            payload.starts_at,
        )
        raise
    except Exception:
        await session.rollback()
        raise

    logger.info(
        "Appointment %s booked for professional %s at %s",
        confirmation.id,
        confirmation.professional_id,
        confirmation.starts_at,
    )
    return confirmation


# MANUAL CREATION
async def create_manual_appointment(
    session: AsyncSession,
    professional: User,
    payload: ManualAppointmentCreate,
) -> AppointmentPublic:
    """
    Professional books an existing patient into their own calendar.
    Same conflict handling as the public booking.
    """
    try:
        await _lock_professional(session, professional.id)

        patient = await patients_repo.get_by_id(session, payload.patient_id)
        if patient is None:
            raise PatientNotFound("patient_not_found")

        await _ensure_slot_free(
            session, professional_id=professional.id, starts_at=payload.starts_at
        )
        try:
            appt = await appt_repo.insert_appointment(
                session,
                professional_id=professional.id,
                patient_id=patient.id,
                starts_at=payload.starts_at,
                reason_for_visit=payload.reason_for_visit,
            )
        except IntegrityError as exc:
            raise SlotConflict("slot_already_taken") from exc

        await write_audit_log(
            session, professional.id, "MANUAL_BOOKING", f"appointment={appt.id}"
        )
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    await session.refresh(appt)
    logger.info("Manual appointment %s created by %s", appt.id, professional.id)
    return _to_public(appt)


# REPROGRAM
async def reprogram_appointment(
    session: AsyncSession,
    professional: User,
    appointment_id: UUID,
    new_starts_at: datetime,
) -> AppointmentPublic:
    """
    Move an appointment to another start time of the same professional.
    Only ``starts_at`` changes; the move of a live appointment is refused
    when another live appointment already holds the target slot.
    """
    try:
        await _lock_professional(session, professional.id)

        appt = await appt_repo.get_owned(
            session,
            appointment_id=appointment_id,
            professional_id=professional.id,
            for_update=True,
        )
        if appt is None:
            raise AppointmentNotFound("appointment_not_found")

        old_starts_at = appt.starts_at
        # A canceled appointment holds no slot, so moving it never collides
        if new_starts_at != old_starts_at:
            if not ApptStatus(appt.status).is_canceled:
                await _ensure_slot_free(
                    session,
                    professional_id=professional.id,
                    starts_at=new_starts_at,
                    exclude_id=appt.id,
                )
            appt.starts_at = new_starts_at
            await _flush_slot_write(session)
            await write_audit_log(
                session,
                professional.id,
                "APPOINTMENT_REPROGRAM",
                f"appointment={appt.id} {old_starts_at.isoformat()} -> {new_starts_at.isoformat()}",
            )
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    await session.refresh(appt)
    logger.info(
        "Appointment %s moved from %s to %s", appt.id, old_starts_at, appt.starts_at
    )
    return _to_public(appt)


# STATUS
async def update_status(
    session: AsyncSession,
    professional: User,
    appointment_id: UUID,
    new_status: ApptStatus,
) -> AppointmentPublic:
    """
    Any status may follow any other. Each change is stamped and audited.

    Moving a canceled appointment back to a live status re-occupies its slot,
    so that transition is checked against the unique index as well.
    """
    appt = await appt_repo.get_owned(
        session, appointment_id=appointment_id, professional_id=professional.id
    )
    if appt is None:
        raise AppointmentNotFound("appointment_not_found")

    old_status = appt.status
    if old_status != new_status.value:
        appt.status = new_status.value
        appt.status_changed_at = local_now()
        await _flush_slot_write(session)
        await write_audit_log(
            session,
            professional.id,
            "APPOINTMENT_STATUS",
            f"appointment={appt.id} {old_status} -> {new_status.value}",
        )
        logger.info(
            "Appointment %s status %s -> %s", appt.id, old_status, new_status.value
        )

    await session.refresh(appt)
    return _to_public(appt)


# NOTES
async def update_notes(
    session: AsyncSession,
    professional: User,
    appointment_id: UUID,
    payload: AppointmentNotesUpdate,
) -> AppointmentPublic:
    appt = await appt_repo.get_owned(
        session, appointment_id=appointment_id, professional_id=professional.id
    )
    if appt is None:
        raise AppointmentNotFound("appointment_not_found")

    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(appt, field, value)
    await session.flush()
    await session.refresh(appt)
    return _to_public(appt)


# DELETE
async def delete_appointment(
    session: AsyncSession, current_user: User, appointment_id: UUID
) -> None:
    """
    Professionals delete their own appointments; admins delete any.
    """
    owner = None if current_user.role == UserRole.ADMIN.value else current_user.id
    appt = await appt_repo.get_owned(
        session, appointment_id=appointment_id, professional_id=owner
    )
    if appt is None:
        raise AppointmentNotFound("appointment_not_found")

    await appt_repo.delete_appointment(session, appointment_id=appt.id)
    await write_audit_log(
        session, current_user.id, "APPOINTMENT_DELETE", f"appointment={appointment_id}"
    )
    logger.info("Appointment %s deleted by %s", appointment_id, current_user.id)


# LIST
async def list_appointments(
    session: AsyncSession,
    current_user: User,
    *,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    patient_national_id: Optional[str] = None,
    professional_id: Optional[UUID] = None,
) -> List[AppointmentListItem]:
    """
    - professional => own appointments
    - admin => all, or one professional when professional_id is given
    Dates are inclusive calendar days.
    """
    if current_user.role == UserRole.PROFESSIONAL.value:
        scope = current_user.id
    else:
        scope = professional_id

    start = datetime.combine(start_date, datetime.min.time()) if start_date else None
    end = (
        datetime.combine(end_date + timedelta(days=1), datetime.min.time())
        if end_date
        else None
    )
    rows = await appt_repo.list_for_professional(
        session,
        professional_id=scope,
        start=start,
        end=end,
        patient_national_id=patient_national_id,
    )
    return [_to_list_item(a) for a in rows]
