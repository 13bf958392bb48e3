# clinic/routers/appointments.py
from __future__ import annotations

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.db.sql import get_session
from clinic.dependencies import require_professional, require_staff
from clinic.modules.users.models import User

from clinic.modules.appointments.schemas import (
    AppointmentListItem,
    AppointmentNotesUpdate,
    AppointmentPublic,
    AppointmentReprogram,
    AppointmentStatusUpdate,
    ManualAppointmentCreate,
)
from clinic.modules.appointments.service import (
    AppointmentNotFound,
    PatientNotFound,
    ProfessionalNotFound,
    SlotConflict,
    create_manual_appointment,
    delete_appointment,
    list_appointments,
    reprogram_appointment,
    update_notes,
    update_status,
)

router = APIRouter(tags=["appointments"])

SLOT_TAKEN_MESSAGE = "This slot is no longer available, please choose another."


def _not_found(detail: str = "appointment_not_found") -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


def _conflict() -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=SLOT_TAKEN_MESSAGE)


@router.get(
    "/appointments",
    response_model=List[AppointmentListItem],
    summary="Calendar of appointments (own for professionals, any for admins)",
)
async def appointments_index(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    patient_national_id: Optional[str] = Query(None, max_length=20),
    professional_id: Optional[UUID] = Query(None, description="Admin only"),
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_staff),
):
    return await list_appointments(
        session,
        current_user,
        start_date=start_date,
        end_date=end_date,
        patient_national_id=patient_national_id,
        professional_id=professional_id,
    )


@router.post(
    "/appointments",
    response_model=AppointmentPublic,
    status_code=status.HTTP_201_CREATED,
    summary="Book an existing patient into the caller's calendar",
    responses={404: {"description": "Unknown patient"}, 409: {"description": "Slot taken"}},
)
async def appointments_create(
    payload: ManualAppointmentCreate,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_professional),
):
    try:
        return await create_manual_appointment(session, current_user, payload)
    except SlotConflict:
        raise _conflict()
    except PatientNotFound:
        raise _not_found("patient_not_found")
    except ProfessionalNotFound:
        raise _not_found("professional_not_found")


@router.patch(
    "/appointments/{appointment_id}/status",
    response_model=AppointmentPublic,
    summary="Change an appointment's status",
)
async def appointments_status(
    appointment_id: UUID,
    payload: AppointmentStatusUpdate,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_professional),
):
    try:
        return await update_status(session, current_user, appointment_id, payload.status)
    except AppointmentNotFound:
        raise _not_found()
    except SlotConflict:
        raise _conflict()


@router.patch(
    "/appointments/{appointment_id}/reschedule",
    response_model=AppointmentPublic,
    summary="Move an appointment to another start time",
    responses={409: {"description": "Target slot taken"}},
)
async def appointments_reschedule(
    appointment_id: UUID,
    payload: AppointmentReprogram,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_professional),
):
    try:
        return await reprogram_appointment(
            session, current_user, appointment_id, payload.starts_at
        )
    except AppointmentNotFound:
        raise _not_found()
    except SlotConflict:
        raise _conflict()
    except ProfessionalNotFound:
        raise _not_found("professional_not_found")


@router.patch(
    "/appointments/{appointment_id}/notes",
    response_model=AppointmentPublic,
    summary="Update professional / patient-visible notes",
)
async def appointments_notes(
    appointment_id: UUID,
    payload: AppointmentNotesUpdate,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_professional),
):
    try:
        return await update_notes(session, current_user, appointment_id, payload)
    except AppointmentNotFound:
        raise _not_found()


@router.delete(
    "/appointments/{appointment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an appointment",
)
async def appointments_delete(
    appointment_id: UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_staff),
):
    try:
        await delete_appointment(session, current_user, appointment_id)
    except AppointmentNotFound:
        raise _not_found()
    return None
