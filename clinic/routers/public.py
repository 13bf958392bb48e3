# clinic/routers/public.py
from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.core.timeutils import parse_date
from clinic.db.sql import get_session
from clinic.modules.appointments.schemas import BookingConfirmation, PublicBookingRequest
from clinic.modules.appointments.service import (
    ProfessionalNotFound,
    SlotConflict,
    book_public_appointment,
)
from clinic.modules.availability.service import get_available_slots
from clinic.modules.patients.schemas import PatientLookup
from clinic.modules.patients.service import PatientNotFound, lookup_patient
from clinic.modules.users.repository import get_active_professional
from clinic.modules.users.schemas import ProfessionalPublic
from clinic.modules.users.service import list_public_professionals

router = APIRouter(prefix="/public", tags=["public"])

SLOT_TAKEN_MESSAGE = "This slot is no longer available, please choose another."


@router.get(
    "/professionals",
    response_model=List[ProfessionalPublic],
    summary="Active professionals shown on the booking page",
)
async def public_professionals(session: AsyncSession = Depends(get_session)):
    return await list_public_professionals(session)


@router.get(
    "/availability",
    response_model=List[str],
    summary="Free slot start times (HH:MM) for a professional on a date",
    responses={
        400: {"description": "Missing or invalid parameters"},
        404: {"description": "Unknown or inactive professional"},
    },
)
async def public_availability(
    professional_id: UUID = Query(..., description="Professional id"),
    date: str = Query(..., description="Calendar date, YYYY-MM-DD"),
    session: AsyncSession = Depends(get_session),
):
    try:
        target = parse_date(date)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="invalid_date",
        )
    if await get_active_professional(session, professional_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="professional_not_found",
        )
    return await get_available_slots(session, professional_id, target)


@router.get(
    "/patients/lookup",
    response_model=PatientLookup,
    summary="Prefill the booking form for a returning patient",
)
async def public_patient_lookup(
    national_id: str = Query(..., min_length=1, max_length=20),
    session: AsyncSession = Depends(get_session),
):
    try:
        return await lookup_patient(session, national_id)
    except PatientNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="patient_not_found",
        )


@router.post(
    "/appointments",
    response_model=BookingConfirmation,
    status_code=status.HTTP_201_CREATED,
    summary="Book a slot (transactional, conflict-safe)",
    responses={
        201: {"description": "Appointment booked"},
        400: {"description": "Invalid payload"},
        404: {"description": "Unknown professional"},
        409: {"description": "Slot already taken"},
    },
)
async def public_book(
    payload: PublicBookingRequest,
    session: AsyncSession = Depends(get_session),
):
    try:
        return await book_public_appointment(session, payload)
    except SlotConflict:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=SLOT_TAKEN_MESSAGE,
        )
    except ProfessionalNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="professional_not_found",
        )
