# clinic/routers/patients.py
from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.db.sql import get_session
from clinic.dependencies import require_staff
from clinic.modules.users.models import User
from clinic.modules.patients.schemas import (
    PatientCreateRequest,
    PatientPublic,
    PatientStatusRequest,
    PatientUpdateRequest,
)
from clinic.modules.patients.service import (
    PatientAlreadyExists,
    PatientNotFound,
    create_patient as create_patient_svc,
    list_patients,
    set_patient_active,
    update_patient as update_patient_svc,
)

router = APIRouter(tags=["patients"])


@router.get(
    "/patients",
    response_model=List[PatientPublic],
    summary="Patients seen by, or created by, the caller",
)
async def patients_index(
    include_inactive: bool = Query(False),
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_staff),
):
    return await list_patients(session, current_user, include_inactive=include_inactive)


@router.post(
    "/patients",
    response_model=PatientPublic,
    status_code=status.HTTP_201_CREATED,
    summary="Create a patient",
    responses={409: {"description": "National id already registered"}},
)
async def patients_create(
    payload: PatientCreateRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_staff),
):
    try:
        return await create_patient_svc(session, payload, current_user)
    except PatientAlreadyExists:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="patient_already_exists",
        )


@router.put(
    "/patients/{patient_id}",
    response_model=PatientPublic,
    summary="Update a patient by id",
)
async def patients_update(
    patient_id: UUID,
    payload: PatientUpdateRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_staff),
):
    try:
        return await update_patient_svc(session, patient_id, payload)
    except PatientNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="patient_not_found",
        )
    except PatientAlreadyExists:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="national_id_in_use",
        )


@router.patch(
    "/patients/{patient_id}/status",
    response_model=PatientPublic,
    summary="Activate or deactivate a patient",
)
async def patients_status(
    patient_id: UUID,
    payload: PatientStatusRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(require_staff),
):
    try:
        return await set_patient_active(session, patient_id, payload.is_active)
    except PatientNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="patient_not_found",
        )
