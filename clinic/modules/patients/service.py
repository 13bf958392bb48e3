# clinic/modules/patients/service.py
from __future__ import annotations

import logging
from typing import List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from clinic.modules.patients import repository as patients_repo
from clinic.modules.patients.schemas import (
    PatientCreateRequest,
    PatientLookup,
    PatientPublic,
    PatientUpdateRequest,
)
from clinic.modules.users.models import User

logger = logging.getLogger(__name__)


class PatientNotFound(Exception):
    pass


class PatientAlreadyExists(Exception):
    pass


def _to_public(patient) -> PatientPublic:
    return PatientPublic.model_validate(patient)


async def list_patients(
    session: AsyncSession, professional: User, include_inactive: bool = False
) -> List[PatientPublic]:
    rows = await patients_repo.list_for_professional(
        session, professional.id, include_inactive=include_inactive
    )
    return [_to_public(p) for p in rows]


async def create_patient(
    session: AsyncSession, payload: PatientCreateRequest, professional: User
) -> PatientPublic:
    if await patients_repo.national_id_taken(session, payload.national_id):
        raise PatientAlreadyExists("patient_already_exists")

    patient = await patients_repo.create_patient(
        session,
        national_id=payload.national_id,
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=payload.email,
        phone=payload.phone,
        birth_date=payload.birth_date,
        created_by_professional_id=professional.id,
    )
    await session.refresh(patient)
    logger.info("Patient %s created by professional %s", patient.id, professional.id)
    return _to_public(patient)


async def update_patient(
    session: AsyncSession, patient_id: UUID, payload: PatientUpdateRequest
) -> PatientPublic:
    patient = await patients_repo.get_by_id(session, patient_id)
    if not patient:
        raise PatientNotFound("patient_not_found")

    if await patients_repo.national_id_taken(
        session, payload.national_id, exclude_id=patient_id
    ):
        raise PatientAlreadyExists("national_id_in_use")

    patient.national_id = payload.national_id
    await patients_repo.update_contact(
        session,
        patient,
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=payload.email,
        phone=payload.phone,
        birth_date=payload.birth_date,
    )
    await session.refresh(patient)
    return _to_public(patient)


async def set_patient_active(
    session: AsyncSession, patient_id: UUID, is_active: bool
) -> PatientPublic:
    patient = await patients_repo.get_by_id(session, patient_id)
    if not patient:
        raise PatientNotFound("patient_not_found")
    patient.is_active = is_active
    await session.flush()
    await session.refresh(patient)
    return _to_public(patient)


async def lookup_patient(session: AsyncSession, national_id: str) -> PatientLookup:
    """
    Public lookup used by the booking form to prefill a returning patient.
    """
    patient = await patients_repo.get_by_national_id(session, national_id)
    if not patient or not patient.is_active:
        raise PatientNotFound("patient_not_found")
    return PatientLookup.model_validate(patient)
