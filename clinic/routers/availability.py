# clinic/routers/availability.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.db.sql import get_session
from clinic.dependencies import require_professional
from clinic.modules.availability import service as svc
from clinic.modules.availability.schemas import (
    ScheduleRuleCreate,
    ScheduleRulePublic,
    TimeBlockCreate,
    TimeBlockPublic,
)
from clinic.modules.users.models import User

router = APIRouter(prefix="/availability", tags=["availability"])


# Weekly schedule
@router.get("/schedules", response_model=List[ScheduleRulePublic])
async def list_schedules(
    db: AsyncSession = Depends(get_session),
    user: User = Depends(require_professional),
):
    return await svc.list_schedules(db, user)


@router.post(
    "/schedules",
    response_model=ScheduleRulePublic,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Rule already exists for that day and start time"}},
)
async def create_schedule(
    payload: ScheduleRuleCreate,
    db: AsyncSession = Depends(get_session),
    user: User = Depends(require_professional),
):
    try:
        return await svc.add_schedule(db, user, payload)
    except svc.ScheduleRuleAlreadyExists:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="schedule_rule_exists",
        )


@router.delete("/schedules/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_schedule(
    rule_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_session),
    user: User = Depends(require_professional),
):
    try:
        await svc.remove_schedule(db, user, rule_id)
    except svc.ScheduleNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not_found")
    return None


# Time blocks
@router.get("/blocks", response_model=List[TimeBlockPublic])
async def list_blocks(
    db: AsyncSession = Depends(get_session),
    user: User = Depends(require_professional),
):
    return await svc.list_time_blocks(db, user)


@router.post(
    "/blocks",
    response_model=TimeBlockPublic,
    status_code=status.HTTP_201_CREATED,
)
async def create_block(
    payload: TimeBlockCreate,
    db: AsyncSession = Depends(get_session),
    user: User = Depends(require_professional),
):
    return await svc.add_time_block(db, user, payload)


@router.delete("/blocks/{block_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_block(
    block_id: int = Path(..., ge=1),
    db: AsyncSession = Depends(get_session),
    user: User = Depends(require_professional),
):
    try:
        await svc.remove_time_block(db, user, block_id)
    except svc.TimeBlockNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not_found")
    return None
