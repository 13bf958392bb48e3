# clinic/modules/availability/repository.py
from __future__ import annotations

from datetime import datetime, time
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.modules.availability.models import TimeBlock, WeeklyScheduleRule


class DuplicateScheduleRuleError(Exception):
    """Same professional, day and start time already configured."""


# --- weekly rules ---

async def list_rules(
    db: AsyncSession, *, professional_id: UUID
) -> Sequence[WeeklyScheduleRule]:
    rows = await db.execute(
        select(WeeklyScheduleRule)
        .where(WeeklyScheduleRule.professional_id == professional_id)
        .order_by(WeeklyScheduleRule.day_of_week, WeeklyScheduleRule.start_time)
    )
    return rows.scalars().all()


async def list_rules_for_day(
    db: AsyncSession, *, professional_id: UUID, day_of_week: int
) -> Sequence[WeeklyScheduleRule]:
    rows = await db.execute(
        select(WeeklyScheduleRule)
        .where(
            WeeklyScheduleRule.professional_id == professional_id,
            WeeklyScheduleRule.day_of_week == day_of_week,
        )
        .order_by(WeeklyScheduleRule.start_time)
    )
    return rows.scalars().all()


async def create_rule(
    db: AsyncSession,
    *,
    professional_id: UUID,
    day_of_week: int,
    start_time: time,
    end_time: time,
    slot_duration_minutes: int,
) -> WeeklyScheduleRule:
    rule = WeeklyScheduleRule(
        professional_id=professional_id,
        day_of_week=day_of_week,
        start_time=start_time,
        end_time=end_time,
        slot_duration_minutes=slot_duration_minutes,
    )
    db.add(rule)
    try:
        await db.flush()
    except IntegrityError as exc:
        raise DuplicateScheduleRuleError("schedule_rule_exists") from exc
    return rule


async def delete_rule(db: AsyncSession, *, professional_id: UUID, rule_id: int) -> int:
    res = await db.execute(
        delete(WeeklyScheduleRule).where(
            WeeklyScheduleRule.id == rule_id,
            WeeklyScheduleRule.professional_id == professional_id,
        )
    )
    return res.rowcount or 0


# --- time blocks ---

async def list_blocks(db: AsyncSession, *, professional_id: UUID) -> Sequence[TimeBlock]:
    rows = await db.execute(
        select(TimeBlock)
        .where(TimeBlock.professional_id == professional_id)
        .order_by(TimeBlock.starts_at)
    )
    return rows.scalars().all()


async def list_blocks_overlapping(
    db: AsyncSession, *, professional_id: UUID, start: datetime, end: datetime
) -> Sequence[TimeBlock]:
    """
    Blocks intersecting the half-open window [start, end).
    """
    rows = await db.execute(
        select(TimeBlock)
        .where(
            TimeBlock.professional_id == professional_id,
            TimeBlock.starts_at < end,
            TimeBlock.ends_at > start,
        )
        .order_by(TimeBlock.starts_at)
    )
    return rows.scalars().all()


async def create_block(
    db: AsyncSession,
    *,
    professional_id: UUID,
    starts_at: datetime,
    ends_at: datetime,
    reason: Optional[str],
    is_all_day: bool,
) -> TimeBlock:
    block = TimeBlock(
        professional_id=professional_id,
        starts_at=starts_at,
        ends_at=ends_at,
        reason=reason,
        is_all_day=is_all_day,
    )
    db.add(block)
    await db.flush()
    return block


async def delete_block(db: AsyncSession, *, professional_id: UUID, block_id: int) -> int:
    res = await db.execute(
        delete(TimeBlock).where(
            TimeBlock.id == block_id,
            TimeBlock.professional_id == professional_id,
        )
    )
    return res.rowcount or 0
