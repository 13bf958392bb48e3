# clinic/modules/availability/service.py
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from clinic.core import timeutils
from clinic.modules.appointments import repository as appt_repo
from clinic.modules.availability import repository as repo
from clinic.modules.availability.models import TimeBlock, WeeklyScheduleRule
from clinic.modules.availability.schemas import (
    ScheduleRuleCreate,
    ScheduleRulePublic,
    TimeBlockCreate,
    TimeBlockPublic,
)
from clinic.modules.users.models import User

logger = logging.getLogger(__name__)


class ScheduleRuleAlreadyExists(Exception):
    pass


class ScheduleNotFound(Exception):
    pass


class TimeBlockNotFound(Exception):
    pass


# =====
# Slots
# =====

def _occupied_duration(
    booked_start: datetime, rules: Sequence[WeeklyScheduleRule], day: date
) -> timedelta:
    # Duration of the rule whose window holds the appointment, else the first rule's.
    for rule in rules:
        window_start = timeutils.at_time(day, rule.start_time)
        window_end = timeutils.at_time(day, rule.end_time)
        if window_start <= booked_start < window_end:
            return timedelta(minutes=rule.slot_duration_minutes)
    return timedelta(minutes=rules[0].slot_duration_minutes)


def compute_slots(
    target_date: date,
    rules: Sequence[WeeklyScheduleRule],
    booked_starts: Iterable[datetime],
    blocks: Iterable[TimeBlock],
    now: datetime,
) -> List[str]:
    """
    Bookable "HH:MM" slot starts for one professional on ``target_date``.

    ``rules`` are the weekly rules for the date's day of week. A candidate
    [start, start + duration) is produced for every step that fits entirely
    inside its rule window, and dropped when:

    - it has already ended (end <= now); a slot in progress is still offered
    - it overlaps a non-canceled appointment
    - it overlaps a time block

    Overlaps are half-open. Output is sorted and free of duplicates.
    """
    if not rules:
        return []

    booked = []
    for start in booked_starts:
        booked.append((start, start + _occupied_duration(start, rules, target_date)))
    blocked = [(b.starts_at, b.ends_at) for b in blocks]

    available = set()
    for rule in rules:
        step = timedelta(minutes=rule.slot_duration_minutes)
        slot_start = timeutils.at_time(target_date, rule.start_time)
        window_end = timeutils.at_time(target_date, rule.end_time)

        while slot_start + step <= window_end:
            slot_end = slot_start + step
            if (
                slot_end > now
                and not any(timeutils.overlaps(slot_start, slot_end, s, e) for s, e in booked)
                and not any(timeutils.overlaps(slot_start, slot_end, s, e) for s, e in blocked)
            ):
                available.add(slot_start)
            slot_start = slot_end

    return [timeutils.format_hhmm(s) for s in sorted(available)]


async def get_available_slots(
    session: AsyncSession,
    professional_id: UUID,
    target_date: date,
    now: Optional[datetime] = None,
) -> List[str]:
    """
    Read rules, appointments and blocks for the date, then compute slots.
    Read-only; store errors propagate to the caller.
    """
    now = now or timeutils.local_now()
    dow = timeutils.day_of_week(target_date)

    rules = await repo.list_rules_for_day(
        session, professional_id=professional_id, day_of_week=dow
    )
    if not rules:
        logger.debug("No weekly rules for professional %s on day %s", professional_id, dow)
        return []

    day_start, day_end = timeutils.day_bounds(target_date)
    booked = await appt_repo.list_active_starts_between(
        session, professional_id=professional_id, start=day_start, end=day_end
    )
    blocks = await repo.list_blocks_overlapping(
        session, professional_id=professional_id, start=day_start, end=day_end
    )

    slots = compute_slots(target_date, rules, booked, blocks, now)
    logger.debug(
        "Professional %s on %s: %d rules, %d booked, %d blocks -> %d slots",
        professional_id, target_date, len(rules), len(booked), len(blocks), len(slots),
    )
    return slots


# ===============
# Weekly schedule
# ===============

async def list_schedules(session: AsyncSession, professional: User) -> List[ScheduleRulePublic]:
    rows = await repo.list_rules(session, professional_id=professional.id)
    return [ScheduleRulePublic.model_validate(r) for r in rows]


async def add_schedule(
    session: AsyncSession, professional: User, payload: ScheduleRuleCreate
) -> ScheduleRulePublic:
    try:
        rule = await repo.create_rule(
            session,
            professional_id=professional.id,
            day_of_week=payload.day_of_week,
            start_time=payload.start_time,
            end_time=payload.end_time,
            slot_duration_minutes=payload.slot_duration_minutes,
        )
    except repo.DuplicateScheduleRuleError as exc:
        raise ScheduleRuleAlreadyExists("schedule_rule_exists") from exc

    await session.refresh(rule)
    logger.info(
        "Professional %s added weekly rule day=%s %s-%s/%smin",
        professional.id, rule.day_of_week, rule.start_time, rule.end_time,
        rule.slot_duration_minutes,
    )
    return ScheduleRulePublic.model_validate(rule)


async def remove_schedule(session: AsyncSession, professional: User, rule_id: int) -> None:
    deleted = await repo.delete_rule(session, professional_id=professional.id, rule_id=rule_id)
    if not deleted:
        raise ScheduleNotFound("schedule_not_found")


# ===========
# Time blocks
# ===========

async def list_time_blocks(session: AsyncSession, professional: User) -> List[TimeBlockPublic]:
    rows = await repo.list_blocks(session, professional_id=professional.id)
    return [TimeBlockPublic.model_validate(b) for b in rows]


async def add_time_block(
    session: AsyncSession, professional: User, payload: TimeBlockCreate
) -> TimeBlockPublic:
    if payload.is_all_day:
        starts_at, ends_at = timeutils.all_day_bounds(payload.starts_at.date())
    else:
        starts_at, ends_at = payload.starts_at, payload.ends_at

    block = await repo.create_block(
        session,
        professional_id=professional.id,
        starts_at=starts_at,
        ends_at=ends_at,
        reason=payload.reason,
        is_all_day=payload.is_all_day,
    )
    await session.refresh(block)
    logger.info(
        "Professional %s blocked %s - %s", professional.id, block.starts_at, block.ends_at
    )
    return TimeBlockPublic.model_validate(block)


async def remove_time_block(session: AsyncSession, professional: User, block_id: int) -> None:
    deleted = await repo.delete_block(session, professional_id=professional.id, block_id=block_id)
    if not deleted:
        raise TimeBlockNotFound("time_block_not_found")
