from datetime import date, datetime, time, timedelta

import pytest

import clinic.models  # noqa: F401
from clinic.core.timeutils import day_of_week
from clinic.modules.appointments.models import ApptStatus
from clinic.modules.availability.models import TimeBlock, WeeklyScheduleRule
from clinic.modules.availability.service import compute_slots, get_available_slots

from conftest import add_appointment, add_block, add_rule, upcoming

DAY = date(2031, 6, 4)  # a Wednesday
EARLY = datetime(2031, 6, 1, 8, 0)


def rule(start, end, minutes, dow=3):
    return WeeklyScheduleRule(
        day_of_week=dow, start_time=start, end_time=end, slot_duration_minutes=minutes
    )


def block(start, end, all_day=False):
    return TimeBlock(starts_at=start, ends_at=end, is_all_day=all_day)


def at(hh, mm=0, day=DAY):
    return datetime.combine(day, time(hh, mm))


def test_booked_slot_is_removed():
    rules = [rule(time(9), time(10), 30)]
    assert compute_slots(DAY, rules, [at(9)], [], EARLY) == ["09:30"]


def test_no_rules_means_no_slots():
    assert compute_slots(DAY, [], [], [], EARLY) == []


def test_full_window_when_nothing_booked():
    rules = [rule(time(9), time(11), 30)]
    assert compute_slots(DAY, rules, [], [], EARLY) == ["09:00", "09:30", "10:00", "10:30"]


def test_all_day_block_removes_every_slot():
    rules = [rule(time(8), time(20), 60)]
    blocks = [block(at(0), datetime.combine(DAY, time(23, 59, 59)), all_day=True)]
    assert compute_slots(DAY, rules, [], blocks, EARLY) == []


def test_block_edges_are_half_open():
    rules = [rule(time(9), time(11), 30)]
    # Block 09:30-10:30 hides 09:30 and 10:00, leaves both neighbours
    blocks = [block(at(9, 30), at(10, 30))]
    assert compute_slots(DAY, rules, [], blocks, EARLY) == ["09:00", "10:30"]


def test_partial_block_overlap_removes_the_slot():
    rules = [rule(time(9), time(10), 30)]
    blocks = [block(at(9, 10), at(9, 20))]
    assert compute_slots(DAY, rules, [], blocks, EARLY) == ["09:30"]


def test_block_on_another_day_is_ignored():
    rules = [rule(time(9), time(10), 30)]
    other = DAY + timedelta(days=1)
    blocks = [block(at(0, day=other), at(23, day=other))]
    assert compute_slots(DAY, rules, [], blocks, EARLY) == ["09:00", "09:30"]


def test_slot_in_progress_is_still_offered():
    rules = [rule(time(9), time(10), 30)]
    assert compute_slots(DAY, rules, [], [], at(9, 10)) == ["09:00", "09:30"]


def test_finished_slot_is_dropped():
    rules = [rule(time(9), time(10), 30)]
    assert compute_slots(DAY, rules, [], [], at(9, 30)) == ["09:30"]
    assert compute_slots(DAY, rules, [], [], at(10)) == []


def test_no_trailing_partial_slot():
    rules = [rule(time(9), time(10, 15), 30)]
    assert compute_slots(DAY, rules, [], [], EARLY) == ["09:00", "09:30"]


def test_overlapping_rules_give_sorted_unique_output():
    rules = [
        rule(time(14), time(15), 30),
        rule(time(9), time(10), 30),
        rule(time(9, 30), time(10, 30), 30),
    ]
    assert compute_slots(DAY, rules, [], [], EARLY) == [
        "09:00", "09:30", "10:00", "14:00", "14:30",
    ]


def test_occupied_duration_comes_from_the_covering_rule():
    rules = [rule(time(9), time(10), 15), rule(time(14), time(16), 60)]
    # A 14:00 appointment holds a full hour; the 15-minute rule does not apply to it
    slots = compute_slots(DAY, rules, [at(14)], [], EARLY)
    assert slots == ["09:00", "09:15", "09:30", "09:45", "15:00"]


def test_off_grid_appointment_blocks_every_slot_it_touches():
    rules = [rule(time(9), time(11), 30)]
    slots = compute_slots(DAY, rules, [at(9, 45)], [], EARLY)
    assert slots == ["09:00", "10:30"]


@pytest.mark.parametrize("duration", [10, 15, 20, 30, 45, 60])
def test_every_slot_fits_its_window_and_avoids_blocks(duration):
    rules = [rule(time(8), time(12), duration), rule(time(13), time(17, 30), duration)]
    booked = [at(8), at(13, 30)]
    blocks = [block(at(10), at(10, 40))]
    step = timedelta(minutes=duration)

    for raw in compute_slots(DAY, rules, booked, blocks, EARLY):
        start = datetime.combine(DAY, datetime.strptime(raw, "%H:%M").time())
        end = start + step
        assert any(
            at(r.start_time.hour, r.start_time.minute) <= start
            and end <= at(r.end_time.hour, r.end_time.minute)
            for r in rules
        )
        for b in blocks:
            assert not (start < b.ends_at and end > b.starts_at)
        for s in booked:
            assert not (start < s + step and end > s)


# --- read path against the store ---

async def test_available_slots_ignore_canceled_appointments(session_factory, professional):
    day = upcoming(0)  # Monday
    await add_rule(session_factory, professional.id, day_of_week(day), time(9), time(11), 30)
    await add_appointment(session_factory, professional.id, datetime.combine(day, time(9)))
    await add_appointment(
        session_factory,
        professional.id,
        datetime.combine(day, time(10)),
        status=ApptStatus.CANCELED_BY_PATIENT,
    )
    await add_block(
        session_factory,
        professional.id,
        datetime.combine(day, time(10, 30)),
        datetime.combine(day, time(12)),
    )

    async with session_factory() as session:
        slots = await get_available_slots(session, professional.id, day)

    assert slots == ["09:30", "10:00"]


async def test_available_slots_only_use_rules_for_that_weekday(session_factory, professional):
    monday = upcoming(0)
    await add_rule(session_factory, professional.id, day_of_week(monday), time(9), time(10), 30)

    async with session_factory() as session:
        assert await get_available_slots(session, professional.id, monday) == ["09:00", "09:30"]
        tuesday = monday + timedelta(days=1)
        assert await get_available_slots(session, professional.id, tuesday) == []


async def test_other_professionals_bookings_do_not_leak(
    session_factory, professional, other_professional
):
    day = upcoming(2)
    dow = day_of_week(day)
    await add_rule(session_factory, professional.id, dow, time(9), time(10), 30)
    await add_rule(session_factory, other_professional.id, dow, time(9), time(10), 30)
    await add_appointment(session_factory, other_professional.id, datetime.combine(day, time(9)))

    async with session_factory() as session:
        assert await get_available_slots(session, professional.id, day) == ["09:00", "09:30"]
        assert await get_available_slots(session, other_professional.id, day) == ["09:30"]


async def test_block_spanning_midnight_covers_the_next_morning(session_factory, professional):
    day = upcoming(4)
    await add_rule(session_factory, professional.id, day_of_week(day), time(8), time(10), 60)
    await add_block(
        session_factory,
        professional.id,
        datetime.combine(day - timedelta(days=1), time(20)),
        datetime.combine(day, time(9)),
    )

    async with session_factory() as session:
        assert await get_available_slots(session, professional.id, day) == ["09:00"]


async def test_unknown_professional_has_no_slots(session_factory):
    from uuid import uuid4

    async with session_factory() as session:
        assert await get_available_slots(session, uuid4(), upcoming(1)) == []
