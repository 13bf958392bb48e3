from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional

import pytest
from httpx import ASGITransport, AsyncClient

from clinic.core.security import create_access_token
from clinic.db.sql import build_engine, build_sessionmaker, get_session, init_db
from clinic.main import app
from clinic.modules.appointments.models import Appointment, ApptStatus
from clinic.modules.availability.models import TimeBlock, WeeklyScheduleRule
from clinic.modules.patients.models import Patient
from clinic.modules.users.models import User, UserRole
from clinic.modules.users.service import create_staff_user


def upcoming(weekday: int, weeks_ahead: int = 1) -> date:
    """A date on ``weekday`` (Python numbering, Monday=0) at least a week away."""
    today = date.today()
    days = (weekday - today.weekday()) % 7
    return today + timedelta(days=days + 7 * weeks_ahead)


@pytest.fixture
async def engine(tmp_path):
    eng = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'clinic-test.db'}")
    await init_db(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return build_sessionmaker(engine)


async def _make_user(session_factory, national_id: str, full_name: str, role: UserRole) -> User:
    async with session_factory() as session:
        user = await create_staff_user(
            session,
            national_id=national_id,
            full_name=full_name,
            password="s3cret-pass",
            role=role,
            specialty="Nutrition" if role is UserRole.PROFESSIONAL else None,
        )
        await session.commit()
        return user


@pytest.fixture
async def professional(session_factory) -> User:
    return await _make_user(session_factory, "20111222", "Ana Ruiz", UserRole.PROFESSIONAL)


@pytest.fixture
async def other_professional(session_factory) -> User:
    return await _make_user(session_factory, "20333444", "Luis Vega", UserRole.PROFESSIONAL)


@pytest.fixture
async def admin(session_factory) -> User:
    return await _make_user(session_factory, "10000001", "Root Admin", UserRole.ADMIN)


def bearer(user: User) -> dict:
    token = create_access_token(subject=str(user.id), role=user.role, full_name=user.full_name)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def client(session_factory):
    async def _get_test_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = _get_test_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


# --- seeding helpers (each one commits and releases its connection) ---

async def add_rule(
    session_factory,
    professional_id,
    day_of_week: int,
    start: time,
    end: time,
    duration: int,
) -> WeeklyScheduleRule:
    async with session_factory() as session:
        rule = WeeklyScheduleRule(
            professional_id=professional_id,
            day_of_week=day_of_week,
            start_time=start,
            end_time=end,
            slot_duration_minutes=duration,
        )
        session.add(rule)
        await session.commit()
        return rule


async def add_block(
    session_factory, professional_id, starts_at: datetime, ends_at: datetime, all_day: bool = False
) -> TimeBlock:
    async with session_factory() as session:
        block = TimeBlock(
            professional_id=professional_id,
            starts_at=starts_at,
            ends_at=ends_at,
            is_all_day=all_day,
        )
        session.add(block)
        await session.commit()
        return block


async def add_patient(session_factory, national_id: str = "35000111", **fields) -> Patient:
    async with session_factory() as session:
        patient = Patient(
            national_id=national_id,
            first_name=fields.get("first_name", "Marta"),
            last_name=fields.get("last_name", "Gomez"),
            email=fields.get("email", "marta@example.com"),
            phone=fields.get("phone"),
            is_active=True,
            created_by_professional_id=fields.get("created_by_professional_id"),
        )
        session.add(patient)
        await session.commit()
        return patient


async def add_appointment(
    session_factory,
    professional_id,
    starts_at: datetime,
    patient_id=None,
    status: ApptStatus = ApptStatus.SCHEDULED,
    reason: Optional[str] = None,
) -> Appointment:
    async with session_factory() as session:
        appt = Appointment(
            professional_id=professional_id,
            patient_id=patient_id,
            starts_at=starts_at,
            status=status.value,
            reason_for_visit=reason,
        )
        session.add(appt)
        await session.commit()
        return appt


async def open_week(
    session_factory, professional_id, start: time = time(8), end: time = time(18), duration: int = 30
) -> None:
    """Same working hours on every day of the week."""
    for dow in range(7):
        await add_rule(session_factory, professional_id, dow, start, end, duration)
