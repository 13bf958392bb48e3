# clinic/modules/users/repository.py
from __future__ import annotations

from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.modules.users.models import User, UserRole


class NationalIdAlreadyExistsError(Exception):
    """Raised when trying to insert a user with a national id that already exists."""


async def get_by_id(session: AsyncSession, user_id: UUID) -> Optional[User]:
    """
    Returns a User by primary key or None if not found.
    """
    return await session.get(User, user_id)


async def get_by_national_id(session: AsyncSession, national_id: str) -> Optional[User]:
    stmt = select(User).where(User.national_id == national_id.strip())
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_active_professional(
    session: AsyncSession, professional_id: UUID, *, for_update: bool = False
) -> Optional[User]:
    """
    Return an active professional or None.

    With ``for_update`` the row stays locked until the transaction ends, which
    serialises every booking against that professional.
    """
    stmt = select(User).where(
        User.id == professional_id,
        User.role == UserRole.PROFESSIONAL.value,
        User.is_active.is_(True),
    )
    if for_update:
        stmt = stmt.with_for_update()
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_active_professionals(session: AsyncSession) -> Sequence[User]:
    stmt = (
        select(User)
        .where(User.role == UserRole.PROFESSIONAL.value, User.is_active.is_(True))
        .order_by(User.full_name)
    )
    return (await session.execute(stmt)).scalars().all()


async def create_user(
    session: AsyncSession,
    *,
    national_id: str,
    full_name: str,
    password_hash: str,
    email: Optional[str] = None,
    role: UserRole | str = UserRole.PROFESSIONAL,
    specialty: Optional[str] = None,
    description: Optional[str] = None,
) -> User:
    """
    Inserts a new staff user and returns the persisted ORM instance.
    Expects an already *hashed* password.
    """
    role_value = role.value if isinstance(role, UserRole) else str(role).upper()

    user = User(
        national_id=national_id.strip(),
        full_name=full_name.strip(),
        email=email.strip().lower() if email else None,
        password_hash=password_hash,
        role=role_value,
        is_active=True,
        specialty=specialty,
        description=description,
    )

    session.add(user)
    try:
        await session.flush()
    except IntegrityError as exc:
        raise NationalIdAlreadyExistsError("National id already registered") from exc

    await session.refresh(user)
    return user
