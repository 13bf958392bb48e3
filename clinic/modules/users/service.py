# clinic/modules/users/service.py
from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from clinic.core.config import settings
from clinic.core.security import create_access_token, hash_password, verify_password
from clinic.core.timeutils import local_now
from clinic.modules.users import repository as users_repo
from clinic.modules.users.models import User, UserRole
from clinic.modules.users.schemas import (
    LoginRequest,
    LoginResponse,
    ProfessionalPublic,
    UserPublic,
)

logger = logging.getLogger(__name__)


class InvalidCredentials(Exception):
    pass


async def login_user(session: AsyncSession, payload: LoginRequest) -> LoginResponse:
    """
    1) Fetch active user by national id
    2) Verify bcrypt password
    3) Issue access token and stamp last login
    """
    user = await users_repo.get_by_national_id(session, payload.national_id)
    if not user or not user.is_active:
        raise InvalidCredentials("invalid_credentials")

    if not verify_password(payload.password.get_secret_value(), user.password_hash):
        raise InvalidCredentials("invalid_credentials")

    access = create_access_token(
        subject=str(user.id),
        role=user.role,
        full_name=user.full_name,
    )

    user.last_login_at = local_now()
    await session.flush()
    logger.info("User %s logged in", user.id)

    return LoginResponse(
        access_token=access,
        expires_in=settings.ACCESS_EXPIRES_MIN * 60,
        user=UserPublic.model_validate(user),
    )


async def list_public_professionals(session: AsyncSession) -> List[ProfessionalPublic]:
    rows = await users_repo.list_active_professionals(session)
    return [ProfessionalPublic.model_validate(u) for u in rows]


async def create_staff_user(
    session: AsyncSession,
    *,
    national_id: str,
    full_name: str,
    password: str,
    role: UserRole = UserRole.PROFESSIONAL,
    email: Optional[str] = None,
    specialty: Optional[str] = None,
) -> User:
    """
    Create a professional or admin account (used by init_db.py and tests).
    """
    return await users_repo.create_user(
        session,
        national_id=national_id,
        full_name=full_name,
        password_hash=hash_password(password),
        email=email,
        role=role,
        specialty=specialty,
    )
