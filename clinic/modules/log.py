from __future__ import annotations

from uuid import UUID

from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from clinic.modules.users.models import AuditLog


async def write_audit_log(
    session: AsyncSession,
    user_id: UUID | None,
    action: str,
    details: str | None = None,
):
    """
    Write an audit log entry inside the caller's transaction.

    action:
        "PUBLIC_BOOKING"
        "MANUAL_BOOKING"
        "APPOINTMENT_STATUS"
        "APPOINTMENT_REPROGRAM"
        "APPOINTMENT_DELETE"

    details: free text, e.g. "SCHEDULED -> CONFIRMED"
    """
    stmt = insert(AuditLog).values(
        user_id=user_id,
        action=action,
        details=details,
    )
    await session.execute(stmt)
