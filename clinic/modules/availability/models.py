# clinic/modules/availability/models.py
from __future__ import annotations

import uuid
from datetime import datetime, time
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Time,
    UniqueConstraint,
    false,
)
from sqlalchemy.orm import Mapped, mapped_column

from clinic.db.base import Base, TimestampMixin, ReprMixin


class WeeklyScheduleRule(TimestampMixin, ReprMixin, Base):
    """
    Recurring availability window of a professional for one day of the week.
    day_of_week: 0=Sunday .. 6=Saturday.
    """

    __tablename__ = "professional_availability"
    __repr_attrs__ = ("id", "professional_id", "day_of_week", "start_time", "end_time")

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    professional_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    day_of_week: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    slot_duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_sched_time_order"),
        CheckConstraint("slot_duration_minutes > 0", name="ck_sched_duration_positive"),
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_sched_day_of_week"),
        UniqueConstraint(
            "professional_id", "day_of_week", "start_time",
            name="uq_sched_professional_day_start",
        ),
    )


class TimeBlock(TimestampMixin, ReprMixin, Base):
    """
    Ad-hoc unavailability (vacation, break). Clinic wall-clock, half-open [starts_at, ends_at).
    """

    __tablename__ = "professional_time_blocks"
    __repr_attrs__ = ("id", "professional_id", "starts_at", "ends_at", "is_all_day")

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    professional_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    starts_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    ends_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_all_day: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    __table_args__ = (
        CheckConstraint("starts_at < ends_at", name="ck_block_time_order"),
        Index("ix_block_professional_start", "professional_id", "starts_at"),
    )
