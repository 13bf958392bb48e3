# clinic/modules/availability/schemas.py
from __future__ import annotations

from datetime import datetime, time
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator

from clinic.core.timeutils import to_local_naive


class ScheduleRuleCreate(BaseModel):
    day_of_week: int = Field(..., ge=0, le=6, description="0=Sunday .. 6=Saturday")
    start_time: time
    end_time: time
    slot_duration_minutes: int = Field(..., gt=0, le=24 * 60)

    @field_validator("start_time", "end_time")
    @classmethod
    def _drop_tz_and_seconds(cls, v: time) -> time:
        return v.replace(tzinfo=None, second=0, microsecond=0)

    @field_validator("end_time")
    @classmethod
    def _end_after_start(cls, v, info):
        start = info.data.get("start_time")
        if start and v <= start:
            raise ValueError("end_time must be after start_time")
        return v


class ScheduleRulePublic(BaseModel):
    id: int
    professional_id: UUID
    day_of_week: int
    start_time: time
    end_time: time
    slot_duration_minutes: int

    class Config:
        from_attributes = True


class TimeBlockCreate(BaseModel):
    """
    For all-day blocks only the calendar day of ``starts_at`` matters and
    ``ends_at`` may be omitted.
    """
    starts_at: datetime
    ends_at: Optional[datetime] = None
    reason: Optional[str] = Field(default=None, max_length=255)
    is_all_day: bool = False

    @field_validator("starts_at", "ends_at")
    @classmethod
    def _to_local(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_local_naive(v) if v is not None else v

    @model_validator(mode="after")
    def _check_range(self):
        if self.is_all_day:
            return self
        if self.ends_at is None:
            raise ValueError("ends_at is required unless is_all_day is true")
        if self.ends_at <= self.starts_at:
            raise ValueError("ends_at must be after starts_at")
        return self


class TimeBlockPublic(BaseModel):
    id: int
    professional_id: UUID
    starts_at: datetime
    ends_at: datetime
    reason: Optional[str] = None
    is_all_day: bool

    class Config:
        from_attributes = True

    @computed_field
    @property
    def title(self) -> str:
        label = self.reason or ("Full day" if self.is_all_day else "")
        return f"Blocked: {label}".strip()
