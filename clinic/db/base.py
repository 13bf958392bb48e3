# clinic/db/base.py
from __future__ import annotations

import datetime as dt
import uuid
from typing import Any, ClassVar, Tuple

from sqlalchemy import func, inspect
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for all clinic tables."""

    pass


class UUIDPKMixin:
    """UUID (v4) primary key, generated client-side so ids exist before flush."""

    id: Mapped[uuid.UUID] = mapped_column(default=uuid.uuid4, primary_key=True)


class TimestampMixin:
    """Server-side created/updated timestamps (clinic wall clock on SQLite)."""

    created_at: Mapped[dt.datetime] = mapped_column(
        nullable=False, server_default=func.now()
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        nullable=False, server_default=func.now(), onupdate=func.now()
    )


class ReprMixin:
    """
    ``<Appointment id=... status='SCHEDULED'>`` style repr for log lines.

    Only ``__repr_attrs__`` are shown, and only when already loaded: reading
    an expired attribute would trigger IO, which an AsyncSession forbids.
    """

    __repr_attrs__: ClassVar[Tuple[str, ...]] = ("id",)

    def __repr__(self) -> str:
        loaded = inspect(self).dict
        parts: list[str] = []
        for key in self.__repr_attrs__:
            if key in loaded:
                value: Any = loaded[key]
                parts.append(f"{key}={value!r}")
        return f"<{self.__class__.__name__} {' '.join(parts)}>"


__all__ = ["Base", "UUIDPKMixin", "TimestampMixin", "ReprMixin"]
