"""Availability ORM models."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from musicmentor.core.database import Base, BaseModelMixin


class MentorAvailability(BaseModelMixin, Base):
    """Weekly availability template owned by a mentor."""

    __tablename__ = "mentor_availability"

    mentor_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    weekly_schedule: Mapped[dict[str, Any]] = mapped_column(JSONB, default=dict, nullable=False)
    blocked_dates: Mapped[list[str]] = mapped_column(JSONB, default=list, nullable=False)
    session_duration: Mapped[int] = mapped_column(Integer, default=15, nullable=False)
    timezone: Mapped[str] = mapped_column(String(64), default="UTC", nullable=False)
