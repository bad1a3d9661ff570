"""Booking ORM models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, ForeignKey, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from musicmentor.core.database import Base, BaseModelMixin
from musicmentor.core.enums import BookingStatusEnum, BookingTypeEnum, PreferredTimeEnum

if TYPE_CHECKING:
    from musicmentor.modules.identity.models import User
    from musicmentor.modules.video.models import VideoRoom


class Booking(BaseModelMixin, Base):
    """Session request from a student to a mentor.

    Scheduled bookings carry concrete start/end instants, preference bookings
    only a coarse time of day. Rows are never deleted.
    """

    __tablename__ = "bookings"

    mentor_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    booking_type: Mapped[BookingTypeEnum] = mapped_column(
        SAEnum(BookingTypeEnum, name="booking_type_enum", native_enum=False),
        nullable=False,
    )
    status: Mapped[BookingStatusEnum] = mapped_column(
        SAEnum(BookingStatusEnum, name="booking_status_enum", native_enum=False),
        default=BookingStatusEnum.PENDING,
        nullable=False,
        index=True,
    )
    scheduled_start: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    scheduled_end: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    preferred_time: Mapped[PreferredTimeEnum | None] = mapped_column(
        SAEnum(PreferredTimeEnum, name="preferred_time_enum", native_enum=False),
        nullable=True,
    )

    message: Mapped[str] = mapped_column(Text, nullable=False)
    video_preferred: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    declined_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    mentor: Mapped["User"] = relationship(foreign_keys=[mentor_id])
    student: Mapped["User"] = relationship(foreign_keys=[student_id])
    video_room: Mapped["VideoRoom | None"] = relationship(back_populates="booking", uselist=False)
