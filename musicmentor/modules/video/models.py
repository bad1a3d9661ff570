"""Video room ORM models."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from musicmentor.core.database import Base, BaseModelMixin
from musicmentor.core.enums import VideoRoomStatusEnum

if TYPE_CHECKING:
    from musicmentor.modules.booking.models import Booking


class VideoRoom(BaseModelMixin, Base):
    """Provider room attached to a confirmed booking."""

    __tablename__ = "video_rooms"

    booking_id: Mapped[UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    status: Mapped[VideoRoomStatusEnum] = mapped_column(
        SAEnum(VideoRoomStatusEnum, name="video_room_status_enum", native_enum=False),
        nullable=False,
        index=True,
    )
    room_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    room_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    provider_room_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    meeting_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    cleaned_up_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    booking: Mapped["Booking"] = relationship(back_populates="video_room")
