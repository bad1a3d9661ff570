"""Booking schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal
from uuid import UUID

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field

from musicmentor.core.enums import BookingStatusEnum, BookingTypeEnum, PreferredTimeEnum, VideoRoomStatusEnum


class _BookingCreateBase(BaseModel):
    mentor_id: UUID
    message: str = Field(min_length=1, max_length=2000)
    video_preferred: bool = False


class TimeSlotBookingCreate(_BookingCreateBase):
    """Request for one concrete generated slot."""

    booking_type: Literal[BookingTypeEnum.SCHEDULED] = BookingTypeEnum.SCHEDULED
    scheduled_start: AwareDatetime


class PreferenceBookingCreate(_BookingCreateBase):
    """Request without a concrete slot, only a preferred time of day."""

    booking_type: Literal[BookingTypeEnum.PREFERENCE] = BookingTypeEnum.PREFERENCE
    preferred_time: PreferredTimeEnum


BookingCreate = Annotated[
    TimeSlotBookingCreate | PreferenceBookingCreate,
    Field(discriminator="booking_type"),
]


class VideoRoomSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    status: VideoRoomStatusEnum
    room_url: str | None
    meeting_url: str | None
    error_message: str | None


class BookingRead(BaseModel):
    """Booking response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    mentor_id: UUID
    student_id: UUID
    booking_type: BookingTypeEnum
    status: BookingStatusEnum
    scheduled_start: datetime | None
    scheduled_end: datetime | None
    preferred_time: PreferredTimeEnum | None
    message: str
    video_preferred: bool
    rate: Decimal
    confirmed_at: datetime | None
    declined_at: datetime | None
    completed_at: datetime | None
    video_room: VideoRoomSummary | None = None
    created_at: datetime
    updated_at: datetime


class BookingConfirmationRead(BaseModel):
    """Confirmation outcome including best-effort video provisioning."""

    booking: BookingRead
    has_video: bool
    message: str


class DashboardStats(BaseModel):
    """Booking counters for the current mentor or student."""

    pending: int
    confirmed: int
    completed: int
    total: int
    this_month: int
