"""Video room provisioning and session access rules."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from musicmentor.core.config import get_settings
from musicmentor.core.database import get_db_session
from musicmentor.core.enums import BookingStatusEnum, RoleEnum, VideoRoomStatusEnum
from musicmentor.core.metrics import record_video_provisioning
from musicmentor.modules.booking.models import Booking
from musicmentor.modules.booking.repository import BookingRepository
from musicmentor.modules.identity.models import User
from musicmentor.modules.video.client import DailyVideoClient, VideoServiceError, get_video_client
from musicmentor.modules.video.models import VideoRoom
from musicmentor.modules.video.repository import VideoRoomRepository
from musicmentor.modules.video.schemas import VideoAccessRead, VideoRoomStatusRead, VideoTokenRead
from musicmentor.shared.exceptions import (
    BusinessRuleException,
    NotFoundException,
    ServiceUnavailableException,
    UnauthorizedException,
)
from musicmentor.shared.utils import ensure_utc, utc_now

settings = get_settings()
logger = logging.getLogger(__name__)


def session_time_status(start: datetime | None, end: datetime | None, now: datetime) -> str:
    """Human readable countdown for a session."""
    if start is None:
        return "Time not set"

    diff = start - now
    if diff <= timedelta(0):
        if end is not None and now <= end:
            return "Session is live now!"
        return "Session completed"

    total_minutes = int(diff.total_seconds() // 60)
    hours, minutes = divmod(total_minutes, 60)
    if hours > 24:
        days = hours // 24
        return f"Starts in {days} day{'s' if days > 1 else ''}"
    if hours > 0:
        return f"Starts in {hours}h {minutes}m"
    return f"Starts in {minutes}m"


def evaluate_video_access(
    start: datetime | None,
    end: datetime | None,
    now: datetime,
    window: timedelta,
) -> VideoAccessRead:
    """Video opens ``window`` before start and closes ``window`` after end."""
    time_status = session_time_status(start, end, now)
    if start is None or end is None:
        return VideoAccessRead(can_access=False, reason="No scheduled time set", time_status=time_status)

    access_start = start - window
    access_end = end + window
    if now < access_start:
        minutes_until = math.ceil((access_start - now).total_seconds() / 60)
        return VideoAccessRead(
            can_access=False,
            reason=f"Video opens {minutes_until} minutes before session start",
            session_start=start,
            session_end=end,
            time_status=time_status,
        )
    if now > access_end:
        return VideoAccessRead(
            can_access=False,
            reason="Video session has ended",
            session_start=start,
            session_end=end,
            time_status=time_status,
        )
    return VideoAccessRead(can_access=True, session_start=start, session_end=end, time_status=time_status)


def ensure_participant(booking: Booking, actor: User) -> None:
    """Allow the booking's student, its mentor and admins."""
    if actor.role.name == RoleEnum.ADMIN:
        return
    if actor.id in (booking.student_id, booking.mentor_id):
        return
    raise UnauthorizedException("You are not a participant of this booking")


class VideoRoomService:
    """Best-effort room lifecycle around confirmed bookings."""

    def __init__(
        self,
        repository: VideoRoomRepository,
        client: DailyVideoClient,
        booking_repository: BookingRepository | None = None,
    ) -> None:
        self.repository = repository
        self.client = client
        self.booking_repository = booking_repository

    async def provision_for_booking(self, booking: Booking) -> VideoRoom | None:
        """Create a provider room for a booking.

        Returns None when video is not configured. Provider errors are stored
        on a ``failed`` room instead of being raised.
        """
        if not self.client.enabled:
            logger.info("Video disabled, skipping room for booking %s", booking.id)
            record_video_provisioning("skipped")
            return None

        try:
            details = await self.client.create_room(booking.id)
        except VideoServiceError as exc:
            logger.warning("Video room creation failed for booking %s: %s", booking.id, exc)
            record_video_provisioning("failed")
            room = await self.repository.upsert_room(
                booking.id,
                status=VideoRoomStatusEnum.FAILED,
                error_message=str(exc),
            )
            booking.video_room = room
            return room

        record_video_provisioning("ready")
        room = await self.repository.upsert_room(
            booking.id,
            status=VideoRoomStatusEnum.READY,
            room_name=details.room_name,
            room_url=details.room_url,
            provider_room_id=details.provider_room_id,
            meeting_url=self.client.meeting_url(details.room_name),
            expires_at=details.expires_at,
            error_message=None,
        )
        booking.video_room = room
        return room

    async def cleanup_for_booking(self, booking: Booking) -> bool:
        """Delete the provider room of a finished booking; never raises."""
        if not self.client.enabled:
            return False
        room = await self.repository.get_by_booking_id(booking.id)
        if room is None or room.status != VideoRoomStatusEnum.READY or not room.room_name:
            return False

        try:
            await self.client.delete_room(room.room_name)
        except VideoServiceError as exc:
            logger.warning("Video room cleanup failed for booking %s: %s", booking.id, exc)
            return False

        room.status = VideoRoomStatusEnum.CLEANED_UP
        room.cleaned_up_at = utc_now()
        await self.repository.save(room)
        return True

    async def _get_booking_for_participant(self, booking_id: UUID, actor: User) -> Booking:
        booking = await self.booking_repository.get_booking_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found")
        ensure_participant(booking, actor)
        return booking

    async def get_room_status(self, booking_id: UUID, actor: User) -> VideoRoomStatusRead:
        booking = await self._get_booking_for_participant(booking_id, actor)
        room = await self.repository.get_by_booking_id(booking.id)
        if room is None:
            return VideoRoomStatusRead(
                booking_id=booking.id,
                has_video=False,
                status="not_created" if booking.video_preferred else "not_requested",
            )
        return VideoRoomStatusRead(
            booking_id=booking.id,
            has_video=room.status == VideoRoomStatusEnum.READY,
            status=room.status.value,
            room_name=room.room_name,
            meeting_url=room.meeting_url,
            expires_at=room.expires_at,
            error=room.error_message,
        )

    async def check_access(self, booking_id: UUID, actor: User) -> VideoAccessRead:
        booking = await self._get_booking_for_participant(booking_id, actor)
        return evaluate_video_access(
            ensure_utc(booking.scheduled_start) if booking.scheduled_start else None,
            ensure_utc(booking.scheduled_end) if booking.scheduled_end else None,
            utc_now(),
            timedelta(minutes=settings.video_access_window_minutes),
        )

    async def create_token(self, booking_id: UUID, actor: User) -> VideoTokenRead:
        """Meeting token for a participant inside the access window."""
        booking = await self._get_booking_for_participant(booking_id, actor)
        if booking.status != BookingStatusEnum.CONFIRMED:
            raise BusinessRuleException("Video is only available for confirmed bookings")

        room = await self.repository.get_by_booking_id(booking.id)
        if room is None or room.status != VideoRoomStatusEnum.READY or not room.room_name:
            raise BusinessRuleException("Video room is not ready")

        access = await self.check_access(booking_id, actor)
        if not access.can_access:
            raise BusinessRuleException(access.reason or "Video session is not accessible")

        is_owner = actor.id == booking.mentor_id
        try:
            token = await self.client.create_meeting_token(room.room_name, actor.public_name, is_owner=is_owner)
        except VideoServiceError as exc:
            logger.warning("Meeting token request failed for booking %s: %s", booking.id, exc)
            raise ServiceUnavailableException("Video service is temporarily unavailable") from exc

        return VideoTokenRead(
            token=token,
            room_name=room.room_name,
            meeting_url=room.meeting_url or self.client.meeting_url(room.room_name),
            is_owner=is_owner,
        )


async def get_video_room_service(
    session: AsyncSession = Depends(get_db_session),
    client: DailyVideoClient = Depends(get_video_client),
) -> VideoRoomService:
    """Dependency provider for video room service."""
    return VideoRoomService(
        repository=VideoRoomRepository(session),
        client=client,
        booking_repository=BookingRepository(session),
    )
