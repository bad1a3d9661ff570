"""Booking business logic layer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from musicmentor.core.database import get_db_session
from musicmentor.core.enums import BookingStatusEnum, BookingTypeEnum, RoleEnum, VideoRoomStatusEnum
from musicmentor.modules.availability.engine import CandidateSlot, TemplateFormatError, resolve_availability
from musicmentor.modules.availability.repository import AvailabilityRepository
from musicmentor.modules.availability.service import build_candidate_slots
from musicmentor.modules.booking.models import Booking
from musicmentor.modules.booking.repository import BookingRepository
from musicmentor.modules.booking.schemas import DashboardStats, PreferenceBookingCreate, TimeSlotBookingCreate
from musicmentor.modules.identity.models import User
from musicmentor.modules.mentors.repository import MentorsRepository
from musicmentor.modules.outbox.repository import OutboxRepository
from musicmentor.modules.video.client import get_video_client
from musicmentor.modules.video.repository import VideoRoomRepository
from musicmentor.modules.video.service import VideoRoomService, ensure_participant
from musicmentor.shared.exceptions import (
    BusinessRuleException,
    ConflictException,
    NotFoundException,
    ServiceUnavailableException,
    UnauthorizedException,
)
from musicmentor.shared.utils import ensure_utc, utc_now

logger = logging.getLogger(__name__)

CONFIRMED_WITH_VIDEO = "Booking confirmed! Video room is ready."
CONFIRMED_VIDEO_FAILED = "Booking confirmed! (Video room creation failed, but booking is still valid)"
CONFIRMED_PLAIN = "Booking confirmed!"


@dataclass(slots=True)
class BookingConfirmation:
    booking: Booking
    has_video: bool
    message: str


class BookingService:
    """Booking submission and the pending/confirmed/declined/completed lifecycle."""

    def __init__(
        self,
        booking_repository: BookingRepository,
        availability_repository: AvailabilityRepository,
        mentors_repository: MentorsRepository,
        outbox_repository: OutboxRepository,
        video_service: VideoRoomService,
    ) -> None:
        self.booking_repository = booking_repository
        self.availability_repository = availability_repository
        self.mentors_repository = mentors_repository
        self.outbox_repository = outbox_repository
        self.video_service = video_service

    def _ensure_mentor_access(self, booking: Booking, actor: User) -> None:
        if actor.role.name == RoleEnum.ADMIN:
            return
        if actor.role.name == RoleEnum.MENTOR and booking.mentor_id == actor.id:
            return
        raise UnauthorizedException("Only the booking's mentor can manage this booking")

    async def _get_booking(self, booking_id: UUID) -> Booking:
        booking = await self.booking_repository.get_booking_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found")
        return booking

    async def _emit(self, booking: Booking, event_type: str, **extra) -> None:
        payload = {
            "booking_id": str(booking.id),
            "mentor_id": str(booking.mentor_id),
            "student_id": str(booking.student_id),
            "booking_type": str(booking.booking_type),
            "scheduled_start": booking.scheduled_start.isoformat() if booking.scheduled_start else None,
            "preferred_time": str(booking.preferred_time) if booking.preferred_time else None,
        }
        payload.update(extra)
        await self.outbox_repository.create_outbox_event(
            aggregate_type="booking",
            aggregate_id=str(booking.id),
            event_type=event_type,
            payload=payload,
        )

    async def _resolve_requested_slot(self, mentor_id: UUID, payload: TimeSlotBookingCreate) -> CandidateSlot:
        """Re-derive the requested slot against current bookings under a row lock."""
        requested_start = ensure_utc(payload.scheduled_start)
        now = utc_now()
        if requested_start <= now:
            raise BusinessRuleException("Cannot book a slot in the past")

        availability = await self.availability_repository.get_template(mentor_id, for_update=True)
        if availability is None:
            raise BusinessRuleException("Mentor has not published availability")

        try:
            candidates = build_candidate_slots(availability, now)
        except TemplateFormatError as exc:
            logger.warning("Cannot check slot for mentor %s: %s", mentor_id, exc)
            raise BusinessRuleException("Mentor availability is misconfigured") from exc

        active = await self.booking_repository.list_active_for_mentor(mentor_id)
        for slot in resolve_availability(candidates, active):
            if slot.start != requested_start:
                continue
            if not slot.available:
                raise ConflictException("This time slot is no longer available")
            return slot
        raise BusinessRuleException("Requested time is not an available slot")

    async def create_booking(
        self,
        payload: TimeSlotBookingCreate | PreferenceBookingCreate,
        actor: User,
    ) -> Booking:
        """Submit a booking request in PENDING status.

        The message is validated before any repository is touched. Scheduled
        requests must match a slot that is still free at write time.
        """
        message = payload.message.strip()
        if not message:
            raise BusinessRuleException("Please add a message for the mentor")
        if actor.role.name != RoleEnum.STUDENT:
            raise UnauthorizedException("Only students can request bookings")
        if payload.mentor_id == actor.id:
            raise BusinessRuleException("You cannot book yourself")

        try:
            profile = await self.mentors_repository.get_profile_by_user_id(payload.mentor_id)
            if profile is None or not profile.is_active:
                raise NotFoundException("Mentor not found")

            if isinstance(payload, TimeSlotBookingCreate):
                slot = await self._resolve_requested_slot(payload.mentor_id, payload)
                booking = await self.booking_repository.create_booking(
                    mentor_id=payload.mentor_id,
                    student_id=actor.id,
                    booking_type=BookingTypeEnum.SCHEDULED,
                    message=message,
                    video_preferred=payload.video_preferred,
                    rate=profile.rate,
                    scheduled_start=ensure_utc(slot.start),
                    scheduled_end=ensure_utc(slot.end),
                )
            else:
                booking = await self.booking_repository.create_booking(
                    mentor_id=payload.mentor_id,
                    student_id=actor.id,
                    booking_type=BookingTypeEnum.PREFERENCE,
                    message=message,
                    video_preferred=payload.video_preferred,
                    rate=profile.rate,
                    preferred_time=payload.preferred_time,
                )

            await self._emit(booking, "booking.requested", student_name=actor.public_name)
        except SQLAlchemyError as exc:
            logger.exception("Booking write failed for mentor %s", payload.mentor_id)
            raise ServiceUnavailableException("Could not save the booking, please try again") from exc

        logger.info("Booking %s requested by %s", booking.id, actor.id)
        return booking

    async def confirm_booking(self, booking_id: UUID, actor: User) -> BookingConfirmation:
        """Confirm a pending booking and provision video when requested.

        Video failures are recorded on the room and never undo the
        confirmation.
        """
        booking = await self._get_booking(booking_id)
        self._ensure_mentor_access(booking, actor)
        if booking.status != BookingStatusEnum.PENDING:
            raise ConflictException("Only pending bookings can be confirmed")

        booking.status = BookingStatusEnum.CONFIRMED
        booking.confirmed_at = utc_now()
        await self.booking_repository.save(booking)

        has_video = False
        message = CONFIRMED_PLAIN
        if booking.video_preferred:
            room = await self.video_service.provision_for_booking(booking)
            has_video = room is not None and room.status == VideoRoomStatusEnum.READY
            if has_video:
                message = CONFIRMED_WITH_VIDEO
            elif room is not None:
                message = CONFIRMED_VIDEO_FAILED

        await self._emit(booking, "booking.confirmed", has_video=has_video)
        return BookingConfirmation(booking=booking, has_video=has_video, message=message)

    async def decline_booking(self, booking_id: UUID, actor: User) -> Booking:
        booking = await self._get_booking(booking_id)
        self._ensure_mentor_access(booking, actor)
        if booking.status != BookingStatusEnum.PENDING:
            raise ConflictException("Only pending bookings can be declined")

        booking.status = BookingStatusEnum.DECLINED
        booking.declined_at = utc_now()
        await self.booking_repository.save(booking)
        await self._emit(booking, "booking.declined")
        return booking

    async def complete_booking(self, booking_id: UUID, actor: User) -> Booking:
        """Mark a confirmed session as held and release its video room."""
        booking = await self._get_booking(booking_id)
        self._ensure_mentor_access(booking, actor)
        if booking.status != BookingStatusEnum.CONFIRMED:
            raise ConflictException("Only confirmed bookings can be completed")

        booking.status = BookingStatusEnum.COMPLETED
        booking.completed_at = utc_now()
        await self.booking_repository.save(booking)
        await self.video_service.cleanup_for_booking(booking)
        await self._emit(booking, "booking.completed")
        return booking

    async def get_booking(self, booking_id: UUID, actor: User) -> Booking:
        booking = await self._get_booking(booking_id)
        ensure_participant(booking, actor)
        return booking

    async def list_bookings(
        self,
        actor: User,
        status: BookingStatusEnum | None,
        limit: int,
        offset: int,
        active_only: bool = False,
    ) -> tuple[list[Booking], int]:
        """List bookings for actor according to role; ``active_only`` keeps pending and confirmed."""
        return await self.booking_repository.list_bookings(
            actor.id,
            actor.role.name,
            status,
            limit,
            offset,
            active_only=active_only,
        )

    async def get_dashboard_stats(self, actor: User) -> DashboardStats:
        role_name = actor.role.name
        if role_name not in (RoleEnum.MENTOR, RoleEnum.STUDENT):
            raise UnauthorizedException("Dashboard is available to mentors and students only")

        counts = await self.booking_repository.count_by_status(actor.id, role_name)
        month_start = utc_now().replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        this_month = await self.booking_repository.count_created_since(actor.id, role_name, month_start)
        return DashboardStats(
            pending=counts.get(BookingStatusEnum.PENDING, 0),
            confirmed=counts.get(BookingStatusEnum.CONFIRMED, 0),
            completed=counts.get(BookingStatusEnum.COMPLETED, 0),
            total=sum(counts.values()),
            this_month=this_month,
        )


async def get_booking_service(session: AsyncSession = Depends(get_db_session)) -> BookingService:
    """Dependency provider for booking service."""
    return BookingService(
        booking_repository=BookingRepository(session),
        availability_repository=AvailabilityRepository(session),
        mentors_repository=MentorsRepository(session),
        outbox_repository=OutboxRepository(session),
        video_service=VideoRoomService(VideoRoomRepository(session), get_video_client()),
    )
