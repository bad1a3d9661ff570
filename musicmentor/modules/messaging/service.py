"""Booking conversation logic."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from musicmentor.core.database import get_db_session
from musicmentor.modules.booking.models import Booking
from musicmentor.modules.booking.repository import BookingRepository
from musicmentor.modules.identity.models import User
from musicmentor.modules.messaging.models import Message
from musicmentor.modules.messaging.repository import MessagingRepository
from musicmentor.modules.messaging.schemas import MessageCreate
from musicmentor.modules.outbox.repository import OutboxRepository
from musicmentor.shared.exceptions import BusinessRuleException, NotFoundException, UnauthorizedException


class MessagingService:
    """Messages between the student and the mentor of one booking."""

    def __init__(
        self,
        repository: MessagingRepository,
        booking_repository: BookingRepository,
        outbox_repository: OutboxRepository,
    ) -> None:
        self.repository = repository
        self.booking_repository = booking_repository
        self.outbox_repository = outbox_repository

    async def _get_booking_for_party(self, booking_id: UUID, actor: User) -> Booking:
        booking = await self.booking_repository.get_booking_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found")
        if actor.id not in (booking.student_id, booking.mentor_id):
            raise UnauthorizedException("Only booking participants can use this conversation")
        return booking

    async def send_message(self, booking_id: UUID, payload: MessageCreate, actor: User) -> Message:
        """Post a message; the other party of the booking receives it."""
        body = payload.body.strip()
        if not body:
            raise BusinessRuleException("Message cannot be empty")

        booking = await self._get_booking_for_party(booking_id, actor)
        receiver_id = booking.mentor_id if actor.id == booking.student_id else booking.student_id

        message = await self.repository.create_message(booking.id, actor.id, receiver_id, body)
        await self.outbox_repository.create_outbox_event(
            aggregate_type="message",
            aggregate_id=str(message.id),
            event_type="message.sent",
            payload={
                "message_id": str(message.id),
                "booking_id": str(booking.id),
                "sender_id": str(actor.id),
                "sender_name": actor.public_name,
                "receiver_id": str(receiver_id),
            },
        )
        return message

    async def list_messages(self, booking_id: UUID, actor: User) -> list[Message]:
        booking = await self._get_booking_for_party(booking_id, actor)
        return await self.repository.list_for_booking(booking.id)

    async def mark_read(self, booking_id: UUID, actor: User) -> int:
        booking = await self._get_booking_for_party(booking_id, actor)
        return await self.repository.mark_read(booking.id, actor.id)

    async def unread_count(self, booking_id: UUID, actor: User) -> int:
        booking = await self._get_booking_for_party(booking_id, actor)
        return await self.repository.count_unread(booking.id, actor.id)


async def get_messaging_service(session: AsyncSession = Depends(get_db_session)) -> MessagingService:
    """Dependency provider for messaging service."""
    return MessagingService(
        repository=MessagingRepository(session),
        booking_repository=BookingRepository(session),
        outbox_repository=OutboxRepository(session),
    )
