from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest

from musicmentor.core.enums import RoleEnum
from musicmentor.modules.messaging.schemas import MessageCreate
from musicmentor.modules.messaging.service import MessagingService
from musicmentor.shared.exceptions import BusinessRuleException, NotFoundException, UnauthorizedException


@dataclass
class FakeBooking:
    id: UUID
    mentor_id: UUID
    student_id: UUID


@dataclass
class FakeMessage:
    id: UUID
    booking_id: UUID
    sender_id: UUID
    receiver_id: UUID
    body: str
    is_read: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class FakeMessagingRepository:
    def __init__(self) -> None:
        self.messages: list[FakeMessage] = []

    async def create_message(self, booking_id: UUID, sender_id: UUID, receiver_id: UUID, body: str) -> FakeMessage:
        message = FakeMessage(uuid4(), booking_id, sender_id, receiver_id, body)
        self.messages.append(message)
        return message

    async def list_for_booking(self, booking_id: UUID) -> list[FakeMessage]:
        return [message for message in self.messages if message.booking_id == booking_id]

    async def mark_read(self, booking_id: UUID, receiver_id: UUID) -> int:
        updated = 0
        for message in self.messages:
            if message.booking_id == booking_id and message.receiver_id == receiver_id and not message.is_read:
                message.is_read = True
                updated += 1
        return updated

    async def count_unread(self, booking_id: UUID, receiver_id: UUID) -> int:
        return sum(
            1
            for message in self.messages
            if message.booking_id == booking_id and message.receiver_id == receiver_id and not message.is_read
        )


class FakeBookingRepository:
    def __init__(self, bookings: list[FakeBooking]) -> None:
        self._bookings = {booking.id: booking for booking in bookings}

    async def get_booking_by_id(self, booking_id: UUID) -> FakeBooking | None:
        return self._bookings.get(booking_id)


class FakeOutboxRepository:
    def __init__(self) -> None:
        self.events: list[dict] = []

    async def create_outbox_event(self, aggregate_type: str, aggregate_id: str, event_type: str, payload: dict) -> None:
        self.events.append({"aggregate_type": aggregate_type, "event_type": event_type, "payload": payload})


def make_actor(user_id: UUID, role: RoleEnum = RoleEnum.STUDENT, name: str = "Sam Student") -> SimpleNamespace:
    return SimpleNamespace(id=user_id, role=SimpleNamespace(name=role), public_name=name)


def make_service() -> tuple[MessagingService, FakeBooking, FakeMessagingRepository, FakeOutboxRepository]:
    booking = FakeBooking(id=uuid4(), mentor_id=uuid4(), student_id=uuid4())
    repository = FakeMessagingRepository()
    outbox = FakeOutboxRepository()
    service = MessagingService(repository, FakeBookingRepository([booking]), outbox)
    return service, booking, repository, outbox


@pytest.mark.asyncio
async def test_student_message_goes_to_mentor_and_emits_event() -> None:
    service, booking, _, outbox = make_service()

    message = await service.send_message(
        booking.id,
        MessageCreate(body="  Can we cover scales?  "),
        make_actor(booking.student_id),
    )

    assert message.body == "Can we cover scales?"
    assert message.receiver_id == booking.mentor_id
    [event] = outbox.events
    assert event["event_type"] == "message.sent"
    assert event["payload"]["receiver_id"] == str(booking.mentor_id)
    assert event["payload"]["sender_name"] == "Sam Student"


@pytest.mark.asyncio
async def test_mentor_reply_goes_to_student() -> None:
    service, booking, _, _ = make_service()

    message = await service.send_message(
        booking.id,
        MessageCreate(body="Sure!"),
        make_actor(booking.mentor_id, RoleEnum.MENTOR, "Sarah Chen"),
    )

    assert message.receiver_id == booking.student_id


@pytest.mark.asyncio
async def test_blank_message_and_outsiders_are_rejected() -> None:
    service, booking, repository, outbox = make_service()

    with pytest.raises(BusinessRuleException):
        await service.send_message(booking.id, MessageCreate(body="   "), make_actor(booking.student_id))
    with pytest.raises(UnauthorizedException):
        await service.send_message(booking.id, MessageCreate(body="hi"), make_actor(uuid4()))
    with pytest.raises(UnauthorizedException):
        await service.list_messages(booking.id, make_actor(uuid4(), RoleEnum.ADMIN))
    with pytest.raises(NotFoundException):
        await service.list_messages(uuid4(), make_actor(booking.student_id))

    assert repository.messages == []
    assert outbox.events == []


@pytest.mark.asyncio
async def test_mark_read_only_touches_messages_received_by_actor() -> None:
    service, booking, _, _ = make_service()
    student = make_actor(booking.student_id)
    mentor = make_actor(booking.mentor_id, RoleEnum.MENTOR)
    await service.send_message(booking.id, MessageCreate(body="one"), student)
    await service.send_message(booking.id, MessageCreate(body="two"), student)
    await service.send_message(booking.id, MessageCreate(body="reply"), mentor)

    assert await service.unread_count(booking.id, mentor) == 2
    assert await service.mark_read(booking.id, mentor) == 2
    assert await service.unread_count(booking.id, mentor) == 0
    assert await service.unread_count(booking.id, student) == 1
    assert [message.body for message in await service.list_messages(booking.id, student)] == ["one", "two", "reply"]
