from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from musicmentor.core.enums import NotificationTypeEnum, OutboxStatusEnum
from musicmentor.modules.notifications.outbox_worker import NotificationsOutboxWorker, describe_booking_time
from musicmentor.modules.notifications.service import NotificationsService


@dataclass
class FakeOutboxEvent:
    id: UUID
    event_type: str
    payload: dict
    status: OutboxStatusEnum = OutboxStatusEnum.PENDING
    retries: int = 0
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    processed_at: datetime | None = None
    error_message: str | None = None


@dataclass
class FakeNotification:
    id: UUID
    user_id: UUID
    type: NotificationTypeEnum
    title: str
    message: str
    booking_id: UUID | None = None
    action_url: str | None = None
    is_read: bool = False


class FakeOutboxRepository:
    def __init__(self, events: list[FakeOutboxEvent]) -> None:
        self.events = events

    async def list_pending_outbox(self, limit: int) -> list[FakeOutboxEvent]:
        return [event for event in self.events if event.status == OutboxStatusEnum.PENDING][:limit]

    async def list_failed_outbox(self, limit: int, max_retries: int) -> list[FakeOutboxEvent]:
        return [
            event
            for event in self.events
            if event.status == OutboxStatusEnum.FAILED and event.retries < max_retries
        ][:limit]

    async def mark_outbox_pending(self, event: FakeOutboxEvent) -> FakeOutboxEvent:
        event.status = OutboxStatusEnum.PENDING
        event.error_message = None
        event.updated_at = datetime.now(UTC)
        return event

    async def mark_outbox_processed(
        self,
        event: FakeOutboxEvent,
        processed_at: datetime,
    ) -> FakeOutboxEvent:
        event.status = OutboxStatusEnum.PROCESSED
        event.processed_at = processed_at
        event.error_message = None
        event.updated_at = processed_at
        return event

    async def mark_outbox_failed(
        self,
        event: FakeOutboxEvent,
        error_message: str,
    ) -> FakeOutboxEvent:
        event.status = OutboxStatusEnum.FAILED
        event.retries += 1
        event.error_message = error_message
        event.updated_at = datetime.now(UTC)
        return event


class FakeNotificationsRepository:
    def __init__(self) -> None:
        self.notifications: list[FakeNotification] = []

    async def create_notification(self, **fields) -> FakeNotification:
        notification = FakeNotification(id=uuid4(), **fields)
        self.notifications.append(notification)
        return notification


def make_worker(
    events: list[FakeOutboxEvent],
    *,
    now: datetime | None = None,
    base_backoff_seconds: int = 30,
) -> tuple[NotificationsOutboxWorker, FakeOutboxRepository, FakeNotificationsRepository]:
    now_point = now or datetime.now(UTC)
    outbox_repo = FakeOutboxRepository(events)
    notifications_repo = FakeNotificationsRepository()
    worker = NotificationsOutboxWorker(
        outbox_repository=outbox_repo,  # type: ignore[arg-type]
        notifications_service=NotificationsService(notifications_repo),  # type: ignore[arg-type]
        now_provider=lambda: now_point,
        base_backoff_seconds=base_backoff_seconds,
    )
    return worker, outbox_repo, notifications_repo


def booking_payload(**extra) -> dict:
    payload = {
        "booking_id": str(uuid4()),
        "mentor_id": str(uuid4()),
        "student_id": str(uuid4()),
        "booking_type": "scheduled",
        "scheduled_start": "2026-02-16T14:00:00+00:00",
        "preferred_time": None,
    }
    payload.update(extra)
    return payload


@pytest.mark.asyncio
async def test_worker_turns_booking_request_into_mentor_notification() -> None:
    payload = booking_payload(student_name="Sam Student")
    event = FakeOutboxEvent(id=uuid4(), event_type="booking.requested", payload=payload)
    worker, _, notifications_repo = make_worker([event], now=datetime(2026, 2, 15, 12, 0, tzinfo=UTC))

    stats = await worker.run_once()

    assert stats == {"requeued": 0, "processed": 1, "failed": 0, "dispatched": 1}
    assert event.status == OutboxStatusEnum.PROCESSED
    [notification] = notifications_repo.notifications
    assert notification.user_id == UUID(payload["mentor_id"])
    assert notification.type == NotificationTypeEnum.BOOKING_REQUEST
    assert notification.title == "New Booking Request"
    assert notification.message == "Sam Student requested a session on Mon Feb 16 at 14:00 UTC"
    assert notification.action_url == f"/my-bookings?booking={payload['booking_id']}"
    assert notification.is_read is False


@pytest.mark.asyncio
async def test_confirmed_event_mentions_ready_video_room() -> None:
    payload = booking_payload(has_video=True)
    event = FakeOutboxEvent(id=uuid4(), event_type="booking.confirmed", payload=payload)
    worker, _, notifications_repo = make_worker([event])

    await worker.run_once()

    [notification] = notifications_repo.notifications
    assert notification.user_id == UUID(payload["student_id"])
    assert notification.title == "Booking Confirmed"
    assert notification.message.endswith("Your video room is ready.")


@pytest.mark.asyncio
async def test_completed_event_notifies_both_participants() -> None:
    payload = booking_payload()
    event = FakeOutboxEvent(id=uuid4(), event_type="booking.completed", payload=payload)
    worker, _, notifications_repo = make_worker([event])

    stats = await worker.run_once()

    assert stats["dispatched"] == 2
    assert {notification.user_id for notification in notifications_repo.notifications} == {
        UUID(payload["student_id"]),
        UUID(payload["mentor_id"]),
    }


@pytest.mark.asyncio
async def test_message_event_links_to_open_conversation() -> None:
    booking_id = uuid4()
    receiver_id = uuid4()
    event = FakeOutboxEvent(
        id=uuid4(),
        event_type="message.sent",
        payload={
            "booking_id": str(booking_id),
            "sender_id": str(uuid4()),
            "sender_name": "Sarah Chen",
            "receiver_id": str(receiver_id),
        },
    )
    worker, _, notifications_repo = make_worker([event])

    await worker.run_once()

    [notification] = notifications_repo.notifications
    assert notification.user_id == receiver_id
    assert notification.type == NotificationTypeEnum.NEW_MESSAGE
    assert notification.title == "New Message"
    assert notification.message == "Sarah Chen sent you a message"
    assert notification.action_url == f"/my-bookings?booking={booking_id}&openMessages=true"


@pytest.mark.asyncio
async def test_worker_processes_unknown_event_without_dispatch() -> None:
    event = FakeOutboxEvent(
        id=uuid4(),
        event_type="unknown.event",
        payload={},
    )
    worker, _, notifications_repo = make_worker(
        [event],
        now=datetime(2026, 2, 23, 12, 0, tzinfo=UTC),
    )

    stats = await worker.run_once()

    assert stats == {"requeued": 0, "processed": 1, "failed": 0, "dispatched": 0}
    assert event.status == OutboxStatusEnum.PROCESSED
    assert notifications_repo.notifications == []


@pytest.mark.asyncio
async def test_worker_requeues_failed_event_after_backoff() -> None:
    now_point = datetime(2026, 2, 23, 12, 0, tzinfo=UTC)
    event = FakeOutboxEvent(
        id=uuid4(),
        event_type="booking.declined",
        payload=booking_payload(),
        status=OutboxStatusEnum.FAILED,
        retries=1,
        occurred_at=now_point - timedelta(minutes=10),
        updated_at=now_point - timedelta(minutes=2),
    )
    worker, _, notifications_repo = make_worker(
        [event],
        now=now_point,
        base_backoff_seconds=30,
    )

    stats = await worker.run_once()

    assert stats["requeued"] == 1
    assert stats["processed"] == 1
    assert event.status == OutboxStatusEnum.PROCESSED
    assert notifications_repo.notifications[0].title == "Booking Declined"


@pytest.mark.asyncio
async def test_worker_keeps_failed_event_until_backoff_elapses() -> None:
    now_point = datetime(2026, 2, 23, 12, 0, tzinfo=UTC)
    event = FakeOutboxEvent(
        id=uuid4(),
        event_type="booking.declined",
        payload=booking_payload(),
        status=OutboxStatusEnum.FAILED,
        retries=3,
        updated_at=now_point - timedelta(seconds=90),
    )
    worker, _, notifications_repo = make_worker([event], now=now_point, base_backoff_seconds=30)

    stats = await worker.run_once()

    assert stats["requeued"] == 0
    assert event.status == OutboxStatusEnum.FAILED
    assert notifications_repo.notifications == []


@pytest.mark.asyncio
async def test_worker_marks_event_failed_when_payload_invalid() -> None:
    event = FakeOutboxEvent(
        id=uuid4(),
        event_type="booking.confirmed",
        payload={},
    )
    worker, _, notifications_repo = make_worker(
        [event],
        now=datetime(2026, 2, 23, 12, 0, tzinfo=UTC),
    )

    stats = await worker.run_once()

    assert stats["processed"] == 0
    assert stats["failed"] == 1
    assert event.status == OutboxStatusEnum.FAILED
    assert event.retries == 1
    assert notifications_repo.notifications == []


def test_describe_booking_time_falls_back_to_preference() -> None:
    assert describe_booking_time({"preferred_time": "evening"}) == "in the evening"
    assert describe_booking_time({"preferred_time": "flexible"}) == "at a flexible time"
    assert describe_booking_time({}) == "at a flexible time"
