"""Outbox consumer that materializes domain events into notifications."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from musicmentor.core.enums import NotificationTypeEnum
from musicmentor.modules.notifications.service import NotificationsService
from musicmentor.modules.outbox.models import OutboxEvent
from musicmentor.modules.outbox.repository import OutboxRepository
from musicmentor.shared.utils import utc_now

logger = logging.getLogger(__name__)

BOOKINGS_URL = "/my-bookings"


@dataclass(slots=True)
class NotificationMessage:
    user_id: UUID
    type: NotificationTypeEnum
    title: str
    message: str
    booking_id: UUID | None = None
    action_url: str | None = None


def booking_action_url(booking_id: UUID | str, open_messages: bool = False) -> str:
    url = f"{BOOKINGS_URL}?booking={booking_id}"
    if open_messages:
        url += "&openMessages=true"
    return url


def describe_booking_time(payload: dict) -> str:
    scheduled_start = payload.get("scheduled_start")
    if scheduled_start:
        start = datetime.fromisoformat(scheduled_start)
        return f"on {start:%a %b %d at %H:%M} UTC"
    preferred_time = payload.get("preferred_time")
    if preferred_time and preferred_time != "flexible":
        return f"in the {preferred_time}"
    return "at a flexible time"


class NotificationsOutboxWorker:
    """Process outbox events and create user notifications."""

    def __init__(
        self,
        outbox_repository: OutboxRepository,
        notifications_service: NotificationsService,
        *,
        batch_size: int = 100,
        max_retries: int = 5,
        base_backoff_seconds: int = 30,
        max_backoff_seconds: int = 300,
        now_provider=utc_now,
    ) -> None:
        self.outbox_repository = outbox_repository
        self.notifications_service = notifications_service
        self.batch_size = batch_size
        self.max_retries = max_retries
        self.base_backoff_seconds = base_backoff_seconds
        self.max_backoff_seconds = max_backoff_seconds
        self.now_provider = now_provider

    async def run_once(self) -> dict[str, int]:
        """Run one processing cycle."""
        stats = {"requeued": 0, "processed": 0, "failed": 0, "dispatched": 0}
        stats["requeued"] = await self._requeue_retryable_failed_events()

        events = await self.outbox_repository.list_pending_outbox(limit=self.batch_size)
        for event in events:
            try:
                messages = self._build_messages(event)
                for message in messages:
                    await self.notifications_service.notify(
                        user_id=message.user_id,
                        type=message.type,
                        title=message.title,
                        message=message.message,
                        booking_id=message.booking_id,
                        action_url=message.action_url,
                    )
                    stats["dispatched"] += 1

                await self.outbox_repository.mark_outbox_processed(event, self.now_provider())
                stats["processed"] += 1
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Outbox event %s (%s) failed: %s", event.id, event.event_type, exc)
                await self.outbox_repository.mark_outbox_failed(event, str(exc))
                stats["failed"] += 1
        return stats

    async def _requeue_retryable_failed_events(self) -> int:
        now = self.now_provider()
        failed_events = await self.outbox_repository.list_failed_outbox(
            limit=self.batch_size,
            max_retries=self.max_retries,
        )
        requeued = 0
        for event in failed_events:
            if self._is_backoff_elapsed(event, now):
                await self.outbox_repository.mark_outbox_pending(event)
                requeued += 1
        return requeued

    def _is_backoff_elapsed(self, event: OutboxEvent, now: datetime) -> bool:
        retries = max(event.retries, 1)
        backoff_seconds = min(
            self.max_backoff_seconds,
            self.base_backoff_seconds * (2 ** (retries - 1)),
        )
        last_attempt_at = event.updated_at or event.occurred_at
        return now >= last_attempt_at + timedelta(seconds=backoff_seconds)

    def _build_messages(self, event: OutboxEvent) -> list[NotificationMessage]:
        payload = event.payload or {}
        event_type = event.event_type

        if event_type == "message.sent":
            booking_id = self._required_uuid(payload, "booking_id")
            sender_name = payload.get("sender_name") or "Someone"
            return [
                NotificationMessage(
                    user_id=self._required_uuid(payload, "receiver_id"),
                    type=NotificationTypeEnum.NEW_MESSAGE,
                    title="New Message",
                    message=f"{sender_name} sent you a message",
                    booking_id=booking_id,
                    action_url=booking_action_url(booking_id, open_messages=True),
                ),
            ]

        if not event_type.startswith("booking."):
            return []

        booking_id = self._required_uuid(payload, "booking_id")
        action_url = booking_action_url(booking_id)
        when = describe_booking_time(payload)

        if event_type == "booking.requested":
            student_name = payload.get("student_name") or "A student"
            return [
                NotificationMessage(
                    user_id=self._required_uuid(payload, "mentor_id"),
                    type=NotificationTypeEnum.BOOKING_REQUEST,
                    title="New Booking Request",
                    message=f"{student_name} requested a session {when}",
                    booking_id=booking_id,
                    action_url=action_url,
                ),
            ]

        if event_type == "booking.confirmed":
            suffix = " Your video room is ready." if payload.get("has_video") else ""
            return [
                NotificationMessage(
                    user_id=self._required_uuid(payload, "student_id"),
                    type=NotificationTypeEnum.BOOKING_CONFIRMED,
                    title="Booking Confirmed",
                    message=f"Your session {when} has been confirmed.{suffix}",
                    booking_id=booking_id,
                    action_url=action_url,
                ),
            ]

        if event_type == "booking.declined":
            return [
                NotificationMessage(
                    user_id=self._required_uuid(payload, "student_id"),
                    type=NotificationTypeEnum.BOOKING_DECLINED,
                    title="Booking Declined",
                    message=f"Your session request {when} was declined.",
                    booking_id=booking_id,
                    action_url=action_url,
                ),
            ]

        if event_type == "booking.completed":
            recipients = self._unique_recipients(
                self._optional_uuid(payload, "student_id"),
                self._optional_uuid(payload, "mentor_id"),
            )
            return [
                NotificationMessage(
                    user_id=user_id,
                    type=NotificationTypeEnum.BOOKING_COMPLETED,
                    title="Session Completed",
                    message=f"Your session {when} was marked as completed.",
                    booking_id=booking_id,
                    action_url=action_url,
                )
                for user_id in recipients
            ]

        return []

    @staticmethod
    def _required_uuid(payload: dict, key: str) -> UUID:
        value = payload.get(key)
        if value is None:
            raise ValueError(f"Missing required key: {key}")
        return UUID(str(value))

    @staticmethod
    def _optional_uuid(payload: dict, key: str) -> UUID | None:
        value = payload.get(key)
        if value is None:
            return None
        return UUID(str(value))

    @staticmethod
    def _unique_recipients(*recipients: UUID | None) -> list[UUID]:
        unique: list[UUID] = []
        seen: set[UUID] = set()
        for recipient in recipients:
            if recipient is not None and recipient not in seen:
                unique.append(recipient)
                seen.add(recipient)
        return unique
