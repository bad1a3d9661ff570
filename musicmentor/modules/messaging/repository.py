"""Messaging repository layer."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from musicmentor.modules.messaging.models import Message


class MessagingRepository:
    """DB operations for booking conversations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_message(self, booking_id: UUID, sender_id: UUID, receiver_id: UUID, body: str) -> Message:
        message = Message(
            booking_id=booking_id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            body=body,
            is_read=False,
        )
        self.session.add(message)
        await self.session.flush()
        return message

    async def list_for_booking(self, booking_id: UUID) -> list[Message]:
        stmt = select(Message).where(Message.booking_id == booking_id).order_by(Message.created_at.asc())
        return (await self.session.scalars(stmt)).all()

    async def mark_read(self, booking_id: UUID, receiver_id: UUID) -> int:
        stmt = (
            update(Message)
            .where(
                Message.booking_id == booking_id,
                Message.receiver_id == receiver_id,
                Message.is_read.is_(False),
            )
            .values(is_read=True)
        )
        result = await self.session.execute(stmt)
        return int(result.rowcount or 0)

    async def count_unread(self, booking_id: UUID, receiver_id: UUID) -> int:
        stmt = select(func.count()).where(
            Message.booking_id == booking_id,
            Message.receiver_id == receiver_id,
            Message.is_read.is_(False),
        )
        return int((await self.session.scalar(stmt)) or 0)
