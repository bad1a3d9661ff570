"""Video room repository layer."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from musicmentor.modules.video.models import VideoRoom


class VideoRoomRepository:
    """DB operations for booking video rooms."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_booking_id(self, booking_id: UUID) -> VideoRoom | None:
        stmt = select(VideoRoom).where(VideoRoom.booking_id == booking_id)
        return await self.session.scalar(stmt)

    async def upsert_room(self, booking_id: UUID, **fields) -> VideoRoom:
        room = await self.get_by_booking_id(booking_id)
        if room is None:
            room = VideoRoom(booking_id=booking_id)
            self.session.add(room)
        for key, value in fields.items():
            setattr(room, key, value)
        await self.session.flush()
        return room

    async def save(self, room: VideoRoom) -> VideoRoom:
        await self.session.flush()
        return room
