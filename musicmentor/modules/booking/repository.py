"""Booking repository layer."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from musicmentor.core.enums import BookingStatusEnum, BookingTypeEnum, PreferredTimeEnum, RoleEnum
from musicmentor.modules.booking.models import Booking

ACTIVE_STATUSES = (BookingStatusEnum.PENDING, BookingStatusEnum.CONFIRMED)


def _participant_column(role_name: RoleEnum):
    return Booking.student_id if role_name == RoleEnum.STUDENT else Booking.mentor_id


class BookingRepository:
    """DB operations for booking domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_booking(
        self,
        mentor_id: UUID,
        student_id: UUID,
        booking_type: BookingTypeEnum,
        message: str,
        video_preferred: bool,
        rate: Decimal,
        scheduled_start: datetime | None = None,
        scheduled_end: datetime | None = None,
        preferred_time: PreferredTimeEnum | None = None,
    ) -> Booking:
        booking = Booking(
            mentor_id=mentor_id,
            student_id=student_id,
            booking_type=booking_type,
            status=BookingStatusEnum.PENDING,
            message=message,
            video_preferred=video_preferred,
            rate=rate,
            scheduled_start=scheduled_start,
            scheduled_end=scheduled_end,
            preferred_time=preferred_time,
        )
        self.session.add(booking)
        await self.session.flush()
        await self.session.refresh(booking, attribute_names=["video_room"])
        return booking

    async def get_booking_by_id(self, booking_id: UUID) -> Booking | None:
        stmt = (
            select(Booking)
            .options(selectinload(Booking.video_room), selectinload(Booking.mentor), selectinload(Booking.student))
            .where(Booking.id == booking_id)
        )
        return await self.session.scalar(stmt)

    async def list_active_for_mentor(self, mentor_id: UUID) -> list[Booking]:
        """Pending and confirmed scheduled bookings that can block slots."""
        stmt = select(Booking).where(
            Booking.mentor_id == mentor_id,
            Booking.booking_type == BookingTypeEnum.SCHEDULED,
            Booking.status.in_(ACTIVE_STATUSES),
        )
        return (await self.session.scalars(stmt)).all()

    async def list_bookings(
        self,
        user_id: UUID,
        role_name: RoleEnum,
        status: BookingStatusEnum | None,
        limit: int,
        offset: int,
        active_only: bool = False,
    ) -> tuple[list[Booking], int]:
        base_stmt: Select[tuple[Booking]] = select(Booking).options(selectinload(Booking.video_room))

        if role_name in (RoleEnum.STUDENT, RoleEnum.MENTOR):
            base_stmt = base_stmt.where(_participant_column(role_name) == user_id)
        if status is not None:
            base_stmt = base_stmt.where(Booking.status == status)
        if active_only:
            base_stmt = base_stmt.where(Booking.status.in_(ACTIVE_STATUSES))

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(Booking.created_at.desc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return items, total

    async def count_by_status(self, user_id: UUID, role_name: RoleEnum) -> dict[BookingStatusEnum, int]:
        stmt = (
            select(Booking.status, func.count())
            .where(_participant_column(role_name) == user_id)
            .group_by(Booking.status)
        )
        rows = (await self.session.execute(stmt)).all()
        return {status: int(count) for status, count in rows}

    async def count_created_since(self, user_id: UUID, role_name: RoleEnum, since: datetime) -> int:
        stmt = select(func.count()).where(_participant_column(role_name) == user_id, Booking.created_at >= since)
        return int((await self.session.scalar(stmt)) or 0)

    async def save(self, booking: Booking) -> Booking:
        await self.session.flush()
        return booking
