"""Availability repository layer."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from musicmentor.modules.availability.models import MentorAvailability


class AvailabilityRepository:
    """DB access for mentor availability templates."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_template(self, mentor_id: UUID, *, for_update: bool = False) -> MentorAvailability | None:
        stmt = select(MentorAvailability).where(MentorAvailability.mentor_id == mentor_id)
        if for_update:
            # Serializes concurrent booking submissions for the same mentor.
            stmt = stmt.with_for_update()
        return await self.session.scalar(stmt)

    async def upsert_template(
        self,
        mentor_id: UUID,
        weekly_schedule: dict[str, Any],
        blocked_dates: list[str],
        session_duration: int,
        timezone: str,
    ) -> MentorAvailability:
        availability = await self.get_template(mentor_id)
        if availability is None:
            availability = MentorAvailability(mentor_id=mentor_id)
            self.session.add(availability)

        availability.weekly_schedule = weekly_schedule
        availability.blocked_dates = blocked_dates
        availability.session_duration = session_duration
        availability.timezone = timezone
        await self.session.flush()
        return availability

    async def rollback(self) -> None:
        await self.session.rollback()
