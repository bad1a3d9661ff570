"""Availability business logic layer."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from musicmentor.core.config import get_settings
from musicmentor.core.database import get_db_session
from musicmentor.core.enums import RoleEnum
from musicmentor.core.metrics import record_slot_engine_fallback
from musicmentor.modules.availability.engine import (
    BookingWindow,
    CandidateSlot,
    SlotDay,
    TemplateFormatError,
    generate_slots,
    group_by_date,
    resolve_availability,
    schedule_to_mapping,
    template_from_mapping,
)
from musicmentor.modules.availability.models import MentorAvailability
from musicmentor.modules.availability.repository import AvailabilityRepository
from musicmentor.modules.availability.schemas import AvailabilityTemplateUpsert, TemplateStatus
from musicmentor.modules.booking.repository import BookingRepository
from musicmentor.modules.identity.models import User
from musicmentor.shared.exceptions import BusinessRuleException, NotFoundException, UnauthorizedException
from musicmentor.shared.utils import resolve_timezone, utc_now

settings = get_settings()
logger = logging.getLogger(__name__)

TEMPLATE_UNAVAILABLE_MESSAGE = "Availability is temporarily unavailable. Please try again shortly."
TEMPLATE_NOT_FOUND_MESSAGE = "This mentor has not published availability yet."
BOOKINGS_UNAVAILABLE_WARNING = "Existing bookings could not be checked; some times may already be taken."


@dataclass(slots=True)
class SlotListing:
    """Outcome of the slot pipeline for a single mentor."""

    mentor_id: UUID
    template_status: TemplateStatus
    resolved: bool
    timezone: str = "UTC"
    session_duration: int = 15
    days: list[SlotDay] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    message: str | None = None


def build_candidate_slots(
    availability: MentorAvailability,
    now: datetime,
    *,
    anomalies: list[str] | None = None,
) -> list[CandidateSlot]:
    """Generate slots for a stored template, localized to its timezone."""
    template = template_from_mapping(
        availability.weekly_schedule,
        session_duration=availability.session_duration,
        blocked_dates=availability.blocked_dates,
        timezone=availability.timezone,
    )
    local_now = now.astimezone(resolve_timezone(template.timezone))
    return generate_slots(
        template,
        settings.slot_horizon_days,
        local_now,
        mentor_id=availability.mentor_id,
        truncate_overrun=settings.slot_truncate_overrun,
        anomalies=anomalies,
    )


class AvailabilityService:
    """Weekly templates and the bookable slot pipeline."""

    def __init__(
        self,
        repository: AvailabilityRepository,
        booking_repository: BookingRepository,
    ) -> None:
        self.repository = repository
        self.booking_repository = booking_repository

    async def upsert_my_template(self, payload: AvailabilityTemplateUpsert, actor: User) -> MentorAvailability:
        """Replace the acting mentor's weekly template."""
        if actor.role.name != RoleEnum.MENTOR:
            raise UnauthorizedException("Only mentors can publish availability")

        for weekday, day in payload.weekly_schedule.items():
            for time_range in day.slots:
                # HH:MM strings are zero padded, so they order like times.
                if time_range.end <= time_range.start:
                    raise BusinessRuleException(
                        f"Range {time_range.start}-{time_range.end} on {weekday} must end after it starts",
                    )

        raw_schedule: dict[str, Any] = {
            str(weekday): day.model_dump() for weekday, day in payload.weekly_schedule.items()
        }
        try:
            template = template_from_mapping(raw_schedule, session_duration=payload.session_duration)
        except TemplateFormatError as exc:
            raise BusinessRuleException(str(exc)) from exc

        return await self.repository.upsert_template(
            mentor_id=actor.id,
            weekly_schedule=schedule_to_mapping(template),
            blocked_dates=sorted({blocked.isoformat() for blocked in payload.blocked_dates}),
            session_duration=payload.session_duration,
            timezone=payload.timezone,
        )

    async def get_template(self, mentor_id: UUID) -> MentorAvailability:
        availability = await self.repository.get_template(mentor_id)
        if availability is None:
            raise NotFoundException("Availability not found")
        return availability

    async def _load_active_bookings(self, mentor_id: UUID) -> Sequence[BookingWindow] | None:
        try:
            return await self.booking_repository.list_active_for_mentor(mentor_id)
        except (SQLAlchemyError, OSError):
            logger.warning("Bookings fetch failed for mentor %s", mentor_id, exc_info=True)
            await self.repository.rollback()
            return None

    async def get_bookable_slots(self, mentor_id: UUID) -> SlotListing:
        """Run generate -> resolve -> group for a mentor.

        Collaborator failures degrade the listing instead of failing the
        request: a missing or unreadable template yields no days, and an
        unreadable bookings list yields unresolved slots with a warning.
        """
        try:
            availability = await self.repository.get_template(mentor_id)
        except (SQLAlchemyError, OSError):
            logger.warning("Template fetch failed for mentor %s", mentor_id, exc_info=True)
            await self.repository.rollback()
            record_slot_engine_fallback("template")
            return SlotListing(
                mentor_id=mentor_id,
                template_status="unavailable",
                resolved=False,
                message=TEMPLATE_UNAVAILABLE_MESSAGE,
            )

        if availability is None:
            return SlotListing(
                mentor_id=mentor_id,
                template_status="not_found",
                resolved=False,
                message=TEMPLATE_NOT_FOUND_MESSAGE,
            )

        warnings: list[str] = []
        try:
            slots = build_candidate_slots(availability, utc_now(), anomalies=warnings)
        except TemplateFormatError:
            logger.warning("Stored template of mentor %s is malformed", mentor_id, exc_info=True)
            record_slot_engine_fallback("template")
            return SlotListing(
                mentor_id=mentor_id,
                template_status="unavailable",
                resolved=False,
                timezone=availability.timezone,
                session_duration=availability.session_duration,
                message=TEMPLATE_UNAVAILABLE_MESSAGE,
            )

        resolved = True
        bookings = await self._load_active_bookings(mentor_id)
        if bookings is None:
            record_slot_engine_fallback("bookings")
            resolved = False
            warnings.append(BOOKINGS_UNAVAILABLE_WARNING)
        else:
            slots = resolve_availability(slots, bookings)

        return SlotListing(
            mentor_id=mentor_id,
            template_status="ok",
            resolved=resolved,
            timezone=availability.timezone,
            session_duration=availability.session_duration,
            days=group_by_date(slots, settings.slot_display_max_dates),
            warnings=warnings,
        )


async def get_availability_service(session: AsyncSession = Depends(get_db_session)) -> AvailabilityService:
    """Dependency provider for availability service."""
    return AvailabilityService(
        repository=AvailabilityRepository(session),
        booking_repository=BookingRepository(session),
    )
