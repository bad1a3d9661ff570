"""Availability slot engine.

Pure, synchronous functions that turn a mentor's weekly availability template
into dated bookable slots and reconcile them against existing bookings.
Nothing in this module touches the database; the availability and booking
services feed it plain values and persist whatever comes out.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any, Protocol
from uuid import UUID

from musicmentor.core.enums import BookingStatusEnum, WeekdayEnum

logger = logging.getLogger(__name__)

# Fixed gap kept free after every pending or confirmed booking.
BOOKING_BUFFER = timedelta(minutes=15)
DEFAULT_SESSION_DURATION_MINUTES = 15
DEFAULT_MAX_DISPLAY_DATES = 14

BLOCKING_STATUSES = frozenset({BookingStatusEnum.PENDING, BookingStatusEnum.CONFIRMED})

# Indexed by date.weekday(), Monday == 0.
WEEKDAY_ORDER: tuple[WeekdayEnum, ...] = (
    WeekdayEnum.MONDAY,
    WeekdayEnum.TUESDAY,
    WeekdayEnum.WEDNESDAY,
    WeekdayEnum.THURSDAY,
    WeekdayEnum.FRIDAY,
    WeekdayEnum.SATURDAY,
    WeekdayEnum.SUNDAY,
)

# Older templates were keyed by numeric weekday with Sunday == 0.
LEGACY_WEEKDAY_KEYS: dict[str, WeekdayEnum] = {
    "0": WeekdayEnum.SUNDAY,
    "1": WeekdayEnum.MONDAY,
    "2": WeekdayEnum.TUESDAY,
    "3": WeekdayEnum.WEDNESDAY,
    "4": WeekdayEnum.THURSDAY,
    "5": WeekdayEnum.FRIDAY,
    "6": WeekdayEnum.SATURDAY,
}

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


class InvalidTimeError(ValueError):
    """Raised when a wall-clock string is not a valid HH:MM value."""


class TemplateFormatError(ValueError):
    """Raised when a weekly template has the wrong shape."""


def parse_time(value: str) -> tuple[int, int]:
    """Parse ``"HH:MM"`` into ``(hours, minutes)``."""
    if not isinstance(value, str):
        raise InvalidTimeError(f"Time must be a string, got {type(value).__name__}")
    match = _TIME_PATTERN.match(value.strip())
    if match is None:
        raise InvalidTimeError(f"Malformed time value: {value!r}")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidTimeError(f"Time out of range: {value!r}")
    return hours, minutes


def combine_date_and_time(day: date, hours: int, minutes: int, tz: tzinfo | None = None) -> datetime:
    """Build the instant for ``day`` at ``hours:minutes`` with seconds zeroed."""
    return datetime.combine(day, time(hour=hours, minute=minutes), tzinfo=tz)


@dataclass(frozen=True, slots=True)
class TimeRange:
    start: str
    end: str


@dataclass(frozen=True, slots=True)
class DaySchedule:
    available: bool = False
    slots: tuple[TimeRange, ...] = ()


@dataclass(frozen=True, slots=True)
class WeeklyAvailabilityTemplate:
    """Recurring weekly availability of a single mentor."""

    days: Mapping[WeekdayEnum, DaySchedule]
    session_duration: int = DEFAULT_SESSION_DURATION_MINUTES
    blocked_dates: frozenset[date] = frozenset()
    timezone: str = "UTC"

    def schedule_for(self, day: date) -> DaySchedule | None:
        return self.days.get(WEEKDAY_ORDER[day.weekday()])

    def is_blocked(self, day: date) -> bool:
        return day in self.blocked_dates


def _normalize_weekday_key(key: Any) -> WeekdayEnum:
    normalized = str(key).strip().lower()
    if normalized in LEGACY_WEEKDAY_KEYS:
        return LEGACY_WEEKDAY_KEYS[normalized]
    try:
        return WeekdayEnum(normalized)
    except ValueError as exc:
        raise TemplateFormatError(f"Unknown weekday key: {key!r}") from exc


def _parse_ranges(weekday: WeekdayEnum, raw_ranges: Any) -> tuple[TimeRange, ...]:
    if not isinstance(raw_ranges, Sequence) or isinstance(raw_ranges, str):
        raise TemplateFormatError(f"Slots of {weekday} must be a list")

    ranges: list[TimeRange] = []
    for raw in raw_ranges:
        if isinstance(raw, TimeRange):
            ranges.append(raw)
            continue
        if not isinstance(raw, Mapping) or "start" not in raw or "end" not in raw:
            raise TemplateFormatError(f"Time range of {weekday} must have start and end")
        ranges.append(TimeRange(start=str(raw["start"]), end=str(raw["end"])))
    return tuple(ranges)


def _parse_day(weekday: WeekdayEnum, raw_day: Any) -> DaySchedule:
    if isinstance(raw_day, DaySchedule):
        return raw_day
    # Legacy shape: a bare list of ranges means the day is available.
    if isinstance(raw_day, Sequence) and not isinstance(raw_day, str):
        ranges = _parse_ranges(weekday, raw_day)
        return DaySchedule(available=bool(ranges), slots=ranges)
    if not isinstance(raw_day, Mapping):
        raise TemplateFormatError(f"Schedule of {weekday} must be a mapping or a list")

    return DaySchedule(
        available=bool(raw_day.get("available", False)),
        slots=_parse_ranges(weekday, raw_day.get("slots", [])),
    )


def _parse_blocked_dates(raw_dates: Iterable[Any]) -> frozenset[date]:
    parsed: set[date] = set()
    for raw in raw_dates:
        if isinstance(raw, date) and not isinstance(raw, datetime):
            parsed.add(raw)
            continue
        try:
            parsed.add(date.fromisoformat(str(raw)))
        except ValueError:
            logger.warning("Ignoring malformed blocked date %r", raw)
    return frozenset(parsed)


def template_from_mapping(
    weekly_schedule: Mapping[Any, Any],
    *,
    session_duration: int = DEFAULT_SESSION_DURATION_MINUTES,
    blocked_dates: Iterable[Any] = (),
    timezone: str = "UTC",
) -> WeeklyAvailabilityTemplate:
    """Normalize stored or submitted schedule data into a template.

    Accepts the canonical weekday-name keyed shape as well as the legacy
    numeric-keyed one. Individual time values are not parsed here; bad
    ranges are reported by ``generate_slots`` and skipped.
    """
    if not isinstance(weekly_schedule, Mapping):
        raise TemplateFormatError("Weekly schedule must be a mapping of weekday to schedule")
    if session_duration <= 0:
        raise TemplateFormatError("Session duration must be positive")

    days: dict[WeekdayEnum, DaySchedule] = {}
    for key, raw_day in weekly_schedule.items():
        weekday = _normalize_weekday_key(key)
        days[weekday] = _parse_day(weekday, raw_day)

    return WeeklyAvailabilityTemplate(
        days=days,
        session_duration=session_duration,
        blocked_dates=_parse_blocked_dates(blocked_dates),
        timezone=timezone,
    )


def schedule_to_mapping(template: WeeklyAvailabilityTemplate) -> dict[str, Any]:
    """Canonical JSON form of a template's weekly schedule."""
    return {
        str(weekday): {
            "available": day.available,
            "slots": [{"start": time_range.start, "end": time_range.end} for time_range in day.slots],
        }
        for weekday, day in template.days.items()
    }


def build_slot_id(mentor_id: UUID | str, start: datetime) -> str:
    """Deterministic slot identifier derived from mentor and start."""
    return f"{mentor_id}_{start:%Y%m%dT%H%M}"


@dataclass(frozen=True, slots=True)
class CandidateSlot:
    slot_id: str
    mentor_id: UUID | str
    start: datetime
    end: datetime
    available: bool = True

    @property
    def date(self) -> date:
        return self.start.date()


class BookingWindow(Protocol):
    """What the resolver needs to know about an existing booking."""

    status: BookingStatusEnum
    scheduled_start: datetime | None
    scheduled_end: datetime | None


def _range_bounds(
    day: date,
    time_range: TimeRange,
    tz: tzinfo | None,
) -> tuple[datetime, datetime]:
    start_hours, start_minutes = parse_time(time_range.start)
    end_hours, end_minutes = parse_time(time_range.end)
    return (
        combine_date_and_time(day, start_hours, start_minutes, tz),
        combine_date_and_time(day, end_hours, end_minutes, tz),
    )


def _wall_time_exists(moment: datetime) -> bool:
    """False for local times skipped by a daylight-saving jump."""
    if moment.tzinfo is None:
        return True
    round_trip = moment.astimezone(timezone.utc).astimezone(moment.tzinfo)
    return round_trip.replace(tzinfo=None) == moment.replace(tzinfo=None)


def _report_anomaly(anomalies: list[str] | None, message: str, *args: Any) -> None:
    logger.warning(message, *args)
    if anomalies is not None:
        anomalies.append(message % args)


def generate_slots(
    template: WeeklyAvailabilityTemplate,
    horizon_days: int,
    reference_now: datetime,
    *,
    mentor_id: UUID | str,
    truncate_overrun: bool = False,
    anomalies: list[str] | None = None,
) -> list[CandidateSlot]:
    """Expand a weekly template into dated slots from today through the horizon.

    Dates from ``reference_now.date()`` to ``reference_now.date() + horizon_days``
    are walked inclusively. Blocked and unavailable days produce nothing,
    malformed ranges are skipped and reported, and only slots starting
    strictly after ``reference_now`` are returned, sorted by start.
    Local times that do not exist on a daylight-saving switch day are skipped.

    The last slot of a range may run past the range end unless
    ``truncate_overrun`` is set.
    """
    tz = reference_now.tzinfo
    step = timedelta(minutes=template.session_duration)
    today = reference_now.date()
    slots: list[CandidateSlot] = []

    for offset in range(horizon_days + 1):
        day = today + timedelta(days=offset)
        if template.is_blocked(day):
            continue

        schedule = template.schedule_for(day)
        if schedule is None or not schedule.available or not schedule.slots:
            continue

        for time_range in schedule.slots:
            try:
                block_start, block_end = _range_bounds(day, time_range, tz)
            except InvalidTimeError as exc:
                _report_anomaly(anomalies, "Skipping range %s-%s on %s: %s", time_range.start, time_range.end, day, exc)
                continue
            if block_end <= block_start:
                _report_anomaly(
                    anomalies,
                    "Skipping range %s-%s on %s: end is not after start",
                    time_range.start,
                    time_range.end,
                    day,
                )
                continue

            cursor = block_start
            while cursor < block_end:
                slot_end = cursor + step
                if truncate_overrun and slot_end > block_end:
                    break
                if cursor > reference_now and _wall_time_exists(cursor):
                    slots.append(
                        CandidateSlot(
                            slot_id=build_slot_id(mentor_id, cursor),
                            mentor_id=mentor_id,
                            start=cursor,
                            end=slot_end,
                        ),
                    )
                cursor = slot_end

    slots.sort(key=lambda slot: slot.start)
    return slots


def _blocks(slot: CandidateSlot, booking: BookingWindow) -> bool:
    if booking.status not in BLOCKING_STATUSES:
        return False
    if booking.scheduled_start is None or booking.scheduled_end is None:
        return False
    return slot.start < booking.scheduled_end + BOOKING_BUFFER and slot.end > booking.scheduled_start


def resolve_availability(
    slots: Iterable[CandidateSlot],
    existing_bookings: Iterable[BookingWindow],
) -> list[CandidateSlot]:
    """Mark slots overlapping a pending or confirmed booking as unavailable.

    A slot is taken when it starts before the booking end plus
    ``BOOKING_BUFFER`` and ends after the booking start. Declined and
    completed bookings, and bookings without scheduled times, never block.
    Returns new slot values; the input is left untouched.
    """
    blocking = [booking for booking in existing_bookings if booking.status in BLOCKING_STATUSES]
    return [
        replace(slot, available=not any(_blocks(slot, booking) for booking in blocking))
        for slot in slots
    ]


@dataclass(frozen=True, slots=True)
class SlotDay:
    date: date
    slots: tuple[CandidateSlot, ...] = field(default_factory=tuple)

    @property
    def available_count(self) -> int:
        return sum(1 for slot in self.slots if slot.available)


def group_by_date(
    slots: Iterable[CandidateSlot],
    max_dates: int = DEFAULT_MAX_DISPLAY_DATES,
) -> list[SlotDay]:
    """Bucket slots by calendar date, earliest first, keeping ``max_dates`` days."""
    buckets: dict[date, list[CandidateSlot]] = {}
    for slot in slots:
        buckets.setdefault(slot.date, []).append(slot)

    days = [
        SlotDay(date=day, slots=tuple(sorted(buckets[day], key=lambda slot: slot.start)))
        for day in sorted(buckets)
    ]
    return days[:max_dates]
