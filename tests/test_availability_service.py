from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from types import SimpleNamespace
from typing import Any
from uuid import UUID, uuid4

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

import musicmentor.modules.availability.service as availability_service_module
from musicmentor.core.enums import BookingStatusEnum, RoleEnum, WeekdayEnum
from musicmentor.modules.availability.schemas import AvailabilityTemplateUpsert
from musicmentor.modules.availability.service import (
    BOOKINGS_UNAVAILABLE_WARNING,
    TEMPLATE_NOT_FOUND_MESSAGE,
    TEMPLATE_UNAVAILABLE_MESSAGE,
    AvailabilityService,
)
from musicmentor.shared.exceptions import BusinessRuleException, UnauthorizedException

FIXED_NOW = datetime(2026, 2, 15, 12, 0, tzinfo=UTC)
MONDAYS = [date(2026, 2, 16), date(2026, 2, 23), date(2026, 3, 2)]


def _db_down() -> OperationalError:
    return OperationalError("SELECT", {}, Exception("connection refused"))


@dataclass
class FakeAvailability:
    mentor_id: UUID
    weekly_schedule: dict[str, Any]
    blocked_dates: list[str] = field(default_factory=list)
    session_duration: int = 15
    timezone: str = "UTC"


@dataclass
class FakeBooking:
    status: BookingStatusEnum
    scheduled_start: datetime
    scheduled_end: datetime


class FakeAvailabilityRepository:
    def __init__(self, templates: dict[UUID, FakeAvailability] | None = None, fail: bool = False) -> None:
        self._templates = templates or {}
        self.fail = fail
        self.rollbacks = 0
        self.upserts: list[dict] = []

    async def get_template(self, mentor_id: UUID, *, for_update: bool = False) -> FakeAvailability | None:
        if self.fail:
            raise _db_down()
        return self._templates.get(mentor_id)

    async def upsert_template(self, mentor_id: UUID, **fields: Any) -> FakeAvailability:
        self.upserts.append(fields)
        availability = FakeAvailability(mentor_id=mentor_id, **fields)
        self._templates[mentor_id] = availability
        return availability

    async def rollback(self) -> None:
        self.rollbacks += 1


class FakeBookingRepository:
    def __init__(self, bookings: list[FakeBooking] | None = None, fail: bool = False) -> None:
        self._bookings = bookings or []
        self.fail = fail

    async def list_active_for_mentor(self, mentor_id: UUID) -> list[FakeBooking]:
        if self.fail:
            raise _db_down()
        return self._bookings


def make_actor(user_id: UUID, role: RoleEnum = RoleEnum.MENTOR) -> SimpleNamespace:
    return SimpleNamespace(id=user_id, role=SimpleNamespace(name=role))


def monday_afternoon(mentor_id: UUID) -> FakeAvailability:
    return FakeAvailability(
        mentor_id=mentor_id,
        weekly_schedule={"monday": {"available": True, "slots": [{"start": "14:00", "end": "15:00"}]}},
    )


@pytest.fixture(autouse=True)
def fixed_clock(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(availability_service_module, "utc_now", lambda: FIXED_NOW)


@pytest.mark.asyncio
async def test_listing_resolves_slots_against_bookings() -> None:
    mentor_id = uuid4()
    booked_start = datetime(2026, 2, 16, 14, 15, tzinfo=UTC)
    service = AvailabilityService(
        FakeAvailabilityRepository({mentor_id: monday_afternoon(mentor_id)}),
        FakeBookingRepository(
            [FakeBooking(BookingStatusEnum.CONFIRMED, booked_start, booked_start + timedelta(minutes=15))],
        ),
    )

    listing = await service.get_bookable_slots(mentor_id)

    assert listing.template_status == "ok"
    assert listing.resolved is True
    assert listing.warnings == []
    # 20-day horizon from Sunday Feb 15 covers three Mondays.
    assert [day.date for day in listing.days] == MONDAYS
    assert [slot.available for slot in listing.days[0].slots] == [True, False, False, True]
    assert [day.available_count for day in listing.days] == [2, 4, 4]


@pytest.mark.asyncio
async def test_slots_are_generated_in_mentor_timezone() -> None:
    mentor_id = uuid4()
    availability = monday_afternoon(mentor_id)
    availability.timezone = "America/New_York"
    service = AvailabilityService(FakeAvailabilityRepository({mentor_id: availability}), FakeBookingRepository())

    listing = await service.get_bookable_slots(mentor_id)

    first = listing.days[0].slots[0]
    assert listing.timezone == "America/New_York"
    assert first.start.astimezone(UTC) == datetime(2026, 2, 16, 19, 0, tzinfo=UTC)


@pytest.mark.asyncio
async def test_missing_template_returns_empty_listing() -> None:
    service = AvailabilityService(FakeAvailabilityRepository(), FakeBookingRepository())

    listing = await service.get_bookable_slots(uuid4())

    assert listing.template_status == "not_found"
    assert listing.days == []
    assert listing.message == TEMPLATE_NOT_FOUND_MESSAGE


@pytest.mark.asyncio
async def test_template_fetch_failure_degrades_to_unavailable() -> None:
    repository = FakeAvailabilityRepository(fail=True)
    service = AvailabilityService(repository, FakeBookingRepository())

    listing = await service.get_bookable_slots(uuid4())

    assert listing.template_status == "unavailable"
    assert listing.days == []
    assert listing.message == TEMPLATE_UNAVAILABLE_MESSAGE
    assert repository.rollbacks == 1


@pytest.mark.asyncio
async def test_malformed_stored_template_degrades_to_unavailable() -> None:
    mentor_id = uuid4()
    broken = FakeAvailability(mentor_id=mentor_id, weekly_schedule={"someday": []})
    service = AvailabilityService(FakeAvailabilityRepository({mentor_id: broken}), FakeBookingRepository())

    listing = await service.get_bookable_slots(mentor_id)

    assert listing.template_status == "unavailable"
    assert listing.days == []


@pytest.mark.asyncio
async def test_bookings_failure_returns_unresolved_slots_with_warning() -> None:
    mentor_id = uuid4()
    repository = FakeAvailabilityRepository({mentor_id: monday_afternoon(mentor_id)})
    service = AvailabilityService(repository, FakeBookingRepository(fail=True))

    listing = await service.get_bookable_slots(mentor_id)

    assert listing.template_status == "ok"
    assert listing.resolved is False
    assert BOOKINGS_UNAVAILABLE_WARNING in listing.warnings
    assert [len(day.slots) for day in listing.days] == [4, 4, 4]
    assert all(slot.available for day in listing.days for slot in day.slots)
    assert repository.rollbacks == 1


@pytest.mark.asyncio
async def test_bad_stored_range_is_reported_as_warning() -> None:
    mentor_id = uuid4()
    availability = FakeAvailability(
        mentor_id=mentor_id,
        weekly_schedule={
            "monday": {
                "available": True,
                "slots": [{"start": "14:00", "end": "14:30"}, {"start": "99:00", "end": "10:00"}],
            },
        },
    )
    service = AvailabilityService(FakeAvailabilityRepository({mentor_id: availability}), FakeBookingRepository())

    listing = await service.get_bookable_slots(mentor_id)

    assert listing.resolved is True
    assert len(listing.warnings) == len(MONDAYS)
    assert all("99:00" in warning for warning in listing.warnings)
    assert [day.available_count for day in listing.days] == [2, 2, 2]


@pytest.mark.asyncio
async def test_mentor_upsert_stores_canonical_schedule() -> None:
    mentor_id = uuid4()
    repository = FakeAvailabilityRepository()
    service = AvailabilityService(repository, FakeBookingRepository())
    payload = AvailabilityTemplateUpsert(
        weekly_schedule={"friday": {"available": True, "slots": [{"start": "16:00", "end": "20:00"}]}},
        blocked_dates=[date(2026, 3, 2), date(2026, 3, 1), date(2026, 3, 2)],
        session_duration=30,
        timezone="Europe/Berlin",
    )

    saved = await service.upsert_my_template(payload, make_actor(mentor_id))

    assert saved.weekly_schedule == {
        "friday": {"available": True, "slots": [{"start": "16:00", "end": "20:00"}]},
    }
    assert saved.blocked_dates == ["2026-03-01", "2026-03-02"]
    assert saved.session_duration == 30
    assert saved.timezone == "Europe/Berlin"
    assert WeekdayEnum.FRIDAY in payload.weekly_schedule


@pytest.mark.asyncio
async def test_upsert_rejects_reversed_range_and_non_mentors() -> None:
    service = AvailabilityService(FakeAvailabilityRepository(), FakeBookingRepository())
    reversed_range = AvailabilityTemplateUpsert(
        weekly_schedule={"monday": {"available": True, "slots": [{"start": "15:00", "end": "14:00"}]}},
    )

    with pytest.raises(BusinessRuleException):
        await service.upsert_my_template(reversed_range, make_actor(uuid4()))
    with pytest.raises(UnauthorizedException):
        await service.upsert_my_template(
            AvailabilityTemplateUpsert(weekly_schedule={}),
            make_actor(uuid4(), RoleEnum.STUDENT),
        )


def test_upsert_schema_rejects_bad_times_and_zones() -> None:
    with pytest.raises(ValidationError):
        AvailabilityTemplateUpsert(
            weekly_schedule={"monday": {"available": True, "slots": [{"start": "25:00", "end": "26:00"}]}},
        )
    with pytest.raises(ValidationError):
        AvailabilityTemplateUpsert(weekly_schedule={}, timezone="Mars/Olympus")
