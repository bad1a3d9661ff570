"""Availability schemas."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator

from musicmentor.core.enums import WeekdayEnum

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

TemplateStatus = Literal["ok", "not_found", "unavailable"]


class TimeRangeSchema(BaseModel):
    start: str = Field(pattern=HHMM_PATTERN)
    end: str = Field(pattern=HHMM_PATTERN)


class DayScheduleSchema(BaseModel):
    available: bool = False
    slots: list[TimeRangeSchema] = Field(default_factory=list, max_length=24)


class AvailabilityTemplateUpsert(BaseModel):
    """Replace the acting mentor's weekly template."""

    weekly_schedule: dict[WeekdayEnum, DayScheduleSchema]
    blocked_dates: list[date] = Field(default_factory=list, max_length=366)
    session_duration: int = Field(default=15, ge=5, le=240)
    timezone: str = Field(default="UTC", max_length=64)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value


class AvailabilityTemplateRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    mentor_id: UUID
    weekly_schedule: dict[str, Any]
    blocked_dates: list[str]
    session_duration: int
    timezone: str
    updated_at: datetime


class SlotRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    slot_id: str
    start: datetime
    end: datetime
    available: bool


class SlotDayRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: date
    available_count: int
    slots: list[SlotRead]


class SlotListingRead(BaseModel):
    """Bookable slots of a mentor grouped by date."""

    model_config = ConfigDict(from_attributes=True)

    mentor_id: UUID
    template_status: TemplateStatus
    resolved: bool
    timezone: str
    session_duration: int
    days: list[SlotDayRead]
    warnings: list[str]
    message: str | None = None
