"""Three-step slot picking: date, then time, then booking details."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum
from uuid import UUID

from musicmentor.modules.availability.engine import CandidateSlot, SlotDay
from musicmentor.modules.booking.schemas import TimeSlotBookingCreate


class SelectionStage(StrEnum):
    DATE = "date"
    TIME = "time"
    DETAILS = "details"


class SelectionError(ValueError):
    """Raised when a pick is not valid for the current stage."""


@dataclass
class BookingSelection:
    """Client-side state of a student picking a slot from grouped days."""

    mentor_id: UUID
    days: list[SlotDay]
    stage: SelectionStage = SelectionStage.DATE
    selected_date: date | None = None
    selected_slot: CandidateSlot | None = None
    message: str = ""
    video_preferred: bool = False
    _by_date: dict[date, SlotDay] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._by_date = {day.date: day for day in self.days}

    @property
    def available_dates(self) -> list[date]:
        return [day.date for day in self.days if day.available_count > 0]

    def times_for_selected_date(self) -> tuple[CandidateSlot, ...]:
        if self.selected_date is None:
            return ()
        return self._by_date[self.selected_date].slots

    def choose_date(self, day: date) -> None:
        """Pick a date; any previously chosen time is dropped."""
        if day not in self._by_date:
            raise SelectionError(f"No slots offered on {day}")
        self.selected_date = day
        self.selected_slot = None
        self.stage = SelectionStage.TIME

    def choose_slot(self, slot: CandidateSlot) -> None:
        if self.selected_date is None:
            raise SelectionError("Choose a date first")
        if slot.date != self.selected_date or slot not in self._by_date[self.selected_date].slots:
            raise SelectionError("Slot does not belong to the chosen date")
        if not slot.available:
            raise SelectionError("Slot is already taken")
        self.selected_slot = slot
        self.stage = SelectionStage.DETAILS

    def back(self) -> None:
        if self.stage == SelectionStage.DETAILS:
            self.selected_slot = None
            self.stage = SelectionStage.TIME
        elif self.stage == SelectionStage.TIME:
            self.selected_date = None
            self.selected_slot = None
            self.stage = SelectionStage.DATE

    def set_details(self, message: str, video_preferred: bool = False) -> None:
        self.message = message
        self.video_preferred = video_preferred

    def to_request(self) -> TimeSlotBookingCreate:
        """Build the booking request for the chosen slot."""
        if self.selected_slot is None:
            raise SelectionError("Choose a time first")
        if not self.message.strip():
            raise SelectionError("Please add a message for the mentor")
        return TimeSlotBookingCreate(
            mentor_id=self.mentor_id,
            scheduled_start=self.selected_slot.start,
            message=self.message.strip(),
            video_preferred=self.video_preferred,
        )
