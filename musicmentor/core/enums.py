"""Core enums used across modules."""

from enum import StrEnum


class RoleEnum(StrEnum):
    """System roles."""

    STUDENT = "student"
    MENTOR = "mentor"
    ADMIN = "admin"


class WeekdayEnum(StrEnum):
    """Weekday keys of a weekly availability template, Monday first."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


class BookingStatusEnum(StrEnum):
    """Booking lifecycle status."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    DECLINED = "declined"
    COMPLETED = "completed"


class BookingTypeEnum(StrEnum):
    """How the booking time was chosen."""

    SCHEDULED = "scheduled"
    PREFERENCE = "preference"


class PreferredTimeEnum(StrEnum):
    """Coarse time preference for bookings without a concrete slot."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    FLEXIBLE = "flexible"


class VideoRoomStatusEnum(StrEnum):
    """Video room sub-record status."""

    READY = "ready"
    FAILED = "failed"
    CLEANED_UP = "cleaned_up"


class NotificationTypeEnum(StrEnum):
    """In-app notification kinds."""

    BOOKING_REQUEST = "booking_request"
    BOOKING_CONFIRMED = "booking_confirmed"
    BOOKING_DECLINED = "booking_declined"
    BOOKING_COMPLETED = "booking_completed"
    NEW_MESSAGE = "new_message"


class OutboxStatusEnum(StrEnum):
    """Outbox event status for integration publishing."""

    PENDING = "pending"
    PROCESSED = "processed"
    FAILED = "failed"
