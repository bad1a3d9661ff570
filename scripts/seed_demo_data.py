"""Seed idempotent demo data for local/non-production environments."""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from musicmentor.core.config import get_settings
from musicmentor.core.database import SessionLocal, close_engine
from musicmentor.core.enums import RoleEnum
from musicmentor.core.security import hash_password, verify_password
from musicmentor.modules.availability.engine import (
    group_by_date,
    resolve_availability,
    schedule_to_mapping,
    template_from_mapping,
)
from musicmentor.modules.availability.repository import AvailabilityRepository
from musicmentor.modules.availability.selection import BookingSelection
from musicmentor.modules.availability.service import build_candidate_slots
from musicmentor.modules.booking.models import Booking
from musicmentor.modules.booking.repository import BookingRepository
from musicmentor.modules.booking.service import BookingService
from musicmentor.modules.identity.models import User
from musicmentor.modules.identity.repository import IdentityRepository
from musicmentor.modules.identity.service import IdentityService
from musicmentor.modules.mentors.models import MentorProfile
from musicmentor.modules.mentors.repository import MentorsRepository
from musicmentor.modules.outbox.repository import OutboxRepository
from musicmentor.modules.video.client import get_video_client
from musicmentor.modules.video.repository import VideoRoomRepository
from musicmentor.modules.video.service import VideoRoomService
from musicmentor.shared.exceptions import AppException
from musicmentor.shared.utils import utc_now

DEMO_PASSWORD = "DemoPass123!"
DEMO_STUDENT_EMAIL = "demo-student@musicmentor.dev"


@dataclass(frozen=True, slots=True)
class DemoMentor:
    email: str
    name: str
    specialty: str
    category: str
    experience_years: int
    rate: Decimal
    tags: tuple[str, ...]
    timezone: str
    # Numeric weekday keys, Sunday == 0.
    weekly_schedule: dict[str, list[dict[str, str]]]


DEMO_MENTORS = (
    DemoMentor(
        email="sarah@musicmentor.dev",
        name="Sarah Chen",
        specialty="Guitar & Songwriting",
        category="guitar",
        experience_years=8,
        rate=Decimal("35.00"),
        tags=("Acoustic", "Electric", "Songwriting", "Theory"),
        timezone="America/New_York",
        weekly_schedule={
            "1": [{"start": "14:00", "end": "18:00"}],
            "3": [{"start": "10:00", "end": "14:00"}],
            "5": [{"start": "16:00", "end": "20:00"}],
        },
    ),
    DemoMentor(
        email="marcus@musicmentor.dev",
        name="Marcus Johnson",
        specialty="Music Production & Mixing",
        category="production",
        experience_years=12,
        rate=Decimal("55.00"),
        tags=("Logic Pro", "Ableton", "Mixing", "Mastering"),
        timezone="America/Los_Angeles",
        weekly_schedule={
            "2": [{"start": "19:00", "end": "22:00"}],
            "4": [{"start": "18:00", "end": "21:00"}],
            "6": [{"start": "09:00", "end": "12:00"}],
        },
    ),
    DemoMentor(
        email="elena@musicmentor.dev",
        name="Elena Rodriguez",
        specialty="Vocal Technique & Performance",
        category="vocals",
        experience_years=6,
        rate=Decimal("40.00"),
        tags=("Classical", "Pop", "Breathing", "Performance"),
        timezone="America/Chicago",
        weekly_schedule={
            "1": [{"start": "17:00", "end": "20:00"}],
            "2": [{"start": "17:00", "end": "20:00"}],
            "4": [{"start": "17:00", "end": "20:00"}],
        },
    ),
)


@dataclass(slots=True)
class SeedStats:
    users_created: int = 0
    users_updated: int = 0
    profiles_created: int = 0
    templates_written: int = 0
    demo_booking_id: str | None = None


async def _ensure_user(
    session: AsyncSession,
    *,
    email: str,
    display_name: str,
    role_name: RoleEnum,
    timezone: str,
) -> tuple[User, bool]:
    repository = IdentityRepository(session)
    role = await repository.get_role_by_name(role_name)
    if role is None:
        raise RuntimeError(f"Role {role_name} was not found after ensure_default_roles")

    user = await repository.get_user_by_email(email)
    if user is None:
        user = await repository.create_user(
            email=email,
            display_name=display_name,
            password_hash=hash_password(DEMO_PASSWORD),
            timezone=timezone,
            role_id=role.id,
        )
        return user, True

    if not verify_password(DEMO_PASSWORD, user.password_hash):
        user.password_hash = hash_password(DEMO_PASSWORD)
    user.display_name = display_name
    user.role_id = role.id
    user.timezone = timezone
    user.is_active = True
    await session.flush()
    await session.refresh(user, attribute_names=["role"])
    return user, False


async def _ensure_mentor_profile(session: AsyncSession, user: User, mentor: DemoMentor) -> bool:
    repository = MentorsRepository(session)
    profile = await session.scalar(select(MentorProfile).where(MentorProfile.user_id == user.id))
    if profile is None:
        await repository.create_profile(
            user_id=user.id,
            display_name=mentor.name,
            specialty=mentor.specialty,
            bio=f"{mentor.name} coaches {mentor.specialty.lower()} in short focused sessions.",
            category=mentor.category,
            experience_years=mentor.experience_years,
            rate=mentor.rate,
            video_available=True,
            tags=list(mentor.tags),
        )
        return True

    await repository.update_profile(
        profile,
        display_name=mentor.name,
        specialty=mentor.specialty,
        category=mentor.category,
        experience_years=mentor.experience_years,
        rate=mentor.rate,
        video_available=True,
        is_active=True,
        tags=list(mentor.tags),
    )
    return False


async def _write_template(session: AsyncSession, user: User, mentor: DemoMentor) -> None:
    template = template_from_mapping(mentor.weekly_schedule, timezone=mentor.timezone)
    await AvailabilityRepository(session).upsert_template(
        mentor_id=user.id,
        weekly_schedule=schedule_to_mapping(template),
        blocked_dates=[],
        session_duration=template.session_duration,
        timezone=mentor.timezone,
    )


async def _ensure_demo_booking(session: AsyncSession, student: User, mentor_user: User) -> Booking | None:
    """Book the first free slot of a mentor the way the booking page does."""
    booking_repository = BookingRepository(session)
    availability_repository = AvailabilityRepository(session)

    existing, _ = await booking_repository.list_bookings(student.id, RoleEnum.STUDENT, None, limit=1, offset=0)
    if existing:
        return existing[0]

    availability = await availability_repository.get_template(mentor_user.id)
    if availability is None:
        return None
    slots = resolve_availability(
        build_candidate_slots(availability, utc_now()),
        await booking_repository.list_active_for_mentor(mentor_user.id),
    )

    selection = BookingSelection(mentor_id=mentor_user.id, days=group_by_date(slots))
    if not selection.available_dates:
        return None
    selection.choose_date(selection.available_dates[0])
    first_free = next(slot for slot in selection.times_for_selected_date() if slot.available)
    selection.choose_slot(first_free)
    selection.set_details("Hi! I'd love help getting started.", video_preferred=True)

    service = BookingService(
        booking_repository=booking_repository,
        availability_repository=availability_repository,
        mentors_repository=MentorsRepository(session),
        outbox_repository=OutboxRepository(session),
        video_service=VideoRoomService(VideoRoomRepository(session), get_video_client()),
    )
    return await service.create_booking(selection.to_request(), student)


async def _run_seed(*, allow_production: bool, with_booking: bool) -> SeedStats:
    settings = get_settings()
    app_env = settings.app_env.strip().lower()
    if app_env in {"production", "prod"} and not allow_production:
        raise RuntimeError(
            "Refusing to seed demo data in production. "
            "Re-run with --allow-production only if you are absolutely sure.",
        )

    stats = SeedStats()

    async with SessionLocal() as session:
        try:
            await IdentityService(IdentityRepository(session)).ensure_default_roles()

            mentor_users: list[User] = []
            for mentor in DEMO_MENTORS:
                user, created = await _ensure_user(
                    session,
                    email=mentor.email,
                    display_name=mentor.name,
                    role_name=RoleEnum.MENTOR,
                    timezone=mentor.timezone,
                )
                stats.users_created += int(created)
                stats.users_updated += int(not created)
                stats.profiles_created += int(await _ensure_mentor_profile(session, user, mentor))
                await _write_template(session, user, mentor)
                stats.templates_written += 1
                mentor_users.append(user)

            student, created = await _ensure_user(
                session,
                email=DEMO_STUDENT_EMAIL,
                display_name="Demo Student",
                role_name=RoleEnum.STUDENT,
                timezone="UTC",
            )
            stats.users_created += int(created)
            stats.users_updated += int(not created)

            if with_booking:
                booking = await _ensure_demo_booking(session, student, mentor_users[0])
                stats.demo_booking_id = str(booking.id) if booking is not None else None

            await session.commit()
        except (SQLAlchemyError, AppException):
            await session.rollback()
            raise

    return stats


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Seed idempotent demo data for MusicMentor (mentors, profiles, weekly availability).",
    )
    parser.add_argument(
        "--allow-production",
        action="store_true",
        help="Allow seeding even when APP_ENV is production/prod.",
    )
    parser.add_argument(
        "--with-booking",
        action="store_true",
        help="Also request the first free slot of the first mentor as the demo student.",
    )
    return parser


def _print_summary(stats: SeedStats) -> None:
    print("Demo seed completed.")
    print(f"- Users created: {stats.users_created}")
    print(f"- Users updated: {stats.users_updated}")
    print(f"- Mentor profiles created: {stats.profiles_created}")
    print(f"- Availability templates written: {stats.templates_written}")
    print(f"- Demo booking id: {stats.demo_booking_id}")
    print("")
    print("Demo credentials (non-production only):")
    for mentor in DEMO_MENTORS:
        print(f"- mentor:  {mentor.email} / {DEMO_PASSWORD}")
    print(f"- student: {DEMO_STUDENT_EMAIL} / {DEMO_PASSWORD}")


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()

    try:
        stats = asyncio.run(_run_seed(allow_production=args.allow_production, with_booking=args.with_booking))
    except (RuntimeError, SQLAlchemyError, AppException) as exc:
        print(f"Demo seed failed: {exc}")
        return 1
    finally:
        asyncio.run(close_engine())

    _print_summary(stats)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
