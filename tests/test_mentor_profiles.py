from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest

from musicmentor.core.enums import NotificationTypeEnum, RoleEnum
from musicmentor.modules.mentors.schemas import MentorProfileCreate, MentorProfileUpdate
from musicmentor.modules.mentors.service import MentorsService
from musicmentor.modules.notifications.service import NotificationsService
from musicmentor.shared.exceptions import ConflictException, NotFoundException, UnauthorizedException


@dataclass
class FakeProfile:
    id: UUID
    user_id: UUID
    display_name: str
    specialty: str
    bio: str
    category: str
    experience_years: int
    rate: Decimal
    video_available: bool
    tags: list[str] = field(default_factory=list)
    is_active: bool = True


class FakeMentorsRepository:
    def __init__(self) -> None:
        self.profiles: dict[UUID, FakeProfile] = {}

    async def create_profile(self, **fields) -> FakeProfile:
        profile = FakeProfile(id=uuid4(), **fields)
        self.profiles[profile.id] = profile
        return profile

    async def get_profile_by_id(self, profile_id: UUID) -> FakeProfile | None:
        return self.profiles.get(profile_id)

    async def get_profile_by_user_id(self, user_id: UUID) -> FakeProfile | None:
        return next((profile for profile in self.profiles.values() if profile.user_id == user_id), None)

    async def list_active_profiles(
        self,
        category: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[FakeProfile], int]:
        items = [
            profile
            for profile in self.profiles.values()
            if profile.is_active and (category is None or profile.category == category)
        ]
        return items[offset : offset + limit], len(items)

    async def update_profile(self, profile: FakeProfile, **changes) -> FakeProfile:
        for key, value in changes.items():
            setattr(profile, key, value)
        return profile


@dataclass
class FakeNotification:
    id: UUID
    user_id: UUID
    type: NotificationTypeEnum
    title: str
    message: str
    booking_id: UUID | None = None
    action_url: str | None = None
    is_read: bool = False


class FakeNotificationsRepository:
    def __init__(self) -> None:
        self.items: dict[UUID, FakeNotification] = {}

    async def create_notification(self, **fields) -> FakeNotification:
        notification = FakeNotification(id=uuid4(), **fields)
        self.items[notification.id] = notification
        return notification

    async def get_notification_by_id(self, notification_id: UUID) -> FakeNotification | None:
        return self.items.get(notification_id)

    async def mark_read(self, notification: FakeNotification) -> FakeNotification:
        notification.is_read = True
        return notification

    async def count_unread(self, user_id: UUID) -> int:
        return sum(1 for item in self.items.values() if item.user_id == user_id and not item.is_read)


def make_actor(user_id: UUID, role: RoleEnum) -> SimpleNamespace:
    return SimpleNamespace(id=user_id, role=SimpleNamespace(name=role))


def profile_payload(user_id: UUID, **overrides) -> MentorProfileCreate:
    data = {
        "user_id": user_id,
        "display_name": "Sarah Chen",
        "specialty": "Guitar & Songwriting",
        "category": "  Guitar ",
        "rate": Decimal("35.00"),
        "tags": ["Acoustic", "  ", "Theory "],
    }
    data.update(overrides)
    return MentorProfileCreate(**data)


@pytest.mark.asyncio
async def test_mentor_creates_own_profile_with_normalized_category() -> None:
    repository = FakeMentorsRepository()
    mentor_id = uuid4()

    profile = await MentorsService(repository).create_profile(
        profile_payload(mentor_id),
        make_actor(mentor_id, RoleEnum.MENTOR),
    )

    assert profile.category == "guitar"
    assert profile.tags == ["Acoustic", "Theory"]
    assert profile.rate == Decimal("35.00")


@pytest.mark.asyncio
async def test_profile_creation_rules() -> None:
    service = MentorsService(FakeMentorsRepository())
    mentor_id = uuid4()

    with pytest.raises(UnauthorizedException):
        await service.create_profile(profile_payload(mentor_id), make_actor(mentor_id, RoleEnum.STUDENT))
    with pytest.raises(UnauthorizedException):
        await service.create_profile(profile_payload(mentor_id), make_actor(uuid4(), RoleEnum.MENTOR))

    await service.create_profile(profile_payload(mentor_id), make_actor(uuid4(), RoleEnum.ADMIN))
    with pytest.raises(ConflictException):
        await service.create_profile(profile_payload(mentor_id), make_actor(mentor_id, RoleEnum.MENTOR))


@pytest.mark.asyncio
async def test_deactivated_profile_is_hidden_from_listing_and_lookup() -> None:
    repository = FakeMentorsRepository()
    service = MentorsService(repository)
    mentor_id = uuid4()
    profile = await service.create_profile(profile_payload(mentor_id), make_actor(mentor_id, RoleEnum.MENTOR))
    other_id = uuid4()
    await service.create_profile(
        profile_payload(other_id, category="vocals"),
        make_actor(other_id, RoleEnum.MENTOR),
    )

    items, total = await service.list_profiles("GUITAR", limit=10, offset=0)
    assert (total, items[0].id) == (1, profile.id)

    await service.update_profile(
        profile.id,
        MentorProfileUpdate(is_active=False, rate=Decimal("40.00")),
        make_actor(mentor_id, RoleEnum.MENTOR),
    )

    assert profile.rate == Decimal("40.00")
    assert await service.list_profiles("guitar", limit=10, offset=0) == ([], 0)
    with pytest.raises(NotFoundException):
        await service.get_profile(profile.id)
    with pytest.raises(NotFoundException):
        await service.get_active_profile_for_user(mentor_id)


@pytest.mark.asyncio
async def test_only_owner_or_admin_updates_profile() -> None:
    service = MentorsService(FakeMentorsRepository())
    mentor_id = uuid4()
    profile = await service.create_profile(profile_payload(mentor_id), make_actor(mentor_id, RoleEnum.MENTOR))

    with pytest.raises(UnauthorizedException):
        await service.update_profile(profile.id, MentorProfileUpdate(bio="x"), make_actor(uuid4(), RoleEnum.MENTOR))

    updated = await service.update_profile(
        profile.id,
        MentorProfileUpdate(category=" Production "),
        make_actor(uuid4(), RoleEnum.ADMIN),
    )
    assert updated.category == "production"


@pytest.mark.asyncio
async def test_only_recipient_marks_notification_read() -> None:
    repository = FakeNotificationsRepository()
    service = NotificationsService(repository)
    user_id = uuid4()
    notification = await service.notify(
        user_id=user_id,
        type=NotificationTypeEnum.BOOKING_CONFIRMED,
        title="Booking Confirmed",
        message="Your session has been confirmed.",
    )

    with pytest.raises(UnauthorizedException):
        await service.mark_read(notification.id, make_actor(uuid4(), RoleEnum.STUDENT))
    assert await service.unread_count(make_actor(user_id, RoleEnum.STUDENT)) == 1

    await service.mark_read(notification.id, make_actor(user_id, RoleEnum.STUDENT))
    assert await service.unread_count(make_actor(user_id, RoleEnum.STUDENT)) == 0
    with pytest.raises(NotFoundException):
        await service.mark_read(uuid4(), make_actor(user_id, RoleEnum.STUDENT))
