"""Mentor discovery and profile management."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from musicmentor.core.database import get_db_session
from musicmentor.core.enums import RoleEnum
from musicmentor.modules.identity.models import User
from musicmentor.modules.mentors.models import MentorProfile
from musicmentor.modules.mentors.repository import MentorsRepository
from musicmentor.modules.mentors.schemas import MentorProfileCreate, MentorProfileUpdate
from musicmentor.shared.exceptions import ConflictException, NotFoundException, UnauthorizedException


class MentorsService:
    """Mentors domain service."""

    def __init__(self, repository: MentorsRepository) -> None:
        self.repository = repository

    async def create_profile(self, payload: MentorProfileCreate, actor: User) -> MentorProfile:
        """Create mentor profile for the acting mentor (or any mentor when admin)."""
        if actor.role.name == RoleEnum.STUDENT:
            raise UnauthorizedException("Students cannot create mentor profiles")
        if actor.role.name != RoleEnum.ADMIN and actor.id != payload.user_id:
            raise UnauthorizedException("Only admin or owner can create profile")

        existing = await self.repository.get_profile_by_user_id(payload.user_id)
        if existing is not None:
            raise ConflictException("Mentor profile already exists for user")

        return await self.repository.create_profile(
            user_id=payload.user_id,
            display_name=payload.display_name,
            specialty=payload.specialty,
            bio=payload.bio,
            category=payload.category.strip().lower(),
            experience_years=payload.experience_years,
            rate=payload.rate,
            video_available=payload.video_available,
            tags=[tag.strip() for tag in payload.tags if tag.strip()],
        )

    async def update_profile(self, profile_id: UUID, payload: MentorProfileUpdate, actor: User) -> MentorProfile:
        """Update mentor profile.

        Rate changes only affect bookings created afterwards; existing bookings
        keep the rate captured at submission.
        """
        profile = await self.repository.get_profile_by_id(profile_id)
        if profile is None:
            raise NotFoundException("Mentor profile not found")
        if actor.role.name != RoleEnum.ADMIN and actor.id != profile.user_id:
            raise UnauthorizedException("Only admin or owner can update profile")

        changes = payload.model_dump(exclude_none=True)
        if "category" in changes:
            changes["category"] = changes["category"].strip().lower()
        return await self.repository.update_profile(profile, **changes)

    async def get_profile(self, profile_id: UUID) -> MentorProfile:
        profile = await self.repository.get_profile_by_id(profile_id)
        if profile is None or not profile.is_active:
            raise NotFoundException("Mentor profile not found")
        return profile

    async def get_active_profile_for_user(self, user_id: UUID) -> MentorProfile:
        """Return bookable profile of a mentor account."""
        profile = await self.repository.get_profile_by_user_id(user_id)
        if profile is None or not profile.is_active:
            raise NotFoundException("Mentor not found")
        return profile

    async def list_profiles(
        self,
        category: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[MentorProfile], int]:
        """List active mentors, optionally filtered by category."""
        normalized = category.strip().lower() if category else None
        return await self.repository.list_active_profiles(normalized, limit=limit, offset=offset)


async def get_mentors_service(session: AsyncSession = Depends(get_db_session)) -> MentorsService:
    """Dependency provider for mentors service."""
    return MentorsService(MentorsRepository(session))
