"""Mentors repository layer."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from musicmentor.modules.mentors.models import MentorProfile


class MentorsRepository:
    """DB operations for mentor discovery and profiles."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_profile(
        self,
        user_id: UUID,
        display_name: str,
        specialty: str,
        bio: str,
        category: str,
        experience_years: int,
        rate: Decimal,
        video_available: bool,
        tags: list[str],
    ) -> MentorProfile:
        profile = MentorProfile(
            user_id=user_id,
            display_name=display_name,
            specialty=specialty,
            bio=bio,
            category=category,
            experience_years=experience_years,
            rate=rate,
            video_available=video_available,
            tags=tags,
        )
        self.session.add(profile)
        await self.session.flush()
        return profile

    async def get_profile_by_id(self, profile_id: UUID) -> MentorProfile | None:
        stmt = select(MentorProfile).where(MentorProfile.id == profile_id)
        return await self.session.scalar(stmt)

    async def get_profile_by_user_id(self, user_id: UUID) -> MentorProfile | None:
        stmt = select(MentorProfile).where(MentorProfile.user_id == user_id)
        return await self.session.scalar(stmt)

    async def list_active_profiles(
        self,
        category: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[MentorProfile], int]:
        base_stmt: Select[tuple[MentorProfile]] = select(MentorProfile).where(MentorProfile.is_active.is_(True))
        if category is not None:
            base_stmt = base_stmt.where(MentorProfile.category == category)

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(MentorProfile.display_name.asc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return items, total

    async def update_profile(self, profile: MentorProfile, **changes) -> MentorProfile:
        for key, value in changes.items():
            if value is not None:
                setattr(profile, key, value)
        await self.session.flush()
        return profile
