"""Mentor profile schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class MentorProfileCreate(BaseModel):
    """Create mentor profile request."""

    user_id: UUID
    display_name: str = Field(min_length=2, max_length=128)
    specialty: str = Field(default="", max_length=255)
    bio: str = Field(default="", max_length=5000)
    category: str = Field(default="general", min_length=1, max_length=64)
    experience_years: int = Field(default=0, ge=0, le=80)
    rate: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    video_available: bool = False
    tags: list[str] = Field(default_factory=list, max_length=20)


class MentorProfileUpdate(BaseModel):
    """Partial update; omitted fields keep their value."""

    display_name: str | None = Field(default=None, min_length=2, max_length=128)
    specialty: str | None = Field(default=None, max_length=255)
    bio: str | None = Field(default=None, max_length=5000)
    category: str | None = Field(default=None, min_length=1, max_length=64)
    experience_years: int | None = Field(default=None, ge=0, le=80)
    rate: Decimal | None = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    video_available: bool | None = None
    is_active: bool | None = None
    tags: list[str] | None = Field(default=None, max_length=20)


class MentorProfileRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    display_name: str
    specialty: str
    bio: str
    category: str
    experience_years: int
    rate: Decimal
    video_available: bool
    is_active: bool
    tags: list[str]
    created_at: datetime
    updated_at: datetime
