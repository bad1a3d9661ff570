"""Video schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel

VideoStatus = Literal["not_requested", "not_created", "ready", "failed", "cleaned_up"]


class VideoRoomStatusRead(BaseModel):
    booking_id: UUID
    has_video: bool
    status: VideoStatus
    room_name: str | None = None
    meeting_url: str | None = None
    expires_at: datetime | None = None
    error: str | None = None


class VideoAccessRead(BaseModel):
    """Whether the session window is currently open."""

    can_access: bool
    reason: str | None = None
    session_start: datetime | None = None
    session_end: datetime | None = None
    time_status: str


class VideoTokenRead(BaseModel):
    token: str
    room_name: str
    meeting_url: str
    is_owner: bool
