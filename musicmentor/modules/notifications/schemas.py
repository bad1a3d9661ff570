"""Notifications schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from musicmentor.core.enums import NotificationTypeEnum


class NotificationRead(BaseModel):
    """Notification response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    type: NotificationTypeEnum
    title: str
    message: str
    booking_id: UUID | None
    action_url: str | None
    is_read: bool
    created_at: datetime


class UnreadNotificationsRead(BaseModel):
    unread: int


class MarkAllReadResult(BaseModel):
    updated: int
