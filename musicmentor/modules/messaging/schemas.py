"""Messaging schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class MessageCreate(BaseModel):
    body: str = Field(min_length=1, max_length=2000)


class MessageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    booking_id: UUID
    sender_id: UUID
    receiver_id: UUID
    body: str
    is_read: bool
    created_at: datetime


class UnreadCountRead(BaseModel):
    unread: int
