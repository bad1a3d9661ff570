"""Messaging API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status

from musicmentor.modules.identity.service import get_current_user
from musicmentor.modules.messaging.schemas import MessageCreate, MessageRead, UnreadCountRead
from musicmentor.modules.messaging.service import MessagingService, get_messaging_service

router = APIRouter(prefix="/messages", tags=["messages"])


@router.post("/bookings/{booking_id}", response_model=MessageRead, status_code=status.HTTP_201_CREATED)
async def send_message(
    booking_id: UUID,
    payload: MessageCreate,
    service: MessagingService = Depends(get_messaging_service),
    current_user=Depends(get_current_user),
) -> MessageRead:
    """Send a message to the other party of a booking."""
    message = await service.send_message(booking_id, payload, current_user)
    return MessageRead.model_validate(message)


@router.get("/bookings/{booking_id}", response_model=list[MessageRead])
async def list_messages(
    booking_id: UUID,
    service: MessagingService = Depends(get_messaging_service),
    current_user=Depends(get_current_user),
) -> list[MessageRead]:
    messages = await service.list_messages(booking_id, current_user)
    return [MessageRead.model_validate(item) for item in messages]


@router.post("/bookings/{booking_id}/read", response_model=UnreadCountRead)
async def mark_read(
    booking_id: UUID,
    service: MessagingService = Depends(get_messaging_service),
    current_user=Depends(get_current_user),
) -> UnreadCountRead:
    """Mark received messages as read; returns the remaining unread count."""
    await service.mark_read(booking_id, current_user)
    return UnreadCountRead(unread=0)


@router.get("/bookings/{booking_id}/unread-count", response_model=UnreadCountRead)
async def unread_count(
    booking_id: UUID,
    service: MessagingService = Depends(get_messaging_service),
    current_user=Depends(get_current_user),
) -> UnreadCountRead:
    return UnreadCountRead(unread=await service.unread_count(booking_id, current_user))
