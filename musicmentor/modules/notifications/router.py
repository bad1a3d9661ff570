"""Notifications API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from musicmentor.modules.identity.service import get_current_user
from musicmentor.modules.notifications.schemas import (
    MarkAllReadResult,
    NotificationRead,
    UnreadNotificationsRead,
)
from musicmentor.modules.notifications.service import NotificationsService, get_notifications_service
from musicmentor.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/my", response_model=Page[NotificationRead])
async def list_my_notifications(
    unread_only: bool = Query(default=False),
    pagination=Depends(get_pagination_params),
    service: NotificationsService = Depends(get_notifications_service),
    current_user=Depends(get_current_user),
) -> Page[NotificationRead]:
    """List notifications for current user."""
    items, total = await service.list_my_notifications(
        current_user,
        unread_only,
        pagination.limit,
        pagination.offset,
    )
    serialized = [NotificationRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/unread-count", response_model=UnreadNotificationsRead)
async def unread_count(
    service: NotificationsService = Depends(get_notifications_service),
    current_user=Depends(get_current_user),
) -> UnreadNotificationsRead:
    return UnreadNotificationsRead(unread=await service.unread_count(current_user))


@router.post("/{notification_id}/read", response_model=NotificationRead)
async def mark_read(
    notification_id: UUID,
    service: NotificationsService = Depends(get_notifications_service),
    current_user=Depends(get_current_user),
) -> NotificationRead:
    notification = await service.mark_read(notification_id, current_user)
    return NotificationRead.model_validate(notification)


@router.post("/read-all", response_model=MarkAllReadResult)
async def mark_all_read(
    service: NotificationsService = Depends(get_notifications_service),
    current_user=Depends(get_current_user),
) -> MarkAllReadResult:
    """Mark every notification of the current user as read."""
    return MarkAllReadResult(updated=await service.mark_all_read(current_user))
