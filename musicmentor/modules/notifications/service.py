"""Notifications business logic layer."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from musicmentor.core.database import get_db_session
from musicmentor.core.enums import NotificationTypeEnum
from musicmentor.modules.identity.models import User
from musicmentor.modules.notifications.models import Notification
from musicmentor.modules.notifications.repository import NotificationsRepository
from musicmentor.shared.exceptions import NotFoundException, UnauthorizedException


class NotificationsService:
    """Notifications domain service."""

    def __init__(self, repository: NotificationsRepository) -> None:
        self.repository = repository

    async def notify(
        self,
        user_id: UUID,
        type: NotificationTypeEnum,
        title: str,
        message: str,
        booking_id: UUID | None = None,
        action_url: str | None = None,
    ) -> Notification:
        """Store an unread notification for a user."""
        return await self.repository.create_notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            booking_id=booking_id,
            action_url=action_url,
        )

    async def list_my_notifications(
        self,
        actor: User,
        unread_only: bool,
        limit: int,
        offset: int,
    ) -> tuple[list[Notification], int]:
        """List notifications for current user, newest first."""
        return await self.repository.list_notifications_for_user(actor.id, unread_only, limit, offset)

    async def unread_count(self, actor: User) -> int:
        return await self.repository.count_unread(actor.id)

    async def mark_read(self, notification_id: UUID, actor: User) -> Notification:
        notification = await self.repository.get_notification_by_id(notification_id)
        if notification is None:
            raise NotFoundException("Notification not found")
        if notification.user_id != actor.id:
            raise UnauthorizedException("Only the recipient can update a notification")
        return await self.repository.mark_read(notification)

    async def mark_all_read(self, actor: User) -> int:
        return await self.repository.mark_all_read(actor.id)


async def get_notifications_service(session: AsyncSession = Depends(get_db_session)) -> NotificationsService:
    """Dependency provider for notifications service."""
    return NotificationsService(repository=NotificationsRepository(session))
