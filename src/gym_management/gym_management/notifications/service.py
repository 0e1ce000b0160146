from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..core.enums import NotificationChannel
from .model import Notification
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    """In-app notifications. Delivery over email/SMS is handled outside this app."""

    def __init__(self, notifications: NotificationRepository):
        self._notifications = notifications

    def notify(
        self,
        user_id: Optional[int],
        title: str,
        body: str,
        channel: NotificationChannel = NotificationChannel.APP,
    ) -> Optional[int]:
        if user_id is None:
            return None
        notification_id = self._notifications.create(user_id=int(user_id), title=title, body=body, channel=channel)
        logger.info("Notification created", extra={"user_id": user_id, "title": title})
        return notification_id

    def list_for_user(self, user_id: int, *, unread_only: bool = False, limit: int = 50) -> Sequence[Notification]:
        return self._notifications.list_for_user(user_id=int(user_id), unread_only=unread_only, limit=limit)

    def mark_read(self, *, notification_id: int, user_id: int) -> bool:
        return self._notifications.mark_read(notification_id=int(notification_id), user_id=int(user_id))
