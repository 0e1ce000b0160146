from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import NotificationChannel
from .model import Notification


class NotificationRepository(Protocol):
    def create(self, *, user_id: int, title: str, body: Optional[str], channel: NotificationChannel) -> int:
        raise NotImplementedError

    def list_for_user(self, *, user_id: int, unread_only: bool = False, limit: int = 50) -> Sequence[Notification]:
        raise NotImplementedError

    def mark_read(self, *, notification_id: int, user_id: int) -> bool:
        raise NotImplementedError
