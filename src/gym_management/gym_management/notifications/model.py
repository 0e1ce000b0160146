from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import NotificationChannel


@dataclass(frozen=True)
class Notification:
    notification_id: int
    user_id: int
    title: str
    body: Optional[str]
    channel: NotificationChannel
    is_read: bool
    created_at: datetime
