from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import BookingStatus


@dataclass(frozen=True)
class Booking:
    booking_id: int
    member_id: int
    class_id: int
    class_date: date
    status: BookingStatus
    note: Optional[str] = None
    created_at: Optional[datetime] = None
