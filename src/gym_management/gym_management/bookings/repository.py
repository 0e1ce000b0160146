from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import Booking


class BookingRepository(Protocol):
    def get(self, booking_id: int) -> Optional[Booking]:
        raise NotImplementedError

    def list_for_member(self, member_id: int, *, from_date: Optional[date] = None) -> Sequence[Booking]:
        raise NotImplementedError

    def list_for_class(self, class_id: int, day: date) -> Sequence[Booking]:
        raise NotImplementedError

    def exists_booked(self, *, member_id: int, class_id: int, day: date) -> bool:
        raise NotImplementedError

    def count_booked(self, class_id: int, day: date) -> int:
        raise NotImplementedError

    def book_if_available(
        self, *, member_id: int, class_id: int, day: date, capacity: int, note: Optional[str] = None
    ) -> Optional[int]:
        """Insert a BOOKED row only while fewer than ``capacity`` exist; None when full."""

        raise NotImplementedError

    def cancel(self, booking_id: int) -> bool:
        raise NotImplementedError

    def mark_attended(self, *, member_id: int, class_id: int, day: date) -> bool:
        raise NotImplementedError
