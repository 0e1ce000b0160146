from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import Registration


class RegistrationRepository(Protocol):
    def get(self, registration_id: int) -> Optional[Registration]:
        raise NotImplementedError

    def list_for_member(self, member_id: int, *, limit: int = 50) -> Sequence[Registration]:
        raise NotImplementedError

    def get_active_package(self, member_id: int) -> Optional[Registration]:
        raise NotImplementedError

    def get_pending_package(self, member_id: int) -> Optional[Registration]:
        """PENDING_PAYMENT package registration of the member, if any."""

        raise NotImplementedError

    def has_overlapping_class(self, *, member_id: int, class_id: int, start_date: date, end_date: date) -> bool:
        """PENDING_PAYMENT/ACTIVE registration of the member for this class overlapping [start, end)."""

        raise NotImplementedError

    def count_active_for_class(self, class_id: int, *, on: date) -> int:
        raise NotImplementedError

    def cancel(self, registration_id: int, *, reason: str, detail: str) -> bool:
        """Move PENDING_PAYMENT/ACTIVE -> CANCELED. False when already terminal."""

        raise NotImplementedError

    def expire_ended_before(self, day: date) -> Sequence[Registration]:
        """Move ACTIVE registrations with end_date < day to EXPIRED, returning them."""

        raise NotImplementedError

    def list_walkins_on(self, day: date) -> Sequence[Registration]:
        raise NotImplementedError
