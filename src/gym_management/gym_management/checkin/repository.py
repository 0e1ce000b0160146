from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import CheckInMethod
from .model import CheckIn, FaceSample


class CheckInRepository(Protocol):
    def get(self, checkin_id: int) -> Optional[CheckIn]:
        raise NotImplementedError

    def get_for_day(self, member_id: int, day: date) -> Optional[CheckIn]:
        raise NotImplementedError

    def create_if_absent_for_day(
        self,
        *,
        member_id: int,
        checked_in_at: datetime,
        method: CheckInMethod,
        class_id: Optional[int] = None,
        confidence: Optional[float] = None,
        note: Optional[str] = None,
    ) -> Optional[int]:
        """Insert unless the member already checked in that day; None when one exists."""

        raise NotImplementedError

    def check_out(self, checkin_id: int, *, at: datetime) -> bool:
        raise NotImplementedError

    def list_for_day(self, day: date) -> Sequence[CheckIn]:
        raise NotImplementedError

    def list_for_member(self, member_id: int, *, limit: int = 50) -> Sequence[CheckIn]:
        raise NotImplementedError


class FaceSampleRepository(Protocol):
    def list_all(self) -> Sequence[FaceSample]:
        raise NotImplementedError

    def save(self, sample: FaceSample) -> None:
        raise NotImplementedError

    def delete(self, user_id: int) -> bool:
        raise NotImplementedError
