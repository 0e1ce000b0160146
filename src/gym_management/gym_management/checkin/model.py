from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from ..core.enums import CheckInMethod


@dataclass(frozen=True)
class CheckIn:
    checkin_id: int
    member_id: int
    checked_in_at: datetime
    method: CheckInMethod = CheckInMethod.MANUAL
    class_id: Optional[int] = None
    checked_out_at: Optional[datetime] = None
    confidence: Optional[float] = None
    note: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.checked_out_at is None


@dataclass(frozen=True)
class FaceSample:
    user_id: int
    descriptor: Tuple[float, ...]


@dataclass(frozen=True)
class FaceMatch:
    user_id: int
    distance: float
    similarity: float
