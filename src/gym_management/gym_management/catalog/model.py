from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from typing import Optional

from ..core.constants import PERSONAL_TRAINING_KEYWORDS, PERSONAL_TRAINING_MAX_CAPACITY, WEEKDAY_LABELS
from ..core.enums import ClassStatus


@dataclass(frozen=True)
class Package:
    """Gói tập theo tháng."""

    package_id: int
    name: str
    duration_months: int
    price: Decimal
    max_sessions: Optional[int] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class GymClass:
    """Lớp học do một HLV phụ trách."""

    class_id: int
    name: str
    trainer_id: Optional[int]
    capacity: int
    start_time: time
    end_time: time
    weekdays: str
    status: ClassStatus = ClassStatus.OPEN
    custom_price: Optional[Decimal] = None
    course_start: Optional[date] = None
    course_end: Optional[date] = None
    description: Optional[str] = None

    @property
    def is_fixed_schedule(self) -> bool:
        return self.course_start is not None and self.course_end is not None

    @property
    def is_personal_training(self) -> bool:
        if self.capacity <= PERSONAL_TRAINING_MAX_CAPACITY:
            return True
        # "pt" must be a whole word; the other keywords may appear anywhere.
        name = self.name.lower()
        tokens = set(re.split(r"\W+", name))
        return any(k in tokens if k == "pt" else k in name for k in PERSONAL_TRAINING_KEYWORDS)

    def runs_on(self, day: date) -> bool:
        labels = {w.strip() for w in self.weekdays.split(",") if w.strip()}
        return WEEKDAY_LABELS[day.weekday()] in labels


@dataclass(frozen=True)
class Promotion:
    promotion_id: int
    code: str
    percent: Optional[int]
    start_date: date
    end_date: date
    is_active: bool = True
    description: Optional[str] = None

    def is_valid_on(self, day: date) -> bool:
        return self.is_active and self.start_date <= day <= self.end_date
