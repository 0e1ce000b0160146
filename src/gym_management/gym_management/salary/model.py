from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from .config import CommissionTier


@dataclass(frozen=True)
class SalaryRecord:
    """Bảng lương (BangLuong) của một HLV trong một tháng. paid_on=None nghĩa là chưa trả."""

    salary_id: int
    trainer_id: int
    month: str
    base_salary: Decimal
    commission: Decimal
    paid_on: Optional[date] = None
    note: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def total(self) -> Decimal:
        return self.base_salary + self.commission

    @property
    def is_paid(self) -> bool:
        return self.paid_on is not None


@dataclass(frozen=True)
class NewSalaryRecord:
    trainer_id: int
    month: str
    base_salary: Decimal
    commission: Decimal
    note: Optional[str] = None


@dataclass(frozen=True)
class TrainerMonthStats:
    """Revenue and activity attributed to one trainer for one month."""

    package_revenue: Decimal = Decimal("0")
    class_revenue: Decimal = Decimal("0")
    personal_revenue: Decimal = Decimal("0")
    student_count: int = 0
    attendance_rate: Decimal = Decimal("0")

    @property
    def total_revenue(self) -> Decimal:
        return self.package_revenue + self.class_revenue + self.personal_revenue


@dataclass(frozen=True)
class CommissionBreakdown:
    package_commission: Decimal
    class_commission: Decimal
    personal_training_commission: Decimal
    performance_bonus: Decimal
    attendance_bonus: Decimal
    total_revenue: Decimal
    tier: CommissionTier
    total_before_cap: Decimal
    final_commission: Decimal
    student_count: int = 0
    attendance_rate: Decimal = Decimal("0")

    @property
    def is_capped(self) -> bool:
        return self.final_commission < self.total_before_cap

    def to_dict(self) -> dict:
        return {
            "package_commission": str(self.package_commission),
            "class_commission": str(self.class_commission),
            "personal_training_commission": str(self.personal_training_commission),
            "performance_bonus": str(self.performance_bonus),
            "attendance_bonus": str(self.attendance_bonus),
            "total_revenue": str(self.total_revenue),
            "tier_rate": str(self.tier.rate),
            "total_before_cap": str(self.total_before_cap),
            "final_commission": str(self.final_commission),
            "student_count": self.student_count,
            "attendance_rate": str(self.attendance_rate),
        }
