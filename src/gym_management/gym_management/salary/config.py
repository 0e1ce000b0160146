"""Commission rate table and base-salary scale for trainers."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from decimal import Decimal
from typing import Mapping, Optional, Sequence

from ..core.exceptions import ValidationError


def _dec(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


@dataclass(frozen=True)
class CommissionTier:
    """Revenue band ``[min_revenue, max_revenue)``; ``max_revenue=None`` is unbounded."""

    min_revenue: Decimal
    max_revenue: Optional[Decimal]
    rate: Decimal

    def contains(self, revenue: Decimal) -> bool:
        if revenue < self.min_revenue:
            return False
        return self.max_revenue is None or revenue < self.max_revenue


DEFAULT_TIERS: tuple[CommissionTier, ...] = (
    CommissionTier(Decimal("0"), Decimal("10000000"), Decimal("0.05")),
    CommissionTier(Decimal("10000000"), Decimal("20000000"), Decimal("0.07")),
    CommissionTier(Decimal("20000000"), None, Decimal("0.10")),
)

# (minimum years of service, monthly base salary), checked top-down.
DEFAULT_BASE_SALARY_SCALE: tuple[tuple[int, Decimal], ...] = (
    (5, Decimal("15000000")),
    (3, Decimal("12000000")),
    (1, Decimal("10000000")),
    (0, Decimal("8000000")),
)


def validate_tiers(tiers: Sequence[CommissionTier]) -> None:
    if not tiers:
        raise ValidationError("Cấu hình bậc hoa hồng trống")
    if tiers[0].min_revenue != 0:
        raise ValidationError("Bậc hoa hồng đầu tiên phải bắt đầu từ 0")
    for tier in tiers:
        if tier.rate < 0:
            raise ValidationError("Tỷ lệ hoa hồng không được âm")
        if tier.max_revenue is not None and tier.max_revenue <= tier.min_revenue:
            raise ValidationError("Bậc hoa hồng có khoảng doanh thu không hợp lệ")
    for lower, upper in zip(tiers, tiers[1:]):
        if lower.max_revenue is None or lower.max_revenue != upper.min_revenue:
            raise ValidationError("Các bậc hoa hồng phải liên tục, không chồng lấn")
    if tiers[-1].max_revenue is not None:
        raise ValidationError("Bậc hoa hồng cuối cùng phải không giới hạn")


@dataclass(frozen=True)
class CommissionConfig:
    package_commission_rate: Decimal = Decimal("0.05")
    class_commission_rate: Decimal = Decimal("0.03")
    personal_training_rate: Decimal = Decimal("0.10")
    performance_bonus_rate: Decimal = Decimal("0.02")
    attendance_bonus_rate: Decimal = Decimal("0.01")
    min_student_count_for_bonus: int = 10
    min_attendance_rate_for_bonus: Decimal = Decimal("0.80")
    max_commission_per_month: Decimal = Decimal("5000000")
    tiers: tuple[CommissionTier, ...] = field(default=DEFAULT_TIERS)

    def __post_init__(self) -> None:
        ordered = tuple(sorted(self.tiers, key=lambda t: t.min_revenue))
        validate_tiers(ordered)
        object.__setattr__(self, "tiers", ordered)

    def tier_for(self, revenue: Decimal) -> CommissionTier:
        """First tier (ascending) whose band contains ``revenue``."""
        revenue = max(_dec(revenue), Decimal("0"))
        for tier in self.tiers:
            if tier.contains(revenue):
                return tier
        # Unreachable for validated tiers.
        return self.tiers[-1]

    @classmethod
    def from_dict(cls, data: Optional[Mapping]) -> "CommissionConfig":
        """Build from settings; unknown keys are ignored, missing keys keep defaults."""
        if not data:
            return cls()
        kwargs: dict = {}
        for f in fields(cls):
            if f.name == "tiers" or f.name not in data:
                continue
            kwargs[f.name] = int(data[f.name]) if f.name == "min_student_count_for_bonus" else _dec(data[f.name])
        if data.get("tiers"):
            kwargs["tiers"] = tuple(
                CommissionTier(
                    min_revenue=_dec(t["min_revenue"]),
                    max_revenue=_dec(t["max_revenue"]) if t.get("max_revenue") is not None else None,
                    rate=_dec(t["rate"]),
                )
                for t in data["tiers"]
            )
        return cls(**kwargs)


def base_salary_for(years_of_service: int, scale: Sequence[tuple[int, Decimal]] = DEFAULT_BASE_SALARY_SCALE) -> Decimal:
    for min_years, amount in scale:
        if years_of_service >= min_years:
            return amount
    return scale[-1][1]
