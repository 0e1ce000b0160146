from __future__ import annotations

from decimal import Decimal

from ...common.money import to_money
from ..model import CommissionBreakdown, TrainerMonthStats
from .base import CommissionCalculator

_ZERO = Decimal("0")


def _non_negative(value: Decimal) -> Decimal:
    return to_money(max(value, _ZERO))


class TieredCommissionCalculator(CommissionCalculator):
    """Standard rule.

    - package / class / personal revenue times their own rates
    - performance bonus (enough distinct students) plus the tier uplift
      ``revenue * (tier.rate - package rate)`` for high performers
    - attendance bonus (average attendance at or above the threshold)
    - sum capped at the monthly maximum
    """

    def calculate(self, stats: TrainerMonthStats) -> CommissionBreakdown:
        cfg = self.config
        package_revenue = max(stats.package_revenue, _ZERO)
        class_revenue = max(stats.class_revenue, _ZERO)
        personal_revenue = max(stats.personal_revenue, _ZERO)
        revenue = package_revenue + class_revenue + personal_revenue

        tier = cfg.tier_for(revenue)

        package_commission = _non_negative(package_revenue * cfg.package_commission_rate)
        class_commission = _non_negative(class_revenue * cfg.class_commission_rate)
        personal_commission = _non_negative(personal_revenue * cfg.personal_training_rate)

        performance = _ZERO
        if stats.student_count >= cfg.min_student_count_for_bonus:
            performance += revenue * cfg.performance_bonus_rate
        performance += revenue * max(tier.rate - cfg.package_commission_rate, _ZERO)
        performance_bonus = _non_negative(performance)

        attendance_bonus = _ZERO
        if Decimal(str(stats.attendance_rate)) >= cfg.min_attendance_rate_for_bonus:
            attendance_bonus = _non_negative(revenue * cfg.attendance_bonus_rate)

        total = package_commission + class_commission + personal_commission + performance_bonus + attendance_bonus
        final = min(total, to_money(cfg.max_commission_per_month))

        return CommissionBreakdown(
            package_commission=package_commission,
            class_commission=class_commission,
            personal_training_commission=personal_commission,
            performance_bonus=performance_bonus,
            attendance_bonus=attendance_bonus,
            total_revenue=to_money(revenue),
            tier=tier,
            total_before_cap=total,
            final_commission=final,
            student_count=stats.student_count,
            attendance_rate=Decimal(str(stats.attendance_rate)),
        )
