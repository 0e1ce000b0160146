from decimal import Decimal

from src.gym_management.gym_management.salary.calculator.tiered_calculator import TieredCommissionCalculator
from src.gym_management.gym_management.salary.config import CommissionConfig
from src.gym_management.gym_management.salary.model import TrainerMonthStats


def _calc(**kwargs):
    return TieredCommissionCalculator().calculate(TrainerMonthStats(**kwargs))


def test_package_revenue_with_both_bonuses():
    b = _calc(package_revenue=Decimal("8000000"), student_count=12, attendance_rate=Decimal("0.85"))

    assert b.package_commission == Decimal("400000")
    assert b.performance_bonus == Decimal("160000")
    assert b.attendance_bonus == Decimal("80000")
    assert b.final_commission == Decimal("640000")
    assert b.tier.rate == Decimal("0.05")
    assert not b.is_capped


def test_bonuses_need_thresholds():
    b = _calc(package_revenue=Decimal("8000000"), student_count=9, attendance_rate=Decimal("0.79"))

    assert b.performance_bonus == 0
    assert b.attendance_bonus == 0
    assert b.final_commission == Decimal("400000")


def test_tier_boundaries_are_half_open():
    cfg = CommissionConfig()
    assert cfg.tier_for(Decimal("9999999")).rate == Decimal("0.05")
    assert cfg.tier_for(Decimal("10000000")).rate == Decimal("0.07")
    assert cfg.tier_for(Decimal("20000000")).rate == Decimal("0.10")
    assert cfg.tier_for(Decimal("-5")).rate == Decimal("0.05")


def test_high_tier_uplift_goes_into_performance_bonus():
    b = _calc(package_revenue=Decimal("12000000"))

    # 12M * (0.07 - 0.05)
    assert b.performance_bonus == Decimal("240000")
    assert b.final_commission == Decimal("840000")


def test_total_is_capped_at_monthly_maximum():
    b = _calc(package_revenue=Decimal("100000000"))

    assert b.package_commission == Decimal("5000000")
    assert b.total_before_cap == Decimal("10000000")
    assert b.final_commission == Decimal("5000000")
    assert b.is_capped


def test_zero_revenue():
    b = _calc()

    assert b.total_revenue == 0
    assert b.final_commission == 0
    assert b.total_before_cap == 0


def test_personal_and_class_rates():
    b = _calc(personal_revenue=Decimal("2000000"), class_revenue=Decimal("1000000"))

    assert b.personal_training_commission == Decimal("200000")
    assert b.class_commission == Decimal("30000")
    assert b.final_commission == Decimal("230000")


def test_breakdown_to_dict():
    data = _calc(package_revenue=Decimal("1000000")).to_dict()
    assert data["final_commission"] == "50000"
    assert data["tier_rate"] == "0.05"
