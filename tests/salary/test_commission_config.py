from decimal import Decimal

import pytest

from src.gym_management.gym_management.core.exceptions import ValidationError
from src.gym_management.gym_management.salary.config import (
    CommissionConfig,
    CommissionTier,
    base_salary_for,
)


def _tier(lo, hi, rate):
    return CommissionTier(Decimal(lo), Decimal(hi) if hi is not None else None, Decimal(rate))


def test_tiers_are_sorted():
    cfg = CommissionConfig(tiers=(_tier("100", None, "0.1"), _tier("0", "100", "0.05")))
    assert [t.min_revenue for t in cfg.tiers] == [0, 100]


@pytest.mark.parametrize(
    "tiers",
    [
        (),
        (_tier("10", None, "0.05"),),
        (_tier("0", "100", "0.05"), _tier("150", None, "0.07")),
        (_tier("0", "100", "0.05"), _tier("100", "200", "0.07")),
        (_tier("0", None, "-0.01"),),
    ],
)
def test_invalid_tiers_are_rejected(tiers):
    with pytest.raises(ValidationError):
        CommissionConfig(tiers=tiers)


def test_from_dict_overrides_and_keeps_defaults():
    cfg = CommissionConfig.from_dict(
        {
            "package_commission_rate": "0.06",
            "min_student_count_for_bonus": "5",
            "unknown": 1,
            "tiers": [
                {"min_revenue": 0, "max_revenue": 5000000, "rate": "0.06"},
                {"min_revenue": 5000000, "rate": "0.08"},
            ],
        }
    )

    assert cfg.package_commission_rate == Decimal("0.06")
    assert cfg.min_student_count_for_bonus == 5
    assert cfg.class_commission_rate == Decimal("0.03")
    assert cfg.tier_for(Decimal("6000000")).rate == Decimal("0.08")


def test_from_empty_dict():
    assert CommissionConfig.from_dict(None) == CommissionConfig()


def test_base_salary_scale():
    assert base_salary_for(0) == Decimal("8000000")
    assert base_salary_for(2) == Decimal("10000000")
    assert base_salary_for(3) == Decimal("12000000")
    assert base_salary_for(7) == Decimal("15000000")
