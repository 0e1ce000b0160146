from datetime import date
from decimal import Decimal

import pytest

from src.gym_management.gym_management.common.datetime_utils import add_months, month_key, month_range, parse_month
from src.gym_management.gym_management.common.money import format_vnd, to_money
from src.gym_management.gym_management.core.exceptions import ValidationError


@pytest.mark.parametrize(
    "start,months,expected",
    [
        (date(2024, 1, 31), 1, date(2024, 2, 29)),
        (date(2023, 1, 31), 1, date(2023, 2, 28)),
        (date(2024, 11, 15), 3, date(2025, 2, 15)),
        (date(2024, 3, 31), -1, date(2024, 2, 29)),
    ],
)
def test_add_months(start, months, expected):
    assert add_months(start, months) == expected


def test_parse_month():
    assert parse_month(" 2024-05 ") == (2024, 5)
    for bad in ("2024-13", "2024-5", "", None):
        with pytest.raises(ValidationError):
            parse_month(bad)


def test_month_range_and_key():
    assert month_range("2024-02") == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_key(date(2024, 6, 3)) == "2024-06"


def test_money_rounding_and_format():
    assert to_money("1499.5") == Decimal("1500")
    assert to_money(0.4) == Decimal("0")
    assert format_vnd(Decimal("1500000")) == "1,500,000"
    assert format_vnd(0) == "0"
