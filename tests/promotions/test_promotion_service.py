from datetime import date
from decimal import Decimal

import pytest

TODAY = date(2024, 6, 1)


@pytest.mark.parametrize(
    "kwargs,code,message",
    [
        ({}, "", "Vui lòng nhập mã khuyến mãi"),
        ({}, "NOPE", "Mã khuyến mãi không tồn tại"),
        ({"active": False}, "WELCOME10", "Mã khuyến mãi đã bị vô hiệu hóa"),
        ({"start": date(2024, 7, 1)}, "WELCOME10", "Mã khuyến mãi chưa có hiệu lực"),
        ({"end": date(2024, 5, 31)}, "WELCOME10", "Mã khuyến mãi đã hết hạn"),
    ],
)
def test_invalid_codes(world, kwargs, code, message):
    world.add_promotion(**kwargs)

    check = world.promotions.validate_code(code, today=TODAY)

    assert check.valid is False
    assert check.message == message
    assert check.percent == 0


def test_valid_code_is_case_insensitive(world):
    world.add_promotion()

    check = world.promotions.validate_code(" welcome10 ", today=TODAY)

    assert check.valid is True
    assert check.percent == 10
    assert check.message == "Áp dụng giảm 10%"


def test_discount_for(world):
    world.add_promotion(percent=15)

    assert world.promotions.discount_for(1, Decimal("1500000"), today=TODAY) == Decimal("225000")
    assert world.promotions.discount_for(None, Decimal("1500000"), today=TODAY) == 0
    assert world.promotions.discount_for(1, Decimal("1500000"), today=date(2025, 1, 1)) == 0


def test_deactivate_expired(world):
    world.add_promotion(1, end=date(2024, 5, 31))
    world.add_promotion(2, code="SUMMER", end=date(2024, 8, 31))

    assert world.promotions.deactivate_expired(today=TODAY) == 1
    assert world.catalog.promotions[1].is_active is False
    assert world.catalog.promotions[2].is_active is True
