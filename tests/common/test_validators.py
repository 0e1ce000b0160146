import pytest

from src.gym_management.gym_management.common.validators import normalize_phone, password_of_length, required_text
from src.gym_management.gym_management.core.exceptions import ValidationError


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("0901234567", "0901234567"),
        (" 090 123 4567 ", "0901234567"),
        ("+84 90-123-4567", "0901234567"),
        ("84901234567", "0901234567"),
    ],
)
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


@pytest.mark.parametrize("raw", ["12345", "090123456a", "1901234567", "+1 415 555 0100"])
def test_normalize_phone_rejects_non_local_numbers(raw):
    with pytest.raises(ValidationError, match="không hợp lệ"):
        normalize_phone(raw)


def test_normalize_phone_blank():
    assert normalize_phone("  ", required=False) is None
    assert normalize_phone(None, required=False) is None
    with pytest.raises(ValidationError, match="để trống"):
        normalize_phone("")


def test_required_text_and_password():
    assert required_text("  Khách A ", "Họ tên") == "Khách A"
    with pytest.raises(ValidationError, match="Họ tên không được để trống"):
        required_text(None, "Họ tên")

    assert password_of_length("123456", 6) == "123456"
    with pytest.raises(ValidationError, match="tối thiểu 6 ký tự"):
        password_of_length("12345", 6)
