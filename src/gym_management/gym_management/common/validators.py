"""Checks for the member and walk-in guest forms; messages go to the desk as-is."""

from __future__ import annotations

import re
from typing import Optional

from ..core.exceptions import ValidationError

_PHONE_SEPARATORS = re.compile(r"[\s.\-()]")
_LOCAL_PHONE = re.compile(r"^0\d{9}$")


def required_text(value: Optional[str], label: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{label} không được để trống")
    return text


def password_of_length(password: Optional[str], min_len: int) -> str:
    if password is None or len(password) < min_len:
        raise ValidationError(f"Mật khẩu tối thiểu {min_len} ký tự")
    return password


def normalize_phone(value: Optional[str], *, required: bool = True) -> Optional[str]:
    """'+84 90-123 4567' -> '0901234567'. Local numbers have 10 digits and start with 0."""
    digits = _PHONE_SEPARATORS.sub("", value or "")
    if not digits:
        if required:
            raise ValidationError("Số điện thoại không được để trống")
        return None
    if digits.startswith("+84"):
        digits = "0" + digits[3:]
    elif digits.startswith("84") and len(digits) == 11:
        digits = "0" + digits[2:]
    if not _LOCAL_PHONE.match(digits):
        raise ValidationError("Số điện thoại không hợp lệ")
    return digits
