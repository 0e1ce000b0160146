"""Fee rules for packages and classes. All amounts are whole VND."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ..catalog.model import GymClass, Package
from ..common.money import to_money
from ..core.constants import DEFAULT_CLASS_PRICE
from ..core.exceptions import ValidationError


def monthly_rate(package: Package) -> Decimal:
    if package.duration_months <= 0:
        raise ValidationError("Gói tập có thời hạn không hợp lệ")
    return package.price / Decimal(package.duration_months)


def package_fee(package: Package, months: int) -> Decimal:
    """List price when ``months`` matches the package duration, else monthly rate x months."""
    months = int(months)
    if months <= 0:
        raise ValidationError("Số tháng đăng ký phải lớn hơn 0")
    if months == package.duration_months:
        return to_money(package.price)
    return to_money(monthly_rate(package) * months)


def class_fee(gym_class: GymClass, default_price: Optional[Decimal] = None) -> Decimal:
    if gym_class.custom_price is not None:
        return to_money(gym_class.custom_price)
    return to_money(default_price if default_price is not None else DEFAULT_CLASS_PRICE)


def apply_discount(amount: Decimal, percent: int) -> Decimal:
    percent = max(0, min(int(percent or 0), 100))
    return to_money(amount * (Decimal(100) - percent) / Decimal(100))
