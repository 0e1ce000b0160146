from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional

from ..core.constants import RENEWAL_GRACE_DAYS
from ..core.enums import RegistrationKind, RegistrationStatus


@dataclass(frozen=True)
class Registration:
    """Đăng ký (DangKy): liên kết hội viên với một gói tập hoặc lớp học.

    Trạng thái chỉ đi một chiều: PENDING_PAYMENT -> ACTIVE -> EXPIRED/CANCELED
    (hoặc PENDING_PAYMENT -> CANCELED). Phí được chốt khi tạo.
    """

    registration_id: int
    member_id: int
    kind: RegistrationKind
    start_date: date
    end_date: date
    status: RegistrationStatus
    fee: Decimal
    package_id: Optional[int] = None
    class_id: Optional[int] = None
    status_detail: Optional[str] = None
    cancel_reason: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_package(self) -> bool:
        return self.package_id is not None

    @property
    def is_class(self) -> bool:
        return self.class_id is not None

    def can_renew(self, today: date) -> bool:
        if not self.is_package:
            return False
        if self.status == RegistrationStatus.ACTIVE:
            return True
        return self.status == RegistrationStatus.EXPIRED and self.end_date >= today - timedelta(days=RENEWAL_GRACE_DAYS)

    def days_until_expiry(self, today: date) -> int:
        return (self.end_date - today).days


@dataclass(frozen=True)
class NewRegistration:
    """Registration row to be inserted together with its first payment."""

    member_id: int
    kind: RegistrationKind
    start_date: date
    end_date: date
    fee: Decimal
    status: RegistrationStatus = RegistrationStatus.PENDING_PAYMENT
    package_id: Optional[int] = None
    class_id: Optional[int] = None
    status_detail: Optional[str] = None
