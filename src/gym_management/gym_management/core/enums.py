from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Vai trò người dùng dùng cho phân quyền."""

    ADMIN = "ADMIN"
    TRAINER = "TRAINER"
    MEMBER = "MEMBER"
    RECEPTION = "RECEPTION"
    GUEST = "GUEST"


class RegistrationStatus(str, Enum):
    """Trạng thái đăng ký gói tập / lớp học."""

    PENDING_PAYMENT = "PENDING_PAYMENT"
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    CANCELED = "CANCELED"


class RegistrationKind(str, Enum):
    PACKAGE = "PACKAGE"
    CLASS = "CLASS"
    WALKIN = "WALKIN"


class PaymentStatus(str, Enum):
    """Trạng thái thanh toán."""

    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    REFUND = "REFUND"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    VNPAY = "VNPAY"


class ClassStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class BookingStatus(str, Enum):
    """Trạng thái đặt chỗ lớp học."""

    BOOKED = "BOOKED"
    CANCELED = "CANCELED"
    ATTENDED = "ATTENDED"


class CheckInMethod(str, Enum):
    MANUAL = "MANUAL"
    FACE = "FACE"
    QR = "QR"


class NotificationChannel(str, Enum):
    APP = "APP"
    EMAIL = "EMAIL"
    SMS = "SMS"
