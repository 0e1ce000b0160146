from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import PaymentMethod, PaymentStatus
from ..registrations.model import NewRegistration


@dataclass(frozen=True)
class Payment:
    """Thanh toán (ThanhToan). Trạng thái: PENDING -> SUCCESS -> (REFUND)."""

    payment_id: int
    registration_id: Optional[int]
    amount: Decimal
    method: PaymentMethod
    status: PaymentStatus
    paid_at: Optional[datetime] = None
    note: Optional[str] = None
    created_at: Optional[datetime] = None
    renewal_months: Optional[int] = None


@dataclass(frozen=True)
class NewPayment:
    amount: Decimal
    method: PaymentMethod
    note: Optional[str] = None
    renewal_months: Optional[int] = None


@dataclass(frozen=True)
class Settlement:
    """All writes of one settlement; the repository applies them in a single transaction.

    - ``activate_detail``: flip the linked PENDING_PAYMENT registration to ACTIVE.
    - ``extend_to``: push the end date of the linked ACTIVE registration (renewal).
    - ``renewal``: insert a fresh ACTIVE registration and re-link the payment to it
      (renewal of an EXPIRED registration).
    - ``package_member_id``: the settlement makes a package ACTIVE for this member; it is
      refused when the member already holds another ACTIVE package.

    A registration write that matches no row rolls the whole settlement back.
    """

    payment_id: int
    paid_at: datetime
    registration_id: Optional[int] = None
    activate_detail: Optional[str] = None
    extend_to: Optional[date] = None
    renewal: Optional[NewRegistration] = None
    package_member_id: Optional[int] = None


@dataclass(frozen=True)
class GatewayTransaction:
    gateway_id: int
    payment_id: int
    gateway_name: str
    order_id: str
    amount: Optional[Decimal] = None
    trans_id: Optional[str] = None
    resp_code: Optional[str] = None
    message: Optional[str] = None
    callback_at: Optional[datetime] = None


@dataclass(frozen=True)
class GatewayResult:
    success: bool
    message: str
    payment_id: Optional[int] = None
