from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

from ..checkin.service import CheckInService
from ..common.money import to_money
from ..common.validators import normalize_phone, required_text
from ..core.constants import DEFAULT_WALKIN_PASS_PRICE
from ..core.enums import PaymentMethod, RegistrationKind, RegistrationStatus, Role
from ..core.exceptions import NotFoundError, ValidationError
from ..payments.model import NewPayment, Payment
from ..payments.repository import PaymentRepository
from ..payments.service import PaymentService
from ..registrations.model import NewRegistration, Registration
from ..registrations.repository import RegistrationRepository
from ..users.repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WalkInResult:
    payment_id: int
    checkin_id: Optional[int]


class WalkInService:
    """Khách vãng lai: vé một lượt trong ngày, thanh toán tại quầy rồi check-in luôn."""

    def __init__(
        self,
        users: UserRepository,
        registrations: RegistrationRepository,
        payments: PaymentRepository,
        payment_service: PaymentService,
        checkin_service: CheckInService,
        *,
        pass_price: Decimal = DEFAULT_WALKIN_PASS_PRICE,
    ):
        self._users = users
        self._registrations = registrations
        self._payments = payments
        self._payment_service = payment_service
        self._checkin_service = checkin_service
        self._pass_price = to_money(pass_price)
        if self._pass_price <= 0:
            raise ValueError("pass_price must be positive")

    @property
    def pass_price(self) -> Decimal:
        return self._pass_price

    def create_guest(self, *, full_name: str, phone: str, email: Optional[str] = None, today: Optional[date] = None) -> int:
        today = today or date.today()
        full_name = required_text(full_name, "Họ tên")
        phone = normalize_phone(phone)

        existing = self._users.find_guest_joined_on(phone=phone, day=today)
        if existing:
            return existing.user_id

        guest_id = self._users.create(
            full_name=full_name,
            role=Role.GUEST,
            joined_on=today,
            phone=phone,
            email=(email or "").strip() or None,
        )
        logger.info("Walk-in guest created", extra={"guest_id": guest_id})
        return guest_id

    def create_fixed_price_pass(
        self, guest_id: int, *, method: PaymentMethod = PaymentMethod.CASH, today: Optional[date] = None
    ) -> Payment:
        today = today or date.today()
        guest = self._users.get_by_id(int(guest_id))
        if not guest or guest.role != Role.GUEST:
            raise NotFoundError("Khách vãng lai không tồn tại")

        registration = NewRegistration(
            member_id=guest.user_id,
            kind=RegistrationKind.WALKIN,
            start_date=today,
            end_date=today,
            fee=self._pass_price,
            status_detail="Vé tập một lượt - chờ thanh toán",
        )
        payment = NewPayment(
            amount=self._pass_price,
            method=method,
            note=f"Vé tập một lượt - Khách: {guest.full_name}",
        )
        created = self._payments.create_with_registration(registration, payment)
        logger.info("Walk-in pass created", extra={"payment_id": created.payment_id, "guest_id": guest.user_id})
        return created

    def confirm_payment_and_check_in(self, payment_id: int, *, now: Optional[datetime] = None) -> WalkInResult:
        now = now or datetime.now()
        payment = self._payment_service.get(payment_id)
        reg = self._registrations.get(payment.registration_id) if payment.registration_id is not None else None
        if not reg or reg.kind != RegistrationKind.WALKIN:
            raise ValidationError("Thanh toán không thuộc vé vãng lai")
        if reg.start_date != now.date():
            raise ValidationError("Vé vãng lai chỉ có giá trị trong ngày")

        if not self._payment_service.confirm_payment(payment.payment_id, detail="Vé vãng lai đã thanh toán", now=now):
            raise ValidationError("Thanh toán không ở trạng thái chờ")

        try:
            checkin_id = self._checkin_service.manual_check_in(reg.member_id, now=now)
        except ValidationError as exc:
            # Paid already; surface the check-in problem without undoing payment.
            logger.warning(
                "Walk-in auto check-in failed",
                extra={"payment_id": payment.payment_id, "guest_id": reg.member_id, "reason": str(exc)},
            )
            checkin_id = None
        return WalkInResult(payment_id=payment.payment_id, checkin_id=checkin_id)

    def list_today(self, *, today: Optional[date] = None) -> Sequence[Registration]:
        return self._registrations.list_walkins_on(today or date.today())

    def paid_count_today(self, *, today: Optional[date] = None) -> int:
        return sum(1 for r in self.list_today(today=today) if r.status == RegistrationStatus.ACTIVE)
