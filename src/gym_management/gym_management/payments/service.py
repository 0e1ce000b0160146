from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Mapping, Optional, Sequence

from ..catalog.repository import CatalogRepository
from ..common.datetime_utils import add_months
from ..common.money import format_vnd, to_money
from ..core.constants import DEFAULT_CLASS_PRICE, DEFAULT_FIXED_COURSE_MONTHS
from ..core.enums import ClassStatus, PaymentMethod, PaymentStatus, RegistrationKind, RegistrationStatus
from ..core.exceptions import NotFoundError, PaymentGatewayError, ValidationError
from ..notifications.service import NotificationService
from ..promotions.service import PromotionService
from ..registrations.model import NewRegistration, Registration
from ..registrations.pricing import apply_discount, class_fee, monthly_rate, package_fee
from ..registrations.repository import RegistrationRepository
from .model import GatewayResult, NewPayment, Payment, Settlement
from .repository import PaymentRepository
from .vnpay import VnPayGateway

logger = logging.getLogger(__name__)

GATEWAY_NAME = "VNPAY"


class PaymentService:
    """Registration/payment state machine.

    Creation writes a PENDING_PAYMENT registration and a PENDING payment together.
    Cash settlement and the gateway return share ``_settle``; state guards
    return False instead of raising.
    """

    def __init__(
        self,
        payments: PaymentRepository,
        registrations: RegistrationRepository,
        catalog: CatalogRepository,
        notifications: NotificationService,
        promotions: PromotionService,
        *,
        gateway: Optional[VnPayGateway] = None,
        default_class_price: Decimal = DEFAULT_CLASS_PRICE,
    ):
        self._payments = payments
        self._registrations = registrations
        self._catalog = catalog
        self._notifications = notifications
        self._promotions = promotions
        self._gateway = gateway
        self._default_class_price = to_money(default_class_price)

    # -------- Queries --------
    def get(self, payment_id: int) -> Payment:
        payment = self._payments.get(int(payment_id))
        if not payment:
            raise NotFoundError("Không tìm thấy thanh toán")
        return payment

    def list_for_registration(self, registration_id: int) -> Sequence[Payment]:
        return self._payments.list_for_registration(int(registration_id))

    # -------- Creation --------
    def create_payment_for_package_registration(
        self,
        *,
        member_id: int,
        package_id: int,
        months: int,
        method: PaymentMethod,
        promotion_id: Optional[int] = None,
        today: Optional[date] = None,
    ) -> Payment:
        today = today or date.today()
        package = self._catalog.get_package(int(package_id))
        if not package:
            raise NotFoundError("Gói tập không tồn tại")

        if self._registrations.get_active_package(int(member_id)):
            raise ValidationError("Bạn đã có gói tập đang hoạt động")
        if self._registrations.get_pending_package(int(member_id)):
            raise ValidationError("Bạn có gói tập đang chờ thanh toán, vui lòng thanh toán hoặc hủy trước")

        months = int(months)
        fee = package_fee(package, months)
        if promotion_id is not None:
            check = self._promotions.check_promotion(promotion_id, today=today)
            if check.valid:
                fee = apply_discount(fee, check.percent)
            else:
                logger.info(
                    "Promotion ignored",
                    extra={"promotion_id": promotion_id, "reason": check.message, "member_id": member_id},
                )

        registration = NewRegistration(
            member_id=int(member_id),
            kind=RegistrationKind.PACKAGE,
            package_id=package.package_id,
            start_date=today,
            end_date=add_months(today, months),
            fee=fee,
            status_detail=f"Chờ thanh toán - {months} tháng",
        )
        payment = NewPayment(
            amount=fee,
            method=method,
            note=f"Thanh toán đăng ký gói tập - Người dùng: {member_id}, Gói: {package.package_id}, Thời hạn: {months} tháng",
        )
        created = self._payments.create_with_registration(registration, payment)
        logger.info(
            "Package registration created",
            extra={"payment_id": created.payment_id, "member_id": member_id, "amount": str(fee)},
        )
        return created

    def create_payment_for_class_registration(
        self,
        *,
        member_id: int,
        class_id: int,
        start_date: date,
        end_date: date,
        method: PaymentMethod,
        today: Optional[date] = None,
    ) -> Payment:
        today = today or date.today()
        if end_date <= start_date:
            raise ValidationError("Ngày kết thúc phải sau ngày bắt đầu")
        if start_date < today:
            raise ValidationError("Ngày bắt đầu không được ở quá khứ")
        return self._create_class_payment(
            member_id=int(member_id),
            class_id=int(class_id),
            start_date=start_date,
            end_date=end_date,
            method=method,
            today=today,
        )

    def create_payment_for_fixed_class_registration(
        self,
        *,
        member_id: int,
        class_id: int,
        method: PaymentMethod,
        today: Optional[date] = None,
    ) -> Payment:
        today = today or date.today()
        gym_class = self._catalog.get_class(int(class_id))
        if not gym_class:
            raise NotFoundError("Lớp học không tồn tại")
        start = gym_class.course_start or today
        end = gym_class.course_end or add_months(today, DEFAULT_FIXED_COURSE_MONTHS)
        if end < today:
            raise ValidationError("Khóa học đã kết thúc")
        return self._create_class_payment(
            member_id=int(member_id),
            class_id=gym_class.class_id,
            start_date=start,
            end_date=end,
            method=method,
            today=today,
        )

    def _create_class_payment(
        self,
        *,
        member_id: int,
        class_id: int,
        start_date: date,
        end_date: date,
        method: PaymentMethod,
        today: date,
    ) -> Payment:
        gym_class = self._catalog.get_class(class_id)
        if not gym_class:
            raise NotFoundError("Lớp học không tồn tại")
        if gym_class.status != ClassStatus.OPEN:
            raise ValidationError("Lớp học đã đóng đăng ký")
        if self._registrations.has_overlapping_class(
            member_id=member_id, class_id=class_id, start_date=start_date, end_date=end_date
        ):
            raise ValidationError("Bạn đã đăng ký lớp học này trong khoảng thời gian trên")

        fee = class_fee(gym_class, self._default_class_price)
        registration = NewRegistration(
            member_id=member_id,
            kind=RegistrationKind.CLASS,
            class_id=class_id,
            start_date=start_date,
            end_date=end_date,
            fee=fee,
            status_detail="Chờ thanh toán - lớp học",
        )
        payment = NewPayment(
            amount=fee,
            method=method,
            note=f"Thanh toán đăng ký lớp học - Người dùng: {member_id}, Lớp: {class_id}",
        )
        created = self._payments.create_with_registration(
            registration,
            payment,
            capacity_limit=gym_class.capacity,
            capacity_on=max(start_date, today),
        )
        logger.info(
            "Class registration created",
            extra={"payment_id": created.payment_id, "member_id": member_id, "class_id": class_id},
        )
        return created

    def create_renewal_payment(
        self,
        *,
        member_id: int,
        registration_id: int,
        months: int,
        method: PaymentMethod,
        today: Optional[date] = None,
    ) -> Payment:
        today = today or date.today()
        reg = self._registrations.get(int(registration_id))
        if not reg or reg.member_id != int(member_id):
            raise NotFoundError("Không tìm thấy đăng ký")
        if not reg.can_renew(today):
            raise ValidationError("Đăng ký này không thể gia hạn")
        months = int(months)
        if months <= 0:
            raise ValidationError("Số tháng gia hạn phải lớn hơn 0")

        if reg.status == RegistrationStatus.EXPIRED and self._registrations.get_active_package(reg.member_id):
            raise ValidationError("Bạn đã có gói tập đang hoạt động")
        if any(
            p.status == PaymentStatus.PENDING and p.renewal_months
            for p in self._payments.list_for_registration(reg.registration_id)
        ):
            raise ValidationError("Đăng ký này đang có yêu cầu gia hạn chờ thanh toán")

        package = self._catalog.get_package(int(reg.package_id))
        if not package:
            raise NotFoundError("Gói tập không tồn tại")

        amount = to_money(monthly_rate(package) * months)
        return self._payments.create_for_registration(
            reg.registration_id,
            NewPayment(
                amount=amount,
                method=method,
                note=f"Gia hạn gói tập {package.name} - {months} tháng",
                renewal_months=months,
            ),
        )

    # -------- Settlement --------
    def _plan_settlement(self, payment: Payment, *, now: datetime, detail: str) -> Settlement:
        if payment.registration_id is None:
            return Settlement(payment_id=payment.payment_id, paid_at=now)

        reg = self._registrations.get(payment.registration_id)
        if reg is None:
            return Settlement(payment_id=payment.payment_id, paid_at=now)

        if payment.renewal_months:
            if reg.status == RegistrationStatus.ACTIVE:
                return Settlement(
                    payment_id=payment.payment_id,
                    paid_at=now,
                    registration_id=reg.registration_id,
                    extend_to=add_months(reg.end_date, payment.renewal_months),
                )
            if reg.status == RegistrationStatus.EXPIRED:
                today = now.date()
                return Settlement(
                    payment_id=payment.payment_id,
                    paid_at=now,
                    renewal=NewRegistration(
                        member_id=reg.member_id,
                        kind=reg.kind,
                        package_id=reg.package_id,
                        class_id=reg.class_id,
                        start_date=today,
                        end_date=add_months(today, payment.renewal_months),
                        fee=payment.amount,
                        status=RegistrationStatus.ACTIVE,
                        status_detail=f"Gia hạn {payment.renewal_months} tháng - {detail}",
                    ),
                    package_member_id=reg.member_id if reg.package_id is not None else None,
                )

        activating = reg.status == RegistrationStatus.PENDING_PAYMENT
        return Settlement(
            payment_id=payment.payment_id,
            paid_at=now,
            registration_id=reg.registration_id,
            activate_detail=detail if activating else None,
            package_member_id=reg.member_id if activating and reg.package_id is not None else None,
        )

    def _settle(self, payment_id: int, *, now: datetime, detail: str) -> bool:
        payment = self._payments.get(int(payment_id))
        if not payment or payment.status != PaymentStatus.PENDING:
            return False

        if payment.registration_id is not None:
            reg = self._registrations.get(payment.registration_id)
            if reg and reg.status == RegistrationStatus.CANCELED:
                logger.warning(
                    "Settlement refused for canceled registration",
                    extra={"payment_id": payment.payment_id, "registration_id": reg.registration_id},
                )
                return False

        if not self._payments.settle(self._plan_settlement(payment, now=now, detail=detail)):
            return False

        logger.info(
            "Payment settled",
            extra={"payment_id": payment.payment_id, "method": payment.method.value, "amount": str(payment.amount)},
        )
        self._notify_member(
            payment,
            "Thanh toán thành công",
            f"Thanh toán {format_vnd(payment.amount)} VNĐ đã được xử lý thành công.",
        )
        return True

    def process_cash_payment(self, payment_id: int, *, now: Optional[datetime] = None) -> bool:
        return self._settle(payment_id, now=now or datetime.now(), detail="Thanh toán tiền mặt thành công")

    def confirm_payment(self, payment_id: int, *, detail: str, now: Optional[datetime] = None) -> bool:
        """Settlement entry point for flows other than cash/gateway (walk-in desk)."""
        return self._settle(payment_id, now=now or datetime.now(), detail=detail)

    # -------- Gateway --------
    def _require_gateway(self) -> VnPayGateway:
        if self._gateway is None:
            raise PaymentGatewayError("Cổng thanh toán VNPay chưa được cấu hình")
        return self._gateway

    def create_gateway_url(self, payment_id: int, *, client_ip: str, now: Optional[datetime] = None) -> str:
        gateway = self._require_gateway()
        now = now or datetime.now()
        payment = self.get(payment_id)
        if payment.status != PaymentStatus.PENDING:
            raise ValidationError("Thanh toán không ở trạng thái chờ")
        if payment.method != PaymentMethod.VNPAY:
            raise ValidationError("Thanh toán này không dùng VNPay")

        order_id = f"{payment.payment_id}{now:%Y%m%d%H%M%S}"
        self._payments.create_gateway_transaction(
            payment_id=payment.payment_id, gateway_name=GATEWAY_NAME, order_id=order_id, amount=payment.amount
        )
        return gateway.build_payment_url(
            order_id=order_id,
            amount=payment.amount,
            order_info=f"Thanh toan don hang:{payment.payment_id}",
            client_ip=client_ip,
            created_at=now,
        )

    def handle_gateway_return(self, params: Mapping[str, str], *, now: Optional[datetime] = None) -> GatewayResult:
        gateway = self._require_gateway()
        now = now or datetime.now()

        if not gateway.verify(params):
            logger.warning("VNPay return with invalid signature", extra={"order_id": params.get("vnp_TxnRef")})
            return GatewayResult(False, "Chữ ký không hợp lệ")

        ret = gateway.parse_return(params)
        txn = self._payments.get_gateway_transaction(ret.order_id)
        if not txn:
            logger.error("Gateway transaction not found", extra={"order_id": ret.order_id})
            return GatewayResult(False, "Không tìm thấy giao dịch")

        if ret.amount is not None and txn.amount is not None and to_money(ret.amount) != to_money(txn.amount):
            logger.error("Gateway amount mismatch", extra={"order_id": ret.order_id, "amount": str(ret.amount)})
            return GatewayResult(False, "Số tiền không khớp", txn.payment_id)

        suffix = " (Mô phỏng)" if gateway.simulate else ""
        if ret.is_success:
            message = f"Thanh toán thành công{suffix}"
            self._payments.record_gateway_response(
                order_id=ret.order_id,
                trans_id=ret.transaction_no,
                resp_code=ret.response_code,
                message=message,
                callback_at=now,
            )
            settled = self._settle(txn.payment_id, now=now, detail=message)
            if not settled:
                # Duplicate callback for an already settled payment.
                payment = self._payments.get(txn.payment_id)
                if payment and payment.status == PaymentStatus.SUCCESS:
                    return GatewayResult(True, "Giao dịch đã được xử lý", txn.payment_id)
                return GatewayResult(False, "Không thể xử lý thanh toán", txn.payment_id)
            return GatewayResult(True, message, txn.payment_id)

        message = f"Thanh toán thất bại (mã {ret.response_code})"
        self._payments.record_gateway_response(
            order_id=ret.order_id,
            trans_id=ret.transaction_no,
            resp_code=ret.response_code,
            message=message,
            callback_at=now,
        )
        payment = self._payments.get(txn.payment_id)
        if payment and payment.registration_id is not None:
            reg = self._registrations.get(payment.registration_id)
            if reg and reg.status == RegistrationStatus.PENDING_PAYMENT:
                self._registrations.cancel(
                    reg.registration_id, reason="Thanh toán thất bại", detail=message
                )
        logger.warning(
            "VNPay payment failed", extra={"order_id": ret.order_id, "response_code": ret.response_code}
        )
        return GatewayResult(False, message, txn.payment_id)

    def simulated_gateway_return(self, payment_id: int, *, response_code: str = "00", now: Optional[datetime] = None):
        """Signed return parameters for a payment, for the sandbox-less development flow."""
        gateway = self._require_gateway()
        if not gateway.simulate:
            raise PaymentGatewayError("Chế độ mô phỏng VNPay chưa được bật")
        now = now or datetime.now()
        payment = self.get(payment_id)
        order_id = f"{payment.payment_id}{now:%Y%m%d%H%M%S}"
        self._payments.create_gateway_transaction(
            payment_id=payment.payment_id, gateway_name=GATEWAY_NAME, order_id=order_id, amount=payment.amount
        )
        return gateway.simulated_return_params(order_id=order_id, amount=payment.amount, response_code=response_code)

    # -------- Refund --------
    def refund_payment(self, payment_id: int, reason: str) -> bool:
        payment = self._payments.get(int(payment_id))
        if not payment or payment.status != PaymentStatus.SUCCESS:
            return False

        reason = (reason or "").strip() or "Không rõ lý do"
        if not self._payments.refund(payment.payment_id, note=f"Hoàn tiền: {reason}"):
            return False

        logger.info("Payment refunded", extra={"payment_id": payment.payment_id, "reason": reason})
        self._notify_member(
            payment,
            "Hoàn tiền",
            f"Đã hoàn tiền {format_vnd(payment.amount)} VNĐ cho đăng ký. Lý do: {reason}",
        )
        return True

    def _notify_member(self, payment: Payment, title: str, body: str) -> None:
        if payment.registration_id is None:
            return
        reg: Optional[Registration] = self._registrations.get(payment.registration_id)
        if reg:
            self._notifications.notify(reg.member_id, title, body)
