from __future__ import annotations

import io
import logging
from datetime import date

import qrcode
from flask import Flask, request, send_file

from ..access.policy import require_role
from ..common.web import (
    current_context,
    date_arg,
    error_response,
    fail,
    int_field,
    login_required,
    ok,
    payload,
    roles_required,
)
from ..core.enums import PaymentMethod, Role
from ..core.exceptions import AuthorizationError, DomainError, ValidationError
from ..container import Container

logger = logging.getLogger(__name__)

_STAFF = (Role.ADMIN, Role.RECEPTION)


def register(app: Flask, container: Container) -> None:
    def _method(data: dict) -> PaymentMethod:
        try:
            return PaymentMethod(str(data.get("method") or PaymentMethod.CASH.value).upper())
        except ValueError as exc:
            raise ValidationError("Phương thức thanh toán không hợp lệ") from exc

    def _member_id(data: dict) -> int:
        """Members act for themselves; desk staff pass member_id explicitly."""
        ctx = require_role(current_context(), Role.MEMBER, *_STAFF)
        if ctx.role == Role.MEMBER:
            return ctx.user_id
        return int_field(data, "member_id")

    def _ensure_can_view(payment) -> None:
        ctx = current_context()
        if ctx.has_role(*_STAFF):
            return
        reg = (
            container.registrations_repo.get(payment.registration_id)
            if payment.registration_id is not None
            else None
        )
        if not reg or reg.member_id != ctx.user_id:
            raise AuthorizationError("Bạn không có quyền xem thanh toán này")

    def _created(payment):
        return ok("Đã tạo đăng ký, chờ thanh toán", payment, 201)

    @app.route("/payments/package", methods=["POST"], endpoint="create_package_payment")
    @login_required
    def create_package_payment():
        data = payload()
        try:
            payment = container.payment_service.create_payment_for_package_registration(
                member_id=_member_id(data),
                package_id=int_field(data, "package_id"),
                months=int_field(data, "months"),
                method=_method(data),
                promotion_id=int_field(data, "promotion_id", required=False),
            )
            return _created(payment)
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Create package payment failed")
            return fail("Lỗi hệ thống khi tạo thanh toán", 500)

    @app.route("/payments/class", methods=["POST"], endpoint="create_class_payment")
    @login_required
    def create_class_payment():
        data = payload()
        try:
            payment = container.payment_service.create_payment_for_class_registration(
                member_id=_member_id(data),
                class_id=int_field(data, "class_id"),
                start_date=date_arg("start_date"),
                end_date=date_arg("end_date"),
                method=_method(data),
            )
            return _created(payment)
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Create class payment failed")
            return fail("Lỗi hệ thống khi tạo thanh toán", 500)

    @app.route("/payments/fixed-class", methods=["POST"], endpoint="create_fixed_class_payment")
    @login_required
    def create_fixed_class_payment():
        data = payload()
        try:
            payment = container.payment_service.create_payment_for_fixed_class_registration(
                member_id=_member_id(data),
                class_id=int_field(data, "class_id"),
                method=_method(data),
            )
            return _created(payment)
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Create fixed class payment failed")
            return fail("Lỗi hệ thống khi tạo thanh toán", 500)

    @app.route("/payments/renewal", methods=["POST"], endpoint="create_renewal_payment")
    @login_required
    def create_renewal_payment():
        data = payload()
        try:
            payment = container.payment_service.create_renewal_payment(
                member_id=_member_id(data),
                registration_id=int_field(data, "registration_id"),
                months=int_field(data, "months"),
                method=_method(data),
            )
            return ok("Đã tạo thanh toán gia hạn", payment, 201)
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Create renewal payment failed")
            return fail("Lỗi hệ thống khi tạo thanh toán gia hạn", 500)

    @app.route("/payments/<int:payment_id>", methods=["GET"], endpoint="get_payment")
    @login_required
    def get_payment(payment_id: int):
        try:
            payment = container.payment_service.get(payment_id)
            _ensure_can_view(payment)
            return ok(data=payment)
        except DomainError as e:
            return error_response(e)

    @app.route("/payments/<int:payment_id>/cash", methods=["POST"], endpoint="process_cash_payment")
    @roles_required(*_STAFF)
    def process_cash_payment(payment_id: int):
        try:
            if not container.payment_service.process_cash_payment(payment_id):
                return fail("Thanh toán không ở trạng thái chờ hoặc đăng ký đã bị hủy", 409)
            return ok("Thanh toán tiền mặt thành công")
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Cash payment failed", extra={"payment_id": payment_id})
            return fail("Lỗi hệ thống khi xử lý thanh toán", 500)

    @app.route("/payments/<int:payment_id>/refund", methods=["POST"], endpoint="refund_payment")
    @roles_required(Role.ADMIN)
    def refund_payment(payment_id: int):
        data = payload()
        try:
            if not container.payment_service.refund_payment(payment_id, data.get("reason", "")):
                return fail("Chỉ hoàn tiền được cho thanh toán đã thành công", 409)
            return ok("Hoàn tiền thành công")
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Refund failed", extra={"payment_id": payment_id})
            return fail("Lỗi hệ thống khi hoàn tiền", 500)

    # ===== VNPAY =====

    @app.route("/payments/<int:payment_id>/vnpay", methods=["POST"], endpoint="create_vnpay_url")
    @login_required
    def create_vnpay_url(payment_id: int):
        try:
            payment = container.payment_service.get(payment_id)
            _ensure_can_view(payment)
            url = container.payment_service.create_gateway_url(payment_id, client_ip=request.remote_addr or "127.0.0.1")
            return ok("Chuyển đến cổng thanh toán", {"payment_url": url})
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Create VNPay url failed", extra={"payment_id": payment_id})
            return fail("Lỗi hệ thống khi tạo liên kết thanh toán", 500)

    @app.route("/payments/<int:payment_id>/vnpay/qr.png", methods=["GET"], endpoint="vnpay_qr_image")
    @login_required
    def vnpay_qr_image(payment_id: int):
        """QR image of the gateway link, for paying from a phone at the desk."""
        try:
            payment = container.payment_service.get(payment_id)
            _ensure_can_view(payment)
            url = container.payment_service.create_gateway_url(payment_id, client_ip=request.remote_addr or "127.0.0.1")

            qr = qrcode.QRCode(
                version=None,
                error_correction=qrcode.constants.ERROR_CORRECT_M,
                box_size=8,
                border=2,
            )
            qr.add_data(url)
            qr.make(fit=True)

            img = qr.make_image(fill_color="black", back_color="white")

            buf = io.BytesIO()
            img.save(buf, format="PNG")
            buf.seek(0)

            return send_file(buf, mimetype="image/png")
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("QR generation failed", extra={"payment_id": payment_id})
            return fail("Lỗi hệ thống khi tạo mã QR", 500)

    @app.route("/payments/vnpay/return", methods=["GET"], endpoint="vnpay_return")
    def vnpay_return():
        try:
            result = container.payment_service.handle_gateway_return(request.args.to_dict())
            body = {"success": result.success, "message": result.message, "payment_id": result.payment_id}
            return body, 200 if result.success else 400
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("VNPay return handling failed")
            return fail("Lỗi hệ thống khi xử lý kết quả thanh toán", 500)

    @app.route("/payments/<int:payment_id>/vnpay/simulate", methods=["POST"], endpoint="vnpay_simulate")
    @login_required
    def vnpay_simulate(payment_id: int):
        data = payload()
        try:
            payment = container.payment_service.get(payment_id)
            _ensure_can_view(payment)
            params = container.payment_service.simulated_gateway_return(
                payment_id, response_code=str(data.get("response_code") or "00")
            )
            result = container.payment_service.handle_gateway_return(params)
            body = {"success": result.success, "message": result.message, "payment_id": result.payment_id}
            return body, 200 if result.success else 400
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("VNPay simulation failed", extra={"payment_id": payment_id})
            return fail("Lỗi hệ thống khi mô phỏng thanh toán", 500)

    @app.route("/registrations/<int:registration_id>/payments", methods=["GET"], endpoint="registration_payments")
    @login_required
    def registration_payments(registration_id: int):
        try:
            reg = container.registration_service.get(registration_id)
            ctx = current_context()
            if not ctx.has_role(*_STAFF) and reg.member_id != ctx.user_id:
                raise AuthorizationError("Bạn không có quyền xem đăng ký này")
            return ok(data=container.payment_service.list_for_registration(registration_id))
        except DomainError as e:
            return error_response(e)

    @app.route("/promotions/validate", methods=["GET"], endpoint="validate_promotion")
    @login_required
    def validate_promotion():
        check = container.promotion_service.validate_code(request.args.get("code", ""), today=date.today())
        data = None
        if check.promotion:
            data = {"promotion_id": check.promotion.promotion_id, "percent": check.percent}
        body = {"success": check.valid, "message": check.message}
        if data:
            body["data"] = data
        return body, 200
