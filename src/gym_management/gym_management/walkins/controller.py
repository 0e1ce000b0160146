from __future__ import annotations

import logging

from flask import Flask

from ..common.money import format_vnd
from ..common.web import error_response, fail, ok, payload, roles_required
from ..core.enums import PaymentMethod, Role
from ..core.exceptions import DomainError, ValidationError
from ..container import Container

logger = logging.getLogger(__name__)

_DESK = (Role.ADMIN, Role.RECEPTION)


def register(app: Flask, container: Container) -> None:
    @app.route("/walkins", methods=["POST"], endpoint="create_walkin")
    @roles_required(*_DESK)
    def create_walkin():
        data = payload()
        try:
            try:
                method = PaymentMethod(str(data.get("method") or PaymentMethod.CASH.value).upper())
            except ValueError as exc:
                raise ValidationError("Phương thức thanh toán không hợp lệ") from exc
            guest_id = container.walkin_service.create_guest(
                full_name=data.get("full_name", ""),
                phone=data.get("phone", ""),
                email=data.get("email"),
            )
            payment = container.walkin_service.create_fixed_price_pass(guest_id, method=method)
            return ok(
                f"Đã tạo vé tập một lượt ({format_vnd(payment.amount)} VNĐ)",
                {"guest_id": guest_id, "payment": payment},
                201,
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Create walk-in failed")
            return fail("Lỗi hệ thống khi tạo vé vãng lai", 500)

    @app.route("/walkins/<int:payment_id>/confirm", methods=["POST"], endpoint="confirm_walkin")
    @roles_required(*_DESK)
    def confirm_walkin(payment_id: int):
        try:
            result = container.walkin_service.confirm_payment_and_check_in(payment_id)
            message = "Thanh toán thành công, đã check-in" if result.checkin_id else "Thanh toán thành công"
            return ok(message, result)
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Confirm walk-in failed", extra={"payment_id": payment_id})
            return fail("Lỗi hệ thống khi xác nhận vé vãng lai", 500)

    @app.route("/walkins/today", methods=["GET"], endpoint="walkins_today")
    @roles_required(*_DESK)
    def walkins_today():
        rows = container.walkin_service.list_today()
        return ok(
            data={
                "pass_price": container.walkin_service.pass_price,
                "paid": container.walkin_service.paid_count_today(),
                "registrations": rows,
            }
        )
