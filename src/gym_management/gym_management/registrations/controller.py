from __future__ import annotations

import logging

from flask import Flask, request

from ..common.web import current_context, error_response, fail, login_required, ok, payload, roles_required
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, DomainError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/registrations", methods=["GET"], endpoint="list_registrations")
    @login_required
    def list_registrations():
        ctx = current_context()
        member_id = ctx.user_id
        if ctx.has_role(Role.ADMIN, Role.RECEPTION) and request.args.get("member_id"):
            member_id = int(request.args["member_id"])
        return ok(data=container.registration_service.list_for_member(member_id))

    @app.route("/registrations/<int:registration_id>", methods=["GET"], endpoint="get_registration")
    @login_required
    def get_registration(registration_id: int):
        try:
            reg = container.registration_service.get(registration_id)
            ctx = current_context()
            if not ctx.has_role(Role.ADMIN, Role.RECEPTION) and reg.member_id != ctx.user_id:
                raise AuthorizationError("Bạn không có quyền xem đăng ký này")
            return ok(data={"registration": reg, "can_renew": container.registration_service.can_renew(registration_id)})
        except DomainError as e:
            return error_response(e)

    @app.route("/registrations/<int:registration_id>/cancel", methods=["POST"], endpoint="cancel_registration")
    @roles_required(Role.ADMIN, Role.RECEPTION)
    def cancel_registration(registration_id: int):
        data = payload()
        try:
            if not container.registration_service.cancel_registration(registration_id, data.get("reason", "")):
                return fail("Đăng ký không thể hủy ở trạng thái hiện tại", 409)
            return ok("Đã hủy đăng ký")
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Cancel registration failed", extra={"registration_id": registration_id})
            return fail("Lỗi hệ thống khi hủy đăng ký", 500)

    @app.route("/admin/registrations/expire", methods=["POST"], endpoint="expire_registrations")
    @roles_required(Role.ADMIN)
    def expire_registrations():
        try:
            count = container.registration_service.process_expired()
            return ok(f"Đã cập nhật {count} đăng ký hết hạn", {"expired": count})
        except Exception:
            logger.exception("Expire registrations failed")
            return fail("Lỗi hệ thống khi cập nhật đăng ký hết hạn", 500)

    @app.route("/admin/promotions/deactivate-expired", methods=["POST"], endpoint="deactivate_promotions")
    @roles_required(Role.ADMIN)
    def deactivate_promotions():
        try:
            count = container.promotion_service.deactivate_expired()
            return ok(f"Đã vô hiệu hóa {count} mã khuyến mãi", {"deactivated": count})
        except Exception:
            logger.exception("Deactivate promotions failed")
            return fail("Lỗi hệ thống khi cập nhật khuyến mãi", 500)
