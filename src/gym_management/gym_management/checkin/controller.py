from __future__ import annotations

import logging
from datetime import date

from flask import Flask

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
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, DomainError, ValidationError
from ..container import Container

logger = logging.getLogger(__name__)

_DESK = (Role.ADMIN, Role.RECEPTION)


def register(app: Flask, container: Container) -> None:
    def _descriptor(data: dict) -> list:
        descriptor = data.get("descriptor")
        if not isinstance(descriptor, list):
            raise ValidationError("Dữ liệu khuôn mặt không hợp lệ")
        return descriptor

    @app.route("/checkin", methods=["POST"], endpoint="manual_checkin")
    @roles_required(*_DESK)
    def manual_checkin():
        data = payload()
        try:
            checkin_id = container.checkin_service.manual_check_in(
                int_field(data, "member_id"),
                int_field(data, "class_id", required=False),
            )
            return ok("Check-in thành công", {"checkin_id": checkin_id}, 201)
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Manual check-in failed")
            return fail("Lỗi hệ thống khi check-in", 500)

    @app.route("/checkin/face", methods=["POST"], endpoint="face_checkin")
    @roles_required(*_DESK)
    def face_checkin():
        data = payload()
        try:
            checkin = container.checkin_service.face_check_in(
                _descriptor(data), class_id=int_field(data, "class_id", required=False)
            )
            return ok("Check-in bằng khuôn mặt thành công", checkin, 201)
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Face check-in failed")
            return fail("Lỗi hệ thống khi nhận diện", 500)

    @app.route("/checkin/<int:checkin_id>/checkout", methods=["POST"], endpoint="checkout")
    @login_required
    def checkout(checkin_id: int):
        try:
            ctx = current_context()
            checkin = container.checkin_service.get(checkin_id)
            if not ctx.has_role(*_DESK) and checkin.member_id != ctx.user_id:
                raise AuthorizationError("Bạn không có quyền thực hiện thao tác này")
            if not container.checkin_service.check_out(checkin_id):
                return fail("Lượt check-in này đã check-out", 409)
            return ok("Check-out thành công")
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Check-out failed", extra={"checkin_id": checkin_id})
            return fail("Lỗi hệ thống khi check-out", 500)

    @app.route("/face/register", methods=["POST"], endpoint="register_face")
    @login_required
    def register_face():
        data = payload()
        try:
            ctx = current_context()
            user_id = ctx.user_id
            if ctx.has_role(*_DESK) and data.get("user_id"):
                user_id = int_field(data, "user_id")
            container.checkin_service.register_face(user_id, _descriptor(data))
            return ok("Đăng ký khuôn mặt thành công")
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Face registration failed")
            return fail("Lỗi hệ thống khi đăng ký khuôn mặt", 500)

    @app.route("/checkin/today", methods=["GET"], endpoint="checkins_today")
    @roles_required(*_DESK)
    def checkins_today():
        try:
            return ok(data=container.checkin_service.list_for_day(date_arg("date", date.today())))
        except DomainError as e:
            return error_response(e)

    @app.route("/me/checkins", methods=["GET"], endpoint="my_checkins")
    @login_required
    def my_checkins():
        return ok(data=container.checkin_service.list_for_member(current_context().user_id))
