from __future__ import annotations

import logging
from datetime import date

from flask import Flask

from ..access.policy import validate_trainer_class_access
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
from ..core.exceptions import DomainError, NotFoundError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/classes", methods=["GET"], endpoint="list_classes")
    @login_required
    def list_classes():
        return ok(data=container.catalog_repo.list_classes())

    @app.route("/packages", methods=["GET"], endpoint="list_packages")
    @login_required
    def list_packages():
        return ok(data=container.catalog_repo.list_packages())

    @app.route("/classes/<int:class_id>/slots", methods=["GET"], endpoint="class_slots")
    @login_required
    def class_slots(class_id: int):
        try:
            day = date_arg("date", date.today())
            return ok(data={"class_id": class_id, "date": day, "available": container.booking_service.available_slots(class_id, day)})
        except DomainError as e:
            return error_response(e)

    @app.route("/bookings", methods=["GET"], endpoint="my_bookings")
    @roles_required(Role.MEMBER)
    def my_bookings():
        ctx = current_context()
        return ok(data=container.booking_service.list_for_member(ctx.user_id, from_date=date.today()))

    @app.route("/bookings", methods=["POST"], endpoint="book_class")
    @roles_required(Role.MEMBER)
    def book_class():
        data = payload()
        try:
            booking_id = container.booking_service.book_class(
                member_id=current_context().user_id,
                class_id=int_field(data, "class_id"),
                day=date_arg("date"),
                note=data.get("note"),
            )
            return ok("Đặt lịch thành công", {"booking_id": booking_id}, 201)
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Booking failed")
            return fail("Lỗi hệ thống khi đặt lịch", 500)

    @app.route("/bookings/<int:booking_id>/cancel", methods=["POST"], endpoint="cancel_booking")
    @roles_required(Role.MEMBER)
    def cancel_booking(booking_id: int):
        try:
            if not container.booking_service.cancel_booking(booking_id=booking_id, member_id=current_context().user_id):
                return fail("Lịch đặt không thể hủy ở trạng thái hiện tại", 409)
            return ok("Đã hủy lịch đặt")
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Cancel booking failed", extra={"booking_id": booking_id})
            return fail("Lỗi hệ thống khi hủy lịch", 500)

    @app.route("/trainer/classes", methods=["GET"], endpoint="trainer_classes")
    @roles_required(Role.TRAINER)
    def trainer_classes():
        ctx = current_context()
        return ok(data=container.catalog_repo.list_classes(trainer_id=ctx.trainer_id))

    @app.route("/trainer/classes/<int:class_id>/bookings", methods=["GET"], endpoint="trainer_class_bookings")
    @roles_required(Role.TRAINER)
    def trainer_class_bookings(class_id: int):
        try:
            gym_class = container.catalog_repo.get_class(class_id)
            if not gym_class:
                raise NotFoundError("Lớp học không tồn tại")
            if not validate_trainer_class_access(current_context(), class_id, gym_class.trainer_id):
                return fail("Bạn không có quyền truy cập lớp học này", 403)
            day = date_arg("date", date.today())
            return ok(data=container.booking_service.list_for_class(class_id, day))
        except DomainError as e:
            return error_response(e)
