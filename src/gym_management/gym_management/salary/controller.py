from __future__ import annotations

import logging

from flask import Flask, request

from ..access.policy import validate_trainer_salary_access
from ..common.web import current_context, error_response, fail, ok, payload, roles_required
from ..core.enums import Role
from ..core.exceptions import DomainError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    def _forbidden():
        return fail("Bạn không có quyền xem bảng lương này", 403)

    @app.route("/salary/<int:trainer_id>", methods=["GET"], endpoint="trainer_salary")
    @roles_required(Role.ADMIN, Role.TRAINER)
    def trainer_salary(trainer_id: int):
        if not validate_trainer_salary_access(current_context(), trainer_id):
            return _forbidden()
        try:
            month = request.args.get("month")
            if not month:
                return ok(data=container.salary_service.list_for_trainer(trainer_id))
            container.salary_service.validate_month(month)
            record = container.salary_service.get_salary(trainer_id, month)
            if record is None:
                return ok(f"Chưa tạo bảng lương tháng {month}", {"generated": False})
            return ok(data={"generated": True, "record": record, "total": record.total})
        except DomainError as e:
            return error_response(e)

    @app.route("/salary/<int:trainer_id>/commission", methods=["GET"], endpoint="trainer_commission")
    @roles_required(Role.ADMIN, Role.TRAINER)
    def trainer_commission(trainer_id: int):
        if not validate_trainer_salary_access(current_context(), trainer_id):
            return _forbidden()
        try:
            breakdown = container.salary_service.calculate_detailed_commission(trainer_id, request.args.get("month", ""))
            return ok(data=breakdown.to_dict())
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Commission calculation failed", extra={"trainer_id": trainer_id})
            return fail("Lỗi hệ thống khi tính hoa hồng", 500)

    @app.route("/admin/salary", methods=["GET"], endpoint="admin_salary_list")
    @roles_required(Role.ADMIN)
    def admin_salary_list():
        try:
            return ok(data=container.salary_service.list_for_month(request.args.get("month", "")))
        except DomainError as e:
            return error_response(e)

    @app.route("/admin/salary/generate", methods=["POST"], endpoint="admin_salary_generate")
    @roles_required(Role.ADMIN)
    def admin_salary_generate():
        data = payload()
        try:
            count = container.salary_service.generate_monthly_salaries(str(data.get("month", "")))
            return ok(f"Đã tạo {count} bảng lương", {"created": count}, 201)
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Salary generation failed")
            return fail("Lỗi hệ thống khi tạo bảng lương", 500)

    @app.route("/admin/salary/<int:salary_id>/pay", methods=["POST"], endpoint="admin_salary_pay")
    @roles_required(Role.ADMIN)
    def admin_salary_pay(salary_id: int):
        try:
            if not container.salary_service.pay_salary(salary_id):
                return fail("Bảng lương đã được thanh toán", 409)
            return ok("Đã thanh toán lương")
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Salary payment failed", extra={"salary_id": salary_id})
            return fail("Lỗi hệ thống khi thanh toán lương", 500)

    @app.route("/admin/salary/pay-all", methods=["POST"], endpoint="admin_salary_pay_all")
    @roles_required(Role.ADMIN)
    def admin_salary_pay_all():
        data = payload()
        try:
            count = container.salary_service.pay_all_for_month(str(data.get("month", "")))
            return ok(f"Đã thanh toán {count} bảng lương", {"paid": count})
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Bulk salary payment failed")
            return fail("Lỗi hệ thống khi thanh toán lương", 500)

    @app.route("/admin/salary/<int:salary_id>", methods=["DELETE"], endpoint="admin_salary_delete")
    @roles_required(Role.ADMIN)
    def admin_salary_delete(salary_id: int):
        try:
            if not container.salary_service.delete_salary(salary_id):
                return fail("Không thể xóa bảng lương", 409)
            return ok("Đã xóa bảng lương")
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Salary delete failed", extra={"salary_id": salary_id})
            return fail("Lỗi hệ thống khi xóa bảng lương", 500)
