from __future__ import annotations

import csv
import io
import logging
from datetime import date, timedelta

from flask import Flask, request

from ..common.datetime_utils import month_key
from ..common.web import date_arg, error_response, fail, ok, roles_required
from ..core.enums import Role
from ..core.exceptions import DomainError, ValidationError
from ..container import Container
from .service import REVENUE_CSV_FIELDS

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    def _range():
        today = date.today()
        return date_arg("start", today - timedelta(days=29)), date_arg("end", today)

    def _write_report_csv(*, rows, fieldnames, filename: str):
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=fieldnames)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)

        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/reports/dashboard", methods=["GET"], endpoint="report_dashboard")
    @roles_required(Role.ADMIN, Role.RECEPTION)
    def report_dashboard():
        try:
            return ok(data=container.report_service.dashboard())
        except Exception:
            logger.exception("Dashboard report failed")
            return fail("Lỗi hệ thống khi tải báo cáo", 500)

    @app.route("/reports/revenue", methods=["GET"], endpoint="report_revenue")
    @roles_required(Role.ADMIN)
    def report_revenue():
        try:
            start, end = _range()
            data = container.report_service.revenue_report(start=start, end=end)
            return ok(data={"rows": data.rows, "summary": data.summary})
        except DomainError as e:
            return error_response(e)

    @app.route("/reports/revenue.csv", methods=["GET"], endpoint="report_revenue_csv")
    @roles_required(Role.ADMIN)
    def report_revenue_csv():
        try:
            start, end = _range()
            data = container.report_service.revenue_report(start=start, end=end)
        except DomainError as e:
            return error_response(e)

        filename = f"revenue_{start.strftime('%Y%m%d')}_{end.strftime('%Y%m%d')}.csv"
        return _write_report_csv(rows=data.rows, fieldnames=REVENUE_CSV_FIELDS, filename=filename)

    @app.route("/reports/revenue/monthly", methods=["GET"], endpoint="report_revenue_monthly")
    @roles_required(Role.ADMIN)
    def report_revenue_monthly():
        try:
            year = int(request.args.get("year") or date.today().year)
        except ValueError:
            return error_response(ValidationError("Năm không hợp lệ"))
        return ok(data=container.report_service.monthly_revenue(year))

    @app.route("/reports/revenue/methods", methods=["GET"], endpoint="report_revenue_methods")
    @roles_required(Role.ADMIN)
    def report_revenue_methods():
        try:
            start, end = _range()
            return ok(data=container.report_service.revenue_by_method(start=start, end=end))
        except DomainError as e:
            return error_response(e)

    @app.route("/reports/members", methods=["GET"], endpoint="report_members")
    @roles_required(Role.ADMIN, Role.RECEPTION)
    def report_members():
        try:
            start, end = _range()
            return ok(
                data={
                    "active": container.report_service.active_member_count(),
                    "new": container.report_service.new_member_count(start=start, end=end),
                }
            )
        except DomainError as e:
            return error_response(e)

    @app.route("/reports/checkins", methods=["GET"], endpoint="report_checkins")
    @roles_required(Role.ADMIN, Role.RECEPTION)
    def report_checkins():
        try:
            start, end = _range()
            data = container.report_service.checkin_report(start=start, end=end)
            return ok(data={"rows": data.rows, "summary": data.summary})
        except DomainError as e:
            return error_response(e)

    @app.route("/reports/classes/popular", methods=["GET"], endpoint="report_popular_classes")
    @roles_required(Role.ADMIN)
    def report_popular_classes():
        try:
            start, end = _range()
            limit = int(request.args.get("limit") or 5)
            return ok(data=container.report_service.popular_classes(start=start, end=end, limit=limit))
        except ValueError:
            return error_response(ValidationError("limit không hợp lệ"))
        except DomainError as e:
            return error_response(e)

    @app.route("/reports/trainers/commission", methods=["GET"], endpoint="report_trainer_commission")
    @roles_required(Role.ADMIN)
    def report_trainer_commission():
        try:
            month = request.args.get("month") or month_key(date.today())
            return ok(data=container.report_service.trainer_commission_summary(month))
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Trainer commission report failed")
            return fail("Lỗi hệ thống khi tải báo cáo", 500)

    @app.route("/reports/financial", methods=["GET"], endpoint="report_financial")
    @roles_required(Role.ADMIN)
    def report_financial():
        try:
            month = request.args.get("month") or month_key(date.today())
            return ok(data=container.report_service.monthly_financial_summary(month))
        except DomainError as e:
            return error_response(e)
