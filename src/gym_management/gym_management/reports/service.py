from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from ..common.datetime_utils import month_key, month_range, parse_month
from ..common.money import to_money
from ..core.exceptions import ValidationError
from ..salary.service import SalaryService
from ..users.service import UserService
from .repository import ReportRepository

logger = logging.getLogger(__name__)

MAX_REPORT_DAYS = 366

REVENUE_CSV_FIELDS = ["day", "payments", "total"]


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: dict


def _check_range(start: date, end: date) -> None:
    if end < start:
        raise ValidationError("Ngày kết thúc phải sau hoặc bằng ngày bắt đầu")
    if (end - start).days >= MAX_REPORT_DAYS:
        raise ValidationError(f"Khoảng thời gian báo cáo tối đa {MAX_REPORT_DAYS} ngày")


def _days(start: date, end: date):
    d = start
    while d <= end:
        yield d
        d += timedelta(days=1)


class ReportService:
    """Dashboard and report aggregates. Nothing here writes."""

    def __init__(self, reports: ReportRepository, salaries: SalaryService, users: UserService):
        self._reports = reports
        self._salaries = salaries
        self._users = users

    def revenue_report(self, *, start: date, end: date) -> ReportData:
        _check_range(start, end)
        by_day = {r["day"]: r for r in self._reports.revenue_by_day(start=start, end=end)}

        rows: list[dict] = []
        for d in _days(start, end):
            r = by_day.get(d)
            rows.append(
                {
                    "day": d.strftime("%Y-%m-%d"),
                    "payments": r["payments"] if r else 0,
                    "total": to_money(r["total"]) if r else Decimal("0"),
                }
            )

        total = sum((r["total"] for r in rows), Decimal("0"))
        payments = sum(r["payments"] for r in rows)
        return ReportData(
            rows=rows,
            summary={
                "start": start.strftime("%Y-%m-%d"),
                "end": end.strftime("%Y-%m-%d"),
                "total": to_money(total),
                "payments": payments,
                "average_per_day": to_money(total / len(rows)),
            },
        )

    def monthly_revenue(self, year: int) -> list[dict]:
        found = {r["month"]: r for r in self._reports.revenue_by_month(int(year))}
        return [
            {
                "month": f"{int(year):04d}-{m:02d}",
                "total": to_money(found[m]["total"]) if m in found else Decimal("0"),
                "payments": found[m]["payments"] if m in found else 0,
            }
            for m in range(1, 13)
        ]

    def revenue_by_method(self, *, start: date, end: date) -> list[dict]:
        _check_range(start, end)
        rows = list(self._reports.revenue_by_method(start=start, end=end))
        grand = sum((r["total"] for r in rows), Decimal("0"))
        out = []
        for r in rows:
            share = (r["total"] / grand * 100).quantize(Decimal("0.1")) if grand else Decimal("0")
            out.append({"method": r["method"], "total": to_money(r["total"]), "payments": r["payments"], "percent": share})
        return out

    def active_member_count(self, *, today: Optional[date] = None) -> int:
        return self._reports.count_active_members(today or date.today())

    def new_member_count(self, *, start: date, end: date) -> int:
        _check_range(start, end)
        return self._reports.count_new_members(start=start, end=end)

    def checkin_report(self, *, start: date, end: date) -> ReportData:
        _check_range(start, end)
        by_day = {r["day"]: r["checkins"] for r in self._reports.checkins_by_day(start=start, end=end)}
        rows = [{"day": d.strftime("%Y-%m-%d"), "checkins": by_day.get(d, 0)} for d in _days(start, end)]
        total = sum(r["checkins"] for r in rows)
        busiest = max(rows, key=lambda r: r["checkins"]) if total else None
        return ReportData(
            rows=rows,
            summary={"total": total, "busiest_day": busiest["day"] if busiest else None},
        )

    def popular_classes(self, *, start: date, end: date, limit: int = 5) -> list[dict]:
        _check_range(start, end)
        if limit <= 0:
            raise ValidationError("limit phải lớn hơn 0")
        return [dict(r, revenue=to_money(r["revenue"])) for r in self._reports.popular_classes(start=start, end=end, limit=limit)]

    def trainer_commission_summary(self, month: str) -> list[dict]:
        """One row per active trainer: stored salary when generated, otherwise a live estimate."""
        parse_month(month)
        rows = []
        for trainer in self._users.list_trainers():
            record = self._salaries.get_salary(trainer.user_id, month)
            breakdown = self._salaries.calculate_detailed_commission(trainer.user_id, month)
            rows.append(
                {
                    "trainer_id": trainer.user_id,
                    "full_name": trainer.full_name,
                    "total_revenue": breakdown.total_revenue,
                    "tier_rate": breakdown.tier.rate,
                    "commission": record.commission if record else breakdown.final_commission,
                    "base_salary": record.base_salary if record else None,
                    "generated": record is not None,
                    "paid": bool(record and record.is_paid),
                }
            )
        rows.sort(key=lambda r: r["total_revenue"], reverse=True)
        return rows

    def monthly_financial_summary(self, month: str) -> dict:
        start, end = month_range(month)
        revenue = sum((r["total"] for r in self._reports.revenue_by_day(start=start, end=end)), Decimal("0"))
        refunds = self._reports.refund_total(start=start, end=end)
        salary_cost = sum((r.total for r in self._salaries.list_for_month(month)), Decimal("0"))
        revenue, refunds, salary_cost = to_money(revenue), to_money(refunds), to_money(salary_cost)
        summary = {
            "month": month,
            "revenue": revenue,
            "refunds": refunds,
            "salary_cost": salary_cost,
            "net": revenue - salary_cost,
        }
        logger.info("Financial summary built", extra={"month": month, "net": str(summary["net"])})
        return summary

    def dashboard(self, *, today: Optional[date] = None) -> dict:
        today = today or date.today()
        start = today.replace(day=1)
        revenue = self.revenue_report(start=start, end=today)
        checkins = self._reports.checkins_by_day(start=today, end=today)
        return {
            "month": month_key(today),
            "revenue_this_month": revenue.summary["total"],
            "revenue_today": revenue.rows[-1]["total"],
            "active_members": self.active_member_count(today=today),
            "new_members_this_month": self.new_member_count(start=start, end=today),
            "checkins_today": checkins[0]["checkins"] if checkins else 0,
        }
