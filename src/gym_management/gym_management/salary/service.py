from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional, Sequence

from ..catalog.model import GymClass
from ..catalog.repository import CatalogRepository
from ..common.datetime_utils import add_months, month_range, parse_month
from ..common.money import format_vnd
from ..core.constants import SALARY_MAX_MONTHS_AHEAD, SALARY_MIN_YEAR
from ..core.enums import Role
from ..core.exceptions import NotFoundError, ValidationError
from ..notifications.service import NotificationService
from ..users.model import User
from ..users.repository import UserRepository
from .calculator.base import CommissionCalculator
from .calculator.tiered_calculator import TieredCommissionCalculator
from .config import DEFAULT_BASE_SALARY_SCALE, base_salary_for
from .model import CommissionBreakdown, NewSalaryRecord, SalaryRecord, TrainerMonthStats
from .repository import SalaryRepository, TrainerRevenueRepository

logger = logging.getLogger(__name__)


def _sessions_in_period(gym_class: GymClass, start: date, end: date) -> int:
    if gym_class.is_fixed_schedule:
        start = max(start, gym_class.course_start)
        end = min(end, gym_class.course_end)
    count = 0
    day = start
    while day <= end:
        if gym_class.runs_on(day):
            count += 1
        day += timedelta(days=1)
    return count


class SalaryService:
    def __init__(
        self,
        salaries: SalaryRepository,
        revenue: TrainerRevenueRepository,
        catalog: CatalogRepository,
        users: UserRepository,
        notifications: NotificationService,
        *,
        calculator: Optional[CommissionCalculator] = None,
        base_salary_scale=DEFAULT_BASE_SALARY_SCALE,
    ):
        self._salaries = salaries
        self._revenue = revenue
        self._catalog = catalog
        self._users = users
        self._notifications = notifications
        self._calculator = calculator or TieredCommissionCalculator()
        self._base_salary_scale = base_salary_scale

    @staticmethod
    def validate_month(month: str, *, today: Optional[date] = None) -> str:
        today = today or date.today()
        year, mon = parse_month(month)
        if year < SALARY_MIN_YEAR:
            raise ValidationError(f"Năm phải từ {SALARY_MIN_YEAR} trở đi")
        latest = add_months(today.replace(day=1), SALARY_MAX_MONTHS_AHEAD)
        if date(year, mon, 1) > latest:
            raise ValidationError(f"Không thể tạo bảng lương quá {SALARY_MAX_MONTHS_AHEAD} tháng trong tương lai")
        return f"{year:04d}-{mon:02d}"

    # -------- Commission --------
    def build_stats(self, trainer_id: int, month: str) -> TrainerMonthStats:
        start, end = month_range(month)
        classes = {c.class_id: c for c in self._catalog.list_classes(trainer_id=int(trainer_id))}

        class_revenue = Decimal("0")
        personal_revenue = Decimal("0")
        for class_id, amount in self._revenue.class_revenue_by_class(trainer_id=trainer_id, start=start, end=end).items():
            gym_class = classes.get(class_id)
            if gym_class is not None and gym_class.is_personal_training:
                personal_revenue += amount
            else:
                class_revenue += amount

        periods = self._revenue.enrolment_periods_by_class(trainer_id=trainer_id, start=start, end=end)
        checkins = self._revenue.checkins_by_class(trainer_id=trainer_id, start=start, end=end)
        # Each registration only counts the sessions it covers inside the month.
        expected = sum(
            _sessions_in_period(classes[cid], max(start, reg_start), min(end, reg_end))
            for cid, spans in periods.items()
            if cid in classes
            for reg_start, reg_end in spans
        )
        attended = sum(checkins.values())
        rate = Decimal("0")
        if expected > 0:
            rate = min(Decimal(attended) / Decimal(expected), Decimal("1"))

        return TrainerMonthStats(
            package_revenue=self._revenue.package_revenue(trainer_id=trainer_id, start=start, end=end),
            class_revenue=class_revenue,
            personal_revenue=personal_revenue,
            student_count=self._revenue.distinct_students(trainer_id=trainer_id, start=start, end=end),
            attendance_rate=rate.quantize(Decimal("0.0001")),
        )

    def calculate_detailed_commission(self, trainer_id: int, month: str) -> CommissionBreakdown:
        parse_month(month)
        breakdown = self._calculator.calculate(self.build_stats(int(trainer_id), month))
        logger.info(
            "Commission calculated",
            extra={
                "trainer_id": trainer_id,
                "month": month,
                "total_revenue": str(breakdown.total_revenue),
                "final_commission": str(breakdown.final_commission),
                "capped": breakdown.is_capped,
            },
        )
        return breakdown

    # -------- Salary records --------
    def get_salary(self, trainer_id: int, month: str) -> Optional[SalaryRecord]:
        """None means the month has not been generated yet for this trainer."""
        return self._salaries.get_for_trainer_month(trainer_id=int(trainer_id), month=month)

    def get_by_id(self, salary_id: int) -> SalaryRecord:
        record = self._salaries.get(int(salary_id))
        if not record:
            raise NotFoundError("Không tìm thấy bảng lương")
        return record

    def list_for_month(self, month: str) -> Sequence[SalaryRecord]:
        parse_month(month)
        return self._salaries.list_for_month(month)

    def list_for_trainer(self, trainer_id: int) -> Sequence[SalaryRecord]:
        return self._salaries.list_for_trainer(int(trainer_id))

    def base_salary(self, trainer: User, *, today: date) -> Decimal:
        return base_salary_for(trainer.years_of_service(today), self._base_salary_scale)

    def generate_monthly_salaries(self, month: str, *, today: Optional[date] = None) -> int:
        today = today or date.today()
        month = self.validate_month(month, today=today)

        if self._salaries.exists_for_month(month):
            raise ValidationError(f"Bảng lương cho tháng {month} đã được tạo trước đó. Không thể tạo lại.")

        trainers = self._users.list_by_role(Role.TRAINER)
        if not trainers:
            raise ValidationError("Không tìm thấy huấn luyện viên nào trong hệ thống để tạo bảng lương.")

        _, month_end = month_range(month)
        records: list[NewSalaryRecord] = []
        for trainer in trainers:
            breakdown = self.calculate_detailed_commission(trainer.user_id, month)
            records.append(
                NewSalaryRecord(
                    trainer_id=trainer.user_id,
                    month=month,
                    base_salary=self.base_salary(trainer, today=min(today, month_end)),
                    commission=breakdown.final_commission,
                    note=f"Doanh thu {format_vnd(breakdown.total_revenue)} VNĐ, {breakdown.student_count} học viên",
                )
            )

        created = self._salaries.create_many(records)
        logger.info("Monthly salaries generated", extra={"month": month, "count": created})

        for rec in records:
            self._notifications.notify(
                rec.trainer_id,
                f"Bảng lương tháng {month}",
                f"Lương cơ bản {format_vnd(rec.base_salary)} VNĐ, hoa hồng {format_vnd(rec.commission)} VNĐ.",
            )
        return created

    def pay_salary(self, salary_id: int, *, paid_on: Optional[date] = None) -> bool:
        record = self.get_by_id(salary_id)
        if record.is_paid:
            raise ValidationError("Bảng lương đã được thanh toán")
        paid_on = paid_on or date.today()
        if not self._salaries.mark_paid(record.salary_id, paid_on=paid_on):
            return False

        logger.info("Salary paid", extra={"salary_id": record.salary_id, "trainer_id": record.trainer_id})
        self._notifications.notify(
            record.trainer_id,
            f"Đã thanh toán lương tháng {record.month}",
            f"Tổng {format_vnd(record.total)} VNĐ đã được thanh toán ngày {paid_on:%d/%m/%Y}.",
        )
        return True

    def pay_all_for_month(self, month: str, *, paid_on: Optional[date] = None) -> int:
        paid = 0
        for record in self.list_for_month(month):
            if not record.is_paid and self.pay_salary(record.salary_id, paid_on=paid_on):
                paid += 1
        return paid

    def delete_salary(self, salary_id: int) -> bool:
        record = self.get_by_id(salary_id)
        if record.is_paid:
            raise ValidationError("Không thể xóa bảng lương đã thanh toán")
        return self._salaries.delete_unpaid(record.salary_id)
