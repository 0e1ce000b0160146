from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from .model import NewSalaryRecord, SalaryRecord


class SalaryRepository(Protocol):
    def get(self, salary_id: int) -> Optional[SalaryRecord]:
        raise NotImplementedError

    def get_for_trainer_month(self, *, trainer_id: int, month: str) -> Optional[SalaryRecord]:
        raise NotImplementedError

    def list_for_month(self, month: str) -> Sequence[SalaryRecord]:
        raise NotImplementedError

    def list_for_trainer(self, trainer_id: int, *, limit: int = 24) -> Sequence[SalaryRecord]:
        raise NotImplementedError

    def exists_for_month(self, month: str) -> bool:
        raise NotImplementedError

    def create_many(self, records: Sequence[NewSalaryRecord]) -> int:
        """Insert all records in one transaction (all or nothing)."""

        raise NotImplementedError

    def mark_paid(self, salary_id: int, *, paid_on: date) -> bool:
        """Set paid_on only if still unpaid."""

        raise NotImplementedError

    def delete_unpaid(self, salary_id: int) -> bool:
        raise NotImplementedError


class TrainerRevenueRepository(Protocol):
    """Read-only aggregates over SUCCESS payments attributable to a trainer."""

    def package_revenue(self, *, trainer_id: int, start: date, end: date) -> Decimal:
        """Package payments of members who train in one of the trainer's classes."""

        raise NotImplementedError

    def class_revenue_by_class(self, *, trainer_id: int, start: date, end: date) -> dict[int, Decimal]:
        raise NotImplementedError

    def distinct_students(self, *, trainer_id: int, start: date, end: date) -> int:
        raise NotImplementedError

    def enrolment_periods_by_class(
        self, *, trainer_id: int, start: date, end: date
    ) -> dict[int, list[tuple[date, date]]]:
        """(start_date, end_date) of each ACTIVE-or-finished class registration overlapping [start, end], per class."""

        raise NotImplementedError

    def checkins_by_class(self, *, trainer_id: int, start: date, end: date) -> dict[int, int]:
        raise NotImplementedError
