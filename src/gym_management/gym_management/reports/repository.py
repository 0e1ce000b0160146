from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Protocol, Sequence


class ReportRepository(Protocol):
    """Read-only aggregates. Revenue always means SUCCESS payments by paid_at."""

    def revenue_by_day(self, *, start: date, end: date) -> Sequence[dict]:
        """Rows: {day, total, payments}."""

        raise NotImplementedError

    def revenue_by_month(self, year: int) -> Sequence[dict]:
        """Rows: {month (1-12), total, payments}."""

        raise NotImplementedError

    def revenue_by_method(self, *, start: date, end: date) -> Sequence[dict]:
        """Rows: {method, total, payments}."""

        raise NotImplementedError

    def refund_total(self, *, start: date, end: date) -> Decimal:
        raise NotImplementedError

    def count_active_members(self, on: date) -> int:
        raise NotImplementedError

    def count_new_members(self, *, start: date, end: date) -> int:
        raise NotImplementedError

    def checkins_by_day(self, *, start: date, end: date) -> Sequence[dict]:
        """Rows: {day, checkins}."""

        raise NotImplementedError

    def popular_classes(self, *, start: date, end: date, limit: int) -> Sequence[dict]:
        """Rows: {class_id, class_name, registrations, revenue}, most registrations first."""

        raise NotImplementedError
