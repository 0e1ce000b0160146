from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Sequence

from ..core.enums import PaymentStatus, RegistrationStatus, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_money, db_cursor, fetchall, fetchone
from .repository import ReportRepository


class MySQLReportRepository(ReportRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def revenue_by_day(self, *, start: date, end: date) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT DATE(paid_at) AS day, COALESCE(SUM(amount), 0) AS total, COUNT(*) AS payments
                FROM payments
                WHERE status=%s AND DATE(paid_at) BETWEEN %s AND %s
                GROUP BY DATE(paid_at)
                ORDER BY day
                """,
                (PaymentStatus.SUCCESS.value, start, end),
            )
            return [
                {"day": r["day"], "total": as_money(r["total"]), "payments": int(r["payments"])}
                for r in fetchall(cur)
            ]

    def revenue_by_month(self, year: int) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT MONTH(paid_at) AS month, COALESCE(SUM(amount), 0) AS total, COUNT(*) AS payments
                FROM payments
                WHERE status=%s AND YEAR(paid_at)=%s
                GROUP BY MONTH(paid_at)
                ORDER BY month
                """,
                (PaymentStatus.SUCCESS.value, int(year)),
            )
            return [
                {"month": int(r["month"]), "total": as_money(r["total"]), "payments": int(r["payments"])}
                for r in fetchall(cur)
            ]

    def revenue_by_method(self, *, start: date, end: date) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT method, COALESCE(SUM(amount), 0) AS total, COUNT(*) AS payments
                FROM payments
                WHERE status=%s AND DATE(paid_at) BETWEEN %s AND %s
                GROUP BY method
                ORDER BY total DESC
                """,
                (PaymentStatus.SUCCESS.value, start, end),
            )
            return [
                {"method": r["method"], "total": as_money(r["total"]), "payments": int(r["payments"])}
                for r in fetchall(cur)
            ]

    def refund_total(self, *, start: date, end: date) -> Decimal:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COALESCE(SUM(amount), 0) AS total FROM payments
                WHERE status=%s AND DATE(paid_at) BETWEEN %s AND %s
                """,
                (PaymentStatus.REFUND.value, start, end),
            )
            r = fetchone(cur)
            return as_money(r["total"] if r else None)

    def count_active_members(self, on: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(DISTINCT r.member_id) AS n
                FROM registrations r
                JOIN users u ON u.user_id = r.member_id
                WHERE r.status=%s AND r.start_date <= %s AND r.end_date >= %s AND u.role=%s
                """,
                (RegistrationStatus.ACTIVE.value, on, on, Role.MEMBER.value),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def count_new_members(self, *, start: date, end: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS n FROM users WHERE role=%s AND joined_on BETWEEN %s AND %s",
                (Role.MEMBER.value, start, end),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def checkins_by_day(self, *, start: date, end: date) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT DATE(checked_in_at) AS day, COUNT(*) AS checkins
                FROM checkins
                WHERE DATE(checked_in_at) BETWEEN %s AND %s
                GROUP BY DATE(checked_in_at)
                ORDER BY day
                """,
                (start, end),
            )
            return [{"day": r["day"], "checkins": int(r["checkins"])} for r in fetchall(cur)]

    def popular_classes(self, *, start: date, end: date, limit: int) -> Sequence[dict]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT c.class_id, c.name AS class_name,
                       COUNT(DISTINCT r.registration_id) AS registrations,
                       COALESCE(SUM(CASE WHEN p.status=%s THEN p.amount ELSE 0 END), 0) AS revenue
                FROM gym_classes c
                JOIN registrations r ON r.class_id = c.class_id
                LEFT JOIN payments p ON p.registration_id = r.registration_id
                WHERE r.status IN (%s, %s) AND DATE(r.created_at) BETWEEN %s AND %s
                GROUP BY c.class_id, c.name
                ORDER BY registrations DESC, revenue DESC, c.class_id
                LIMIT %s
                """,
                (
                    PaymentStatus.SUCCESS.value,
                    RegistrationStatus.ACTIVE.value,
                    RegistrationStatus.EXPIRED.value,
                    start,
                    end,
                    int(limit),
                ),
            )
            return [
                {
                    "class_id": int(r["class_id"]),
                    "class_name": r["class_name"],
                    "registrations": int(r["registrations"]),
                    "revenue": as_money(r["revenue"]),
                }
                for r in fetchall(cur)
            ]
