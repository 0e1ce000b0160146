from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import PaymentStatus, RegistrationKind, RegistrationStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_money, db_cursor, fetchall, fetchone
from .model import NewSalaryRecord, SalaryRecord
from .repository import SalaryRepository, TrainerRevenueRepository

_SALARY_COLUMNS = "salary_id, trainer_id, month, base_salary, commission, paid_on, note, created_at"


def _to_salary(r: dict) -> SalaryRecord:
    return SalaryRecord(
        salary_id=int(r["salary_id"]),
        trainer_id=int(r["trainer_id"]),
        month=r["month"],
        base_salary=as_money(r["base_salary"]),
        commission=as_money(r["commission"]),
        paid_on=r.get("paid_on"),
        note=r.get("note"),
        created_at=r.get("created_at"),
    )


def _period(start: date, end: date) -> tuple[datetime, datetime]:
    return datetime.combine(start, time.min), datetime.combine(end, time.max)


class MySQLSalaryRepository(SalaryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, salary_id: int) -> Optional[SalaryRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SALARY_COLUMNS} FROM salary_records WHERE salary_id=%s", (int(salary_id),))
            r = fetchone(cur)
            return _to_salary(r) if r else None

    def get_for_trainer_month(self, *, trainer_id: int, month: str) -> Optional[SalaryRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SALARY_COLUMNS} FROM salary_records WHERE trainer_id=%s AND month=%s",
                (int(trainer_id), month),
            )
            r = fetchone(cur)
            return _to_salary(r) if r else None

    def list_for_month(self, month: str) -> Sequence[SalaryRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SALARY_COLUMNS} FROM salary_records WHERE month=%s ORDER BY trainer_id",
                (month,),
            )
            return [_to_salary(r) for r in fetchall(cur)]

    def list_for_trainer(self, trainer_id: int, *, limit: int = 24) -> Sequence[SalaryRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SALARY_COLUMNS} FROM salary_records WHERE trainer_id=%s ORDER BY month DESC LIMIT %s",
                (int(trainer_id), int(limit)),
            )
            return [_to_salary(r) for r in fetchall(cur)]

    def exists_for_month(self, month: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 FROM salary_records WHERE month=%s LIMIT 1", (month,))
            return fetchone(cur) is not None

    def create_many(self, records: Sequence[NewSalaryRecord]) -> int:
        if not records:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT INTO salary_records(trainer_id, month, base_salary, commission, note)
                VALUES(%s,%s,%s,%s,%s)
                """,
                [(int(r.trainer_id), r.month, r.base_salary, r.commission, r.note) for r in records],
            )
            return len(records)

    def mark_paid(self, salary_id: int, *, paid_on: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE salary_records SET paid_on=%s WHERE salary_id=%s AND paid_on IS NULL",
                (paid_on, int(salary_id)),
            )
            return cur.rowcount > 0

    def delete_unpaid(self, salary_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM salary_records WHERE salary_id=%s AND paid_on IS NULL", (int(salary_id),))
            return cur.rowcount > 0


class MySQLTrainerRevenueRepository(TrainerRevenueRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def package_revenue(self, *, trainer_id: int, start: date, end: date) -> Decimal:
        start_dt, end_dt = _period(start, end)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COALESCE(SUM(p.amount), 0) AS total
                FROM payments p
                JOIN registrations r ON r.registration_id = p.registration_id
                WHERE p.status=%s AND p.paid_at BETWEEN %s AND %s
                  AND r.kind=%s
                  AND EXISTS (
                      SELECT 1 FROM registrations cr
                      JOIN gym_classes c ON c.class_id = cr.class_id
                      WHERE cr.member_id = r.member_id
                        AND c.trainer_id = %s
                        AND cr.status IN (%s, %s)
                        AND cr.start_date <= r.end_date AND cr.end_date >= r.start_date
                  )
                """,
                (
                    PaymentStatus.SUCCESS.value,
                    start_dt,
                    end_dt,
                    RegistrationKind.PACKAGE.value,
                    int(trainer_id),
                    RegistrationStatus.ACTIVE.value,
                    RegistrationStatus.EXPIRED.value,
                ),
            )
            r = fetchone(cur)
            return as_money(r["total"] if r else 0)

    def class_revenue_by_class(self, *, trainer_id: int, start: date, end: date) -> dict[int, Decimal]:
        start_dt, end_dt = _period(start, end)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT r.class_id, COALESCE(SUM(p.amount), 0) AS total
                FROM payments p
                JOIN registrations r ON r.registration_id = p.registration_id
                JOIN gym_classes c ON c.class_id = r.class_id
                WHERE p.status=%s AND p.paid_at BETWEEN %s AND %s
                  AND r.kind=%s AND c.trainer_id=%s
                GROUP BY r.class_id
                """,
                (
                    PaymentStatus.SUCCESS.value,
                    start_dt,
                    end_dt,
                    RegistrationKind.CLASS.value,
                    int(trainer_id),
                ),
            )
            return {int(r["class_id"]): as_money(r["total"]) for r in fetchall(cur)}

    def distinct_students(self, *, trainer_id: int, start: date, end: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(DISTINCT r.member_id) AS n
                FROM registrations r
                JOIN gym_classes c ON c.class_id = r.class_id
                WHERE c.trainer_id=%s
                  AND r.status IN (%s, %s)
                  AND r.start_date <= %s AND r.end_date >= %s
                """,
                (
                    int(trainer_id),
                    RegistrationStatus.ACTIVE.value,
                    RegistrationStatus.EXPIRED.value,
                    end,
                    start,
                ),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def enrolment_periods_by_class(
        self, *, trainer_id: int, start: date, end: date
    ) -> dict[int, list[tuple[date, date]]]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT r.class_id, r.start_date, r.end_date
                FROM registrations r
                JOIN gym_classes c ON c.class_id = r.class_id
                WHERE c.trainer_id=%s
                  AND r.status IN (%s, %s)
                  AND r.start_date <= %s AND r.end_date >= %s
                """,
                (
                    int(trainer_id),
                    RegistrationStatus.ACTIVE.value,
                    RegistrationStatus.EXPIRED.value,
                    end,
                    start,
                ),
            )
            periods: dict[int, list[tuple[date, date]]] = {}
            for r in fetchall(cur):
                periods.setdefault(int(r["class_id"]), []).append((r["start_date"], r["end_date"]))
            return periods

    def checkins_by_class(self, *, trainer_id: int, start: date, end: date) -> dict[int, int]:
        start_dt, end_dt = _period(start, end)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT ci.class_id, COUNT(*) AS n
                FROM checkins ci
                JOIN gym_classes c ON c.class_id = ci.class_id
                WHERE c.trainer_id=%s AND ci.checked_in_at BETWEEN %s AND %s
                GROUP BY ci.class_id
                """,
                (int(trainer_id), start_dt, end_dt),
            )
            return {int(r["class_id"]): int(r["n"]) for r in fetchall(cur)}
