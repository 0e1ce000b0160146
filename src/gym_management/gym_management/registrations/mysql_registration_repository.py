from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import RegistrationKind, RegistrationStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_money, db_cursor, fetchall, fetchone
from .model import Registration
from .repository import RegistrationRepository

REGISTRATION_COLUMNS = """
    registration_id, member_id, package_id, class_id, kind, start_date, end_date,
    status, fee, status_detail, cancel_reason, created_at
"""


def to_registration(r: dict) -> Registration:
    return Registration(
        registration_id=int(r["registration_id"]),
        member_id=int(r["member_id"]),
        kind=RegistrationKind(r["kind"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        status=RegistrationStatus(r["status"]),
        fee=as_money(r["fee"]),
        package_id=r.get("package_id"),
        class_id=r.get("class_id"),
        status_detail=r.get("status_detail"),
        cancel_reason=r.get("cancel_reason"),
        created_at=r.get("created_at"),
    )


class MySQLRegistrationRepository(RegistrationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, registration_id: int) -> Optional[Registration]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {REGISTRATION_COLUMNS} FROM registrations WHERE registration_id=%s",
                (int(registration_id),),
            )
            r = fetchone(cur)
            return to_registration(r) if r else None

    def list_for_member(self, member_id: int, *, limit: int = 50) -> Sequence[Registration]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {REGISTRATION_COLUMNS} FROM registrations
                WHERE member_id=%s
                ORDER BY created_at DESC, registration_id DESC
                LIMIT %s
                """,
                (int(member_id), int(limit)),
            )
            return [to_registration(r) for r in fetchall(cur)]

    def get_active_package(self, member_id: int) -> Optional[Registration]:
        return self._latest_package(int(member_id), RegistrationStatus.ACTIVE)

    def get_pending_package(self, member_id: int) -> Optional[Registration]:
        return self._latest_package(int(member_id), RegistrationStatus.PENDING_PAYMENT)

    def _latest_package(self, member_id: int, status: RegistrationStatus) -> Optional[Registration]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {REGISTRATION_COLUMNS} FROM registrations
                WHERE member_id=%s AND package_id IS NOT NULL AND status=%s
                ORDER BY end_date DESC
                LIMIT 1
                """,
                (member_id, status.value),
            )
            r = fetchone(cur)
            return to_registration(r) if r else None

    def has_overlapping_class(self, *, member_id: int, class_id: int, start_date: date, end_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 FROM registrations
                WHERE member_id=%s AND class_id=%s
                  AND status IN (%s, %s)
                  AND %s < end_date AND %s > start_date
                LIMIT 1
                """,
                (
                    int(member_id),
                    int(class_id),
                    RegistrationStatus.PENDING_PAYMENT.value,
                    RegistrationStatus.ACTIVE.value,
                    start_date,
                    end_date,
                ),
            )
            return fetchone(cur) is not None

    def count_active_for_class(self, class_id: int, *, on: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS n FROM registrations WHERE class_id=%s AND status=%s AND end_date >= %s",
                (int(class_id), RegistrationStatus.ACTIVE.value, on),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def cancel(self, registration_id: int, *, reason: str, detail: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE registrations
                SET status=%s, cancel_reason=%s, status_detail=%s
                WHERE registration_id=%s AND status IN (%s, %s)
                """,
                (
                    RegistrationStatus.CANCELED.value,
                    reason,
                    detail,
                    int(registration_id),
                    RegistrationStatus.PENDING_PAYMENT.value,
                    RegistrationStatus.ACTIVE.value,
                ),
            )
            return cur.rowcount > 0

    def expire_ended_before(self, day: date) -> Sequence[Registration]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {REGISTRATION_COLUMNS} FROM registrations
                WHERE status=%s AND end_date < %s
                FOR UPDATE
                """,
                (RegistrationStatus.ACTIVE.value, day),
            )
            rows = [to_registration(r) for r in fetchall(cur)]
            if not rows:
                return []

            ids = [r.registration_id for r in rows]
            placeholders = ",".join(["%s"] * len(ids))
            cur.execute(
                f"""
                UPDATE registrations SET status=%s, status_detail=%s
                WHERE registration_id IN ({placeholders}) AND status=%s
                """,
                (RegistrationStatus.EXPIRED.value, "Hết hạn", *ids, RegistrationStatus.ACTIVE.value),
            )
            return rows

    def list_walkins_on(self, day: date) -> Sequence[Registration]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {REGISTRATION_COLUMNS} FROM registrations
                WHERE kind=%s AND start_date=%s
                ORDER BY registration_id
                """,
                (RegistrationKind.WALKIN.value, day),
            )
            return [to_registration(r) for r in fetchall(cur)]
