from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import BookingStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, lock_row
from .model import Booking
from .repository import BookingRepository

_COLUMNS = "booking_id, member_id, class_id, class_date, status, note, created_at"


def _to_booking(r: dict) -> Booking:
    return Booking(
        booking_id=int(r["booking_id"]),
        member_id=int(r["member_id"]),
        class_id=int(r["class_id"]),
        class_date=r["class_date"],
        status=BookingStatus(r["status"]),
        note=r.get("note"),
        created_at=r.get("created_at"),
    )


class MySQLBookingRepository(BookingRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, booking_id: int) -> Optional[Booking]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM bookings WHERE booking_id=%s", (int(booking_id),))
            r = fetchone(cur)
            return _to_booking(r) if r else None

    def list_for_member(self, member_id: int, *, from_date: Optional[date] = None) -> Sequence[Booking]:
        sql = f"SELECT {_COLUMNS} FROM bookings WHERE member_id=%s"
        params: list = [int(member_id)]
        if from_date is not None:
            sql += " AND class_date >= %s"
            params.append(from_date)
        sql += " ORDER BY class_date, booking_id"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_booking(r) for r in fetchall(cur)]

    def list_for_class(self, class_id: int, day: date) -> Sequence[Booking]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM bookings WHERE class_id=%s AND class_date=%s ORDER BY booking_id",
                (int(class_id), day),
            )
            return [_to_booking(r) for r in fetchall(cur)]

    def exists_booked(self, *, member_id: int, class_id: int, day: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 FROM bookings WHERE member_id=%s AND class_id=%s AND class_date=%s AND status=%s LIMIT 1",
                (int(member_id), int(class_id), day, BookingStatus.BOOKED.value),
            )
            return fetchone(cur) is not None

    def count_booked(self, class_id: int, day: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS n FROM bookings WHERE class_id=%s AND class_date=%s AND status=%s",
                (int(class_id), day, BookingStatus.BOOKED.value),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def book_if_available(
        self, *, member_id: int, class_id: int, day: date, capacity: int, note: Optional[str] = None
    ) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            # Row lock on the class serializes concurrent bookings for it.
            lock_row(cur, "gym_classes", class_id)
            cur.execute(
                """
                INSERT INTO bookings(member_id, class_id, class_date, status, note)
                SELECT %s, %s, %s, %s, %s FROM DUAL
                WHERE (
                    SELECT COUNT(*) FROM bookings
                    WHERE class_id=%s AND class_date=%s AND status=%s
                ) < %s
                """,
                (
                    int(member_id),
                    int(class_id),
                    day,
                    BookingStatus.BOOKED.value,
                    note,
                    int(class_id),
                    day,
                    BookingStatus.BOOKED.value,
                    int(capacity),
                ),
            )
            if cur.rowcount == 0:
                return None
            return int(cur.lastrowid)

    def cancel(self, booking_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE bookings SET status=%s WHERE booking_id=%s AND status=%s",
                (BookingStatus.CANCELED.value, int(booking_id), BookingStatus.BOOKED.value),
            )
            return cur.rowcount > 0

    def mark_attended(self, *, member_id: int, class_id: int, day: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE bookings SET status=%s
                WHERE member_id=%s AND class_id=%s AND class_date=%s AND status=%s
                """,
                (BookingStatus.ATTENDED.value, int(member_id), int(class_id), day, BookingStatus.BOOKED.value),
            )
            return cur.rowcount > 0
