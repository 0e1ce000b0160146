from __future__ import annotations

import json
from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import CheckInMethod
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, lock_row
from .model import CheckIn, FaceSample
from .repository import CheckInRepository, FaceSampleRepository

_COLUMNS = "checkin_id, member_id, class_id, checked_in_at, checked_out_at, method, confidence, note"


def _to_checkin(r: dict) -> CheckIn:
    return CheckIn(
        checkin_id=int(r["checkin_id"]),
        member_id=int(r["member_id"]),
        class_id=int(r["class_id"]) if r.get("class_id") is not None else None,
        checked_in_at=r["checked_in_at"],
        checked_out_at=r.get("checked_out_at"),
        method=CheckInMethod(r["method"]),
        confidence=float(r["confidence"]) if r.get("confidence") is not None else None,
        note=r.get("note"),
    )


class MySQLCheckInRepository(CheckInRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, checkin_id: int) -> Optional[CheckIn]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM checkins WHERE checkin_id=%s", (int(checkin_id),))
            r = fetchone(cur)
            return _to_checkin(r) if r else None

    def get_for_day(self, member_id: int, day: date) -> Optional[CheckIn]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM checkins
                WHERE member_id=%s AND DATE(checked_in_at)=%s
                ORDER BY checked_in_at DESC LIMIT 1
                """,
                (int(member_id), day),
            )
            r = fetchone(cur)
            return _to_checkin(r) if r else None

    def create_if_absent_for_day(
        self,
        *,
        member_id: int,
        checked_in_at: datetime,
        method: CheckInMethod,
        class_id: Optional[int] = None,
        confidence: Optional[float] = None,
        note: Optional[str] = None,
    ) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            # Lock the member row so two terminals cannot both pass the NOT EXISTS check.
            lock_row(cur, "users", member_id)
            cur.execute(
                """
                INSERT INTO checkins(member_id, class_id, checked_in_at, method, confidence, note)
                SELECT %s, %s, %s, %s, %s, %s FROM DUAL
                WHERE NOT EXISTS (
                    SELECT 1 FROM checkins WHERE member_id=%s AND DATE(checked_in_at)=%s
                )
                """,
                (
                    int(member_id),
                    class_id,
                    checked_in_at,
                    method.value,
                    confidence,
                    note,
                    int(member_id),
                    checked_in_at.date(),
                ),
            )
            if cur.rowcount == 0:
                return None
            return int(cur.lastrowid)

    def check_out(self, checkin_id: int, *, at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE checkins SET checked_out_at=%s WHERE checkin_id=%s AND checked_out_at IS NULL",
                (at, int(checkin_id)),
            )
            return cur.rowcount > 0

    def list_for_day(self, day: date) -> Sequence[CheckIn]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM checkins WHERE DATE(checked_in_at)=%s ORDER BY checked_in_at",
                (day,),
            )
            return [_to_checkin(r) for r in fetchall(cur)]

    def list_for_member(self, member_id: int, *, limit: int = 50) -> Sequence[CheckIn]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM checkins WHERE member_id=%s ORDER BY checked_in_at DESC LIMIT %s",
                (int(member_id), int(limit)),
            )
            return [_to_checkin(r) for r in fetchall(cur)]


class MySQLFaceSampleRepository(FaceSampleRepository):
    """Descriptors are stored as a JSON array of floats."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_all(self) -> Sequence[FaceSample]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT user_id, descriptor FROM face_samples ORDER BY user_id")
            return [
                FaceSample(user_id=int(r["user_id"]), descriptor=tuple(float(x) for x in json.loads(r["descriptor"])))
                for r in fetchall(cur)
            ]

    def save(self, sample: FaceSample) -> None:
        payload = json.dumps(list(sample.descriptor))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO face_samples(user_id, descriptor) VALUES (%s, %s)
                ON DUPLICATE KEY UPDATE descriptor=VALUES(descriptor)
                """,
                (int(sample.user_id), payload),
            )

    def delete(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM face_samples WHERE user_id=%s", (int(user_id),))
            return cur.rowcount > 0
