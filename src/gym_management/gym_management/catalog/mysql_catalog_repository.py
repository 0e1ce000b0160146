from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import ClassStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_money, as_time, db_cursor, fetchall, fetchone
from .model import GymClass, Package, Promotion
from .repository import CatalogRepository


def _to_package(r: dict) -> Package:
    return Package(
        package_id=int(r["package_id"]),
        name=r["name"],
        duration_months=int(r["duration_months"]),
        price=as_money(r["price"]),
        max_sessions=r.get("max_sessions"),
        description=r.get("description"),
    )


def _to_class(r: dict) -> GymClass:
    return GymClass(
        class_id=int(r["class_id"]),
        name=r["name"],
        trainer_id=r.get("trainer_id"),
        capacity=int(r["capacity"]),
        start_time=as_time(r["start_time"]),
        end_time=as_time(r["end_time"]),
        weekdays=r.get("weekdays") or "",
        status=ClassStatus(r["status"]),
        custom_price=as_money(r["custom_price"]) if r.get("custom_price") is not None else None,
        course_start=r.get("course_start"),
        course_end=r.get("course_end"),
        description=r.get("description"),
    )


def _to_promotion(r: dict) -> Promotion:
    return Promotion(
        promotion_id=int(r["promotion_id"]),
        code=r["code"],
        percent=r.get("percent"),
        start_date=r["start_date"],
        end_date=r["end_date"],
        is_active=bool(r["is_active"]),
        description=r.get("description"),
    )


_CLASS_COLUMNS = """
    class_id, name, trainer_id, capacity, start_time, end_time, weekdays,
    status, custom_price, course_start, course_end, description
"""


class MySQLCatalogRepository(CatalogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # -------- Packages --------
    def get_package(self, package_id: int) -> Optional[Package]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT package_id, name, duration_months, max_sessions, price, description FROM packages WHERE package_id=%s",
                (int(package_id),),
            )
            r = fetchone(cur)
            return _to_package(r) if r else None

    def list_packages(self) -> Sequence[Package]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT package_id, name, duration_months, max_sessions, price, description FROM packages ORDER BY price"
            )
            return [_to_package(r) for r in fetchall(cur)]

    # -------- Classes --------
    def get_class(self, class_id: int) -> Optional[GymClass]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_CLASS_COLUMNS} FROM gym_classes WHERE class_id=%s", (int(class_id),))
            r = fetchone(cur)
            return _to_class(r) if r else None

    def list_classes(self, *, trainer_id: Optional[int] = None) -> Sequence[GymClass]:
        sql = f"SELECT {_CLASS_COLUMNS} FROM gym_classes"
        params: list = []
        if trainer_id is not None:
            sql += " WHERE trainer_id=%s"
            params.append(int(trainer_id))
        sql += " ORDER BY name"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_class(r) for r in fetchall(cur)]

    # -------- Promotions --------
    def get_promotion(self, promotion_id: int) -> Optional[Promotion]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT promotion_id, code, description, percent, start_date, end_date, is_active
                FROM promotions WHERE promotion_id=%s
                """,
                (int(promotion_id),),
            )
            r = fetchone(cur)
            return _to_promotion(r) if r else None

    def get_promotion_by_code(self, code: str) -> Optional[Promotion]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT promotion_id, code, description, percent, start_date, end_date, is_active
                FROM promotions WHERE code=%s
                """,
                (code,),
            )
            r = fetchone(cur)
            return _to_promotion(r) if r else None

    def deactivate_promotions_ended_before(self, day: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE promotions SET is_active=0 WHERE is_active=1 AND end_date < %s", (day,))
            return int(cur.rowcount)
