"""Cursor/transaction helper and row converters shared by the MySQL repositories."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import time, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from ..common.money import to_money
from .connection import DatabaseConnection

# Rows that serialize concurrent writers (capacity checks, one check-in per day).
_LOCK_KEYS = {
    "gym_classes": "class_id",
    "users": "user_id",
}


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """One transaction: commit when the block exits cleanly, rollback otherwise."""
    conn = conn_factory.connect()
    cur = conn.cursor(dictionary=dictionary)
    try:
        yield conn, cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        cur.close()
        conn.close()


def lock_row(cur, table: str, key: int) -> bool:
    """``SELECT ... FOR UPDATE`` on one row; held until the surrounding transaction ends."""
    column = _LOCK_KEYS[table]
    cur.execute(f"SELECT {column} FROM {table} WHERE {column}=%s FOR UPDATE", (int(key),))
    return cur.fetchone() is not None


def fetchone(cur) -> Optional[Dict[str, Any]]:
    return cur.fetchone() or None


def fetchall(cur) -> List[Dict[str, Any]]:
    return list(cur.fetchall() or [])


def as_money(value: Any) -> Decimal:
    """DECIMAL/NULL column -> whole VND (NULL sums come back as 0)."""
    if value is None:
        return Decimal("0")
    return to_money(value)


def as_time(value: Any) -> Optional[time]:
    """TIME column -> ``datetime.time``.

    The connector returns TIME as ``timedelta``; "HH:MM[:SS]" strings are accepted too.
    """
    if value is None or isinstance(value, time):
        return value
    if isinstance(value, timedelta):
        seconds = int(value.total_seconds()) % 86400
        return time(seconds // 3600, (seconds % 3600) // 60, seconds % 60)
    if isinstance(value, str):
        parts = [int(p) for p in value.strip().split(":") if p]
        if len(parts) < 2:
            raise ValueError(f"Invalid TIME value: {value!r}")
        return time(*parts[:3])
    raise TypeError(f"Unsupported TIME value: {type(value)!r}")
