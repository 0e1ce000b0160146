from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import User
from .repository import UserRepository

_COLUMNS = """
    user_id, full_name, username, password_hash, role, phone, email,
    joined_on, hired_on, is_active
"""


def _to_user(r: dict) -> User:
    return User(
        user_id=int(r["user_id"]),
        full_name=r["full_name"],
        role=Role(r["role"]),
        joined_on=r["joined_on"],
        username=r.get("username"),
        password_hash=r.get("password_hash"),
        phone=r.get("phone"),
        email=r.get("email"),
        hired_on=r.get("hired_on"),
        is_active=bool(r.get("is_active", 1)),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            r = fetchone(cur)
            return _to_user(r) if r else None

    def get_by_username(self, username: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE username=%s", (username,))
            r = fetchone(cur)
            return _to_user(r) if r else None

    def list_by_role(self, role: Role, *, active_only: bool = True) -> Sequence[User]:
        sql = f"SELECT {_COLUMNS} FROM users WHERE role=%s"
        if active_only:
            sql += " AND is_active=1"
        sql += " ORDER BY full_name"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, (role.value,))
            return [_to_user(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        full_name: str,
        role: Role,
        joined_on: date,
        phone: Optional[str] = None,
        email: Optional[str] = None,
        username: Optional[str] = None,
        password_hash: Optional[str] = None,
        hired_on: Optional[date] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(full_name, username, password_hash, role, phone, email, joined_on, hired_on)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (full_name, username, password_hash, role.value, phone, email, joined_on, hired_on),
            )
            return int(cur.lastrowid)

    def find_guest_joined_on(self, *, phone: str, day: date) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM users
                WHERE role=%s AND phone=%s AND joined_on=%s
                ORDER BY user_id DESC
                LIMIT 1
                """,
                (Role.GUEST.value, phone, day),
            )
            r = fetchone(cur)
            return _to_user(r) if r else None

    def set_active(self, user_id: int, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET is_active=%s WHERE user_id=%s", (1 if is_active else 0, int(user_id)))
            return cur.rowcount > 0
