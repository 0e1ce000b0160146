"""Schema/seed loader used by ``scripts/manage_db.py`` and the AUTO_INIT_DB startup hook."""

from __future__ import annotations

import logging
import re
from contextlib import closing
from datetime import date
from pathlib import Path
from typing import List, NamedTuple, Optional

import mysql.connector
from werkzeug.security import generate_password_hash

from .connection import DBConfig

logger = logging.getLogger(__name__)

# The configured DB_NAME wins over whatever the .sql file hardcodes.
_DATABASE_DIRECTIVES = re.compile(r"^\s*(CREATE\s+DATABASE|USE)\b[^;]*;\s*$", re.IGNORECASE | re.MULTILINE)
_COMMENT_LINE = re.compile(r"^\s*--.*$", re.MULTILINE)
# Statements in schema.sql/seed.sql end with ';' at end of line.
_STATEMENT_END = re.compile(r";\s*$", re.MULTILINE)


class DemoUser(NamedTuple):
    full_name: str
    username: str
    password: str
    role: str
    hired_on: Optional[date] = None


DEMO_USERS = (
    DemoUser("Quản trị viên", "admin", "admin123", "ADMIN"),
    DemoUser("Lễ tân Demo", "reception", "reception123", "RECEPTION"),
    DemoUser("HLV Trần Minh", "trainer", "trainer123", "TRAINER", date(2021, 3, 1)),
    DemoUser("Nguyễn Văn A", "member", "member123", "MEMBER"),
)


def split_statements(sql: str) -> List[str]:
    sql = _COMMENT_LINE.sub("", _DATABASE_DIRECTIVES.sub("", sql))
    return [stmt.strip() for stmt in _STATEMENT_END.split(sql) if stmt.strip()]


def _open(db_config: dict, *, with_database: bool = True):
    config = DBConfig.from_dict(db_config)
    return mysql.connector.connect(**config.connect_kwargs(with_database=with_database))


def _execute_file(db_config: dict, path) -> int:
    statements = split_statements(Path(path).read_text(encoding="utf-8"))
    with closing(_open(db_config)) as conn:
        cur = conn.cursor()
        for stmt in statements:
            cur.execute(stmt)
        conn.commit()
    logger.info("Executed SQL file", extra={"path": str(path), "statements": len(statements)})
    return len(statements)


def ensure_database_exists(db_config: dict) -> None:
    config = DBConfig.from_dict(db_config)
    with closing(_open(db_config, with_database=False)) as conn:
        conn.cursor().execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()


def apply_schema(db_config: dict, *, schema_path) -> int:
    ensure_database_exists(db_config)
    return _execute_file(db_config, schema_path)


def apply_seed_sql(db_config: dict, *, seed_path) -> int:
    return _execute_file(db_config, seed_path)


def ensure_demo_users(db_config: dict) -> None:
    """Create the demo accounts, or reset their password/role if they already exist."""
    with closing(_open(db_config)) as conn:
        cur = conn.cursor()
        for user in DEMO_USERS:
            cur.execute(
                """
                INSERT INTO users (full_name, username, password_hash, role, hired_on, joined_on, is_active)
                VALUES (%s, %s, %s, %s, %s, CURDATE(), 1)
                ON DUPLICATE KEY UPDATE
                    full_name=VALUES(full_name), password_hash=VALUES(password_hash),
                    role=VALUES(role), hired_on=VALUES(hired_on), is_active=1
                """,
                (user.full_name, user.username, generate_password_hash(user.password), user.role, user.hired_on),
            )
        conn.commit()


def list_tables(db_config: dict) -> List[str]:
    with closing(_open(db_config)) as conn:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
