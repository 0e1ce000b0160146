from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

import mysql.connector
from mysql.connector import pooling


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    pool_size: int = 5

    @classmethod
    def from_dict(cls, db_config: Mapping) -> "DBConfig":
        return cls(
            host=str(db_config.get("host", "localhost")),
            port=int(db_config.get("port", 3306)),
            user=str(db_config.get("user", "root")),
            password=str(db_config.get("password", "")),
            database=str(db_config.get("database", "gym_db")),
            pool_size=int(db_config.get("pool_size", 5)),
        )

    def connect_kwargs(self, *, with_database: bool = True) -> dict:
        kwargs = {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "charset": "utf8mb4",
            "collation": "utf8mb4_unicode_ci",
        }
        if with_database:
            kwargs["database"] = self.database
        return kwargs

    def describe(self) -> str:
        return f"{self.user}@{self.host}:{self.port}/{self.database}"


class DatabaseConnection:
    """Hands out pooled connections; each ``db_cursor`` block borrows one and gives it back.

    The pool is created lazily so building the app does not need a reachable DB.
    """

    def __init__(self, config: DBConfig):
        self.config = config
        self._pool: pooling.MySQLConnectionPool | None = None

    def connect(self):
        if self.config.pool_size <= 0:
            return mysql.connector.connect(**self.config.connect_kwargs())
        if self._pool is None:
            self._pool = pooling.MySQLConnectionPool(
                pool_name=f"gym_{self.config.database}",
                pool_size=self.config.pool_size,
                **self.config.connect_kwargs(),
            )
        return self._pool.get_connection()
