from pathlib import Path

from src.gym_management.gym_management.database.bootstrap import DEMO_USERS, split_statements
from src.gym_management.gym_management.database.connection import DBConfig

DATABASE_DIR = Path(__file__).resolve().parents[2] / "database"


def test_split_statements_drops_comments_and_database_directives():
    sql = """
    -- header
    CREATE DATABASE IF NOT EXISTS other_db;
    USE other_db;
    CREATE TABLE a (
        id INT PRIMARY KEY -- key
    );
    INSERT INTO a VALUES (1), (2);
    """

    statements = split_statements(sql)

    assert len(statements) == 2
    assert statements[0].startswith("CREATE TABLE a")
    assert statements[1] == "INSERT INTO a VALUES (1), (2)"


def test_split_statements_keeps_semicolon_inside_line():
    statements = split_statements("INSERT INTO notes (body) VALUES ('a;b');\n")

    assert statements == ["INSERT INTO notes (body) VALUES ('a;b')"]


def test_schema_file_splits_into_table_statements():
    statements = split_statements((DATABASE_DIR / "schema.sql").read_text(encoding="utf-8"))

    assert statements
    assert not any(s.upper().startswith(("CREATE DATABASE", "USE ")) for s in statements)
    assert any("CREATE TABLE IF NOT EXISTS users" in s for s in statements)


def test_demo_users_cover_every_role():
    assert {u.role for u in DEMO_USERS} == {"ADMIN", "RECEPTION", "TRAINER", "MEMBER"}
    assert next(u for u in DEMO_USERS if u.role == "TRAINER").hired_on is not None


def test_db_config_defaults_and_connect_kwargs():
    config = DBConfig.from_dict({"host": "db", "password": "pw"})

    assert config.describe() == "root@db:3306/gym_db"
    assert "database" not in config.connect_kwargs(with_database=False)
    assert config.connect_kwargs()["database"] == "gym_db"
    assert config.connect_kwargs()["charset"] == "utf8mb4"
