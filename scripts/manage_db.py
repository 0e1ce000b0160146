"""Database maintenance for gym-management.

    python scripts/manage_db.py init     # create database + tables from database/schema.sql
    python scripts/manage_db.py seed     # packages/promotions from database/seed.sql + demo accounts
    python scripts/manage_db.py tables   # list tables
"""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.gym_management.gym_management.database.bootstrap import (
    DEMO_USERS,
    apply_schema,
    apply_seed_sql,
    ensure_demo_users,
    list_tables,
)
from src.gym_management.gym_management.database.connection import DBConfig

DATABASE_DIR = REPO_ROOT / "database"


def main() -> None:
    parser = argparse.ArgumentParser(description="Gym database maintenance")
    parser.add_argument("command", choices=("init", "seed", "tables"))
    args = parser.parse_args()

    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)
    target = DBConfig.from_dict(db_config).describe()

    if args.command == "init":
        count = apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
        print(f"OK: schema.sql ({count} statements) -> {target}")
    elif args.command == "seed":
        apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
        ensure_demo_users(db_config)
        print(f"OK: seeded {target}; demo accounts: {', '.join(u.username for u in DEMO_USERS)}")

    tables = list_tables(db_config)
    print(f"{target}: {len(tables)} tables ({', '.join(tables)})")


if __name__ == "__main__":
    main()
