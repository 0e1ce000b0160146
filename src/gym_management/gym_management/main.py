from __future__ import annotations

import importlib
import logging
from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .core.constants import DEFAULT_CLASS_PRICE, DEFAULT_WALKIN_PASS_PRICE, FACE_MATCH_THRESHOLD
from .core.logger import configure_logging
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables
from .database.connection import DBConfig

from .container import build_container
from .bookings.controller import register as register_bookings
from .checkin.controller import register as register_checkin
from .notifications.controller import register as register_notifications
from .payments.controller import register as register_payments
from .registrations.controller import register as register_registrations
from .reports.controller import register as register_reports
from .salary.controller import register as register_salary
from .users.controller import register as register_users
from .walkins.controller import register as register_walkins

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logger.info(
        "Starting gym-management",
        extra={
            "settings": settings_module,
            "db": DBConfig.from_dict(db_config).describe(),
        },
    )

    auto_init_db = bool(getattr(settings, "AUTO_INIT_DB", False))
    auto_seed_db = bool(getattr(settings, "AUTO_SEED_DB", False))
    if auto_init_db:
        apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
        logger.info("Schema ready", extra={"tables": len(list_tables(db_config))})
    if auto_seed_db:
        apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
        ensure_demo_users(db_config)
        logger.info("Demo seed ready")

    container = build_container(
        db_config=db_config,
        vnpay_config=getattr(settings, "VNPAY", None),
        commission_config=getattr(settings, "COMMISSION", None),
        default_class_price=Decimal(str(getattr(settings, "DEFAULT_CLASS_PRICE", DEFAULT_CLASS_PRICE))),
        walkin_pass_price=Decimal(str(getattr(settings, "WALKIN_PASS_PRICE", DEFAULT_WALKIN_PASS_PRICE))),
        face_match_threshold=float(getattr(settings, "FACE_MATCH_THRESHOLD", FACE_MATCH_THRESHOLD)),
    )

    register_users(app, container)
    register_payments(app, container)
    register_registrations(app, container)
    register_bookings(app, container)
    register_checkin(app, container)
    register_walkins(app, container)
    register_salary(app, container)
    register_reports(app, container)
    register_notifications(app, container)

    return app
