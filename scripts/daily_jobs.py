"""Daily maintenance: expire ended registrations and deactivate ended promotions.

Meant for cron, e.g. ``5 0 * * * python scripts/daily_jobs.py``.
"""

from __future__ import annotations

import importlib
import sys
from datetime import date
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.gym_management.gym_management.container import build_container
from src.gym_management.gym_management.core.logger import configure_logging


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    container = build_container(db_config=dict(settings.DB_CONFIG))

    today = date.today()
    expired = container.registration_service.process_expired(today=today)
    deactivated = container.promotion_service.deactivate_expired(today=today)
    print(f"OK: {today:%Y-%m-%d} expired_registrations={expired} deactivated_promotions={deactivated}")


if __name__ == "__main__":
    main()
