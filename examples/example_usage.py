"""Ví dụ: dùng service layer (không qua Flask).

Tính hoa hồng tháng hiện tại cho từng HLV và in bảng chi tiết.
"""

import importlib
from datetime import date

from config import get_settings_module

from src.gym_management.gym_management.common.datetime_utils import month_key
from src.gym_management.gym_management.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, commission_config=getattr(settings, "COMMISSION", None))
    month = month_key(date.today())
    for row in container.report_service.trainer_commission_summary(month):
        print(row)


if __name__ == "__main__":
    main()
