from __future__ import annotations

import calendar
import re
from datetime import date, datetime

from ..core.exceptions import ValidationError

_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def add_months(d: date, months: int) -> date:
    """Calendar month arithmetic, clamping the day (Jan 31 + 1 month -> Feb 28/29)."""
    total = d.month - 1 + int(months)
    year = d.year + total // 12
    month = total % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def parse_month(value: str) -> tuple[int, int]:
    """Parse a salary month key 'YYYY-MM' into (year, month)."""
    m = _MONTH_RE.match((value or "").strip())
    if not m:
        raise ValidationError("Tháng không hợp lệ (YYYY-MM)")
    year, month = int(m.group(1)), int(m.group(2))
    if not 1 <= month <= 12:
        raise ValidationError("Tháng không hợp lệ (YYYY-MM)")
    return year, month


def month_range(value: str) -> tuple[date, date]:
    """First and last day of a 'YYYY-MM' month."""
    year, month = parse_month(value)
    return date(year, month, 1), date(year, month, calendar.monthrange(year, month)[1])


def month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"
