from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Người dùng: hội viên, HLV, lễ tân, admin hoặc khách vãng lai (GUEST).

    ``hired_on`` chỉ có với HLV; thâm niên tính từ ``hired_on`` hoặc ``joined_on``.
    """

    user_id: int
    full_name: str
    role: Role
    joined_on: date
    username: Optional[str] = None
    password_hash: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    hired_on: Optional[date] = None
    is_active: bool = True

    def years_of_service(self, today: date) -> int:
        start = self.hired_on or self.joined_on
        years = today.year - start.year
        if (today.month, today.day) < (start.month, start.day):
            years -= 1
        return max(years, 0)
