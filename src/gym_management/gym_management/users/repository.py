from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError

    def list_by_role(self, role: Role, *, active_only: bool = True) -> Sequence[User]:
        raise NotImplementedError

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
        raise NotImplementedError

    def find_guest_joined_on(self, *, phone: str, day: date) -> Optional[User]:
        """Guest created on ``day`` with this phone number (walk-in reuse)."""

        raise NotImplementedError

    def set_active(self, user_id: int, is_active: bool) -> bool:
        raise NotImplementedError
