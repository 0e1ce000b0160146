from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import normalize_phone, password_of_length, required_text
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, NotFoundError, ValidationError
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)

_BAD_CREDENTIALS = "Sai tài khoản hoặc mật khẩu"
MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class SessionUser:
    """Logged-in identity kept in the Flask session."""

    user_id: int
    full_name: str
    role: Role

    def session_payload(self) -> Dict[str, object]:
        return {"user_id": self.user_id, "name": self.full_name, "role": self.role.value}


def _password_matches(password_hash: Optional[str], password: str) -> bool:
    if not password_hash:
        return False
    try:
        return check_password_hash(password_hash, password)
    except ValueError:
        # seed rows may carry a non-hash placeholder
        return False


class AuthService:
    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, username: str, password: str) -> SessionUser:
        user = self._users.get_by_username((username or "").strip())
        if user is None or not _password_matches(user.password_hash, password or ""):
            raise AuthenticationError(_BAD_CREDENTIALS)
        if not user.is_active:
            logger.info("Login refused for locked account", extra={"user_id": user.user_id})
            raise AuthenticationError("Tài khoản đã bị khóa")
        return SessionUser(user_id=user.user_id, full_name=user.full_name, role=user.role)


class UserService:
    """Member accounts and staff lookups."""

    def __init__(self, users: UserRepository):
        self._users = users

    def get(self, user_id: int) -> Optional[User]:
        return self._users.get_by_id(int(user_id))

    def list_trainers(self) -> Sequence[User]:
        return self._users.list_by_role(Role.TRAINER)

    def list_members(self, *, include_locked: bool = False) -> Sequence[User]:
        return self._users.list_by_role(Role.MEMBER, active_only=not include_locked)

    def create_member(
        self,
        *,
        full_name: str,
        username: str,
        password: str,
        phone: Optional[str] = None,
        email: Optional[str] = None,
        today: Optional[date] = None,
    ) -> int:
        full_name = required_text(full_name, "Họ tên")
        username = required_text(username, "Tên đăng nhập")
        password_of_length(password, MIN_PASSWORD_LENGTH)
        phone = normalize_phone(phone, required=False)
        if self._users.get_by_username(username) is not None:
            raise ValidationError("Tên đăng nhập đã tồn tại")

        user_id = self._users.create(
            full_name=full_name,
            role=Role.MEMBER,
            joined_on=today or date.today(),
            phone=phone,
            email=(email or "").strip() or None,
            username=username,
            password_hash=generate_password_hash(password),
        )
        logger.info("Member created", extra={"user_id": user_id})
        return user_id

    def set_member_active(self, user_id: int, is_active: bool) -> None:
        user = self._users.get_by_id(int(user_id))
        if user is None or user.role != Role.MEMBER:
            raise NotFoundError("Không tìm thấy hội viên")
        self._users.set_active(user.user_id, bool(is_active))
        logger.info("Member active flag changed", extra={"user_id": user.user_id, "is_active": bool(is_active)})
