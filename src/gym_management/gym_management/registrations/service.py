from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Sequence

from ..core.enums import RegistrationStatus
from ..core.exceptions import NotFoundError
from ..notifications.service import NotificationService
from .model import Registration
from .repository import RegistrationRepository

logger = logging.getLogger(__name__)


class RegistrationService:
    """Lifecycle operations on existing registrations (creation goes through PaymentService)."""

    def __init__(self, registrations: RegistrationRepository, notifications: NotificationService):
        self._registrations = registrations
        self._notifications = notifications

    def get(self, registration_id: int) -> Registration:
        reg = self._registrations.get(int(registration_id))
        if not reg:
            raise NotFoundError("Không tìm thấy đăng ký")
        return reg

    def list_for_member(self, member_id: int, *, limit: int = 50) -> Sequence[Registration]:
        return self._registrations.list_for_member(int(member_id), limit=limit)

    def has_active_package(self, member_id: int) -> bool:
        return self._registrations.get_active_package(int(member_id)) is not None

    def can_renew(self, registration_id: int, *, today: Optional[date] = None) -> bool:
        return self.get(registration_id).can_renew(today or date.today())

    def cancel_registration(self, registration_id: int, reason: str) -> bool:
        reg = self._registrations.get(int(registration_id))
        if not reg or reg.status not in (RegistrationStatus.PENDING_PAYMENT, RegistrationStatus.ACTIVE):
            return False

        reason = (reason or "").strip() or "Không rõ lý do"
        if not self._registrations.cancel(reg.registration_id, reason=reason, detail=f"Đã hủy: {reason}"):
            return False

        logger.info(
            "Registration canceled",
            extra={"registration_id": reg.registration_id, "member_id": reg.member_id, "reason": reason},
        )
        self._notifications.notify(
            reg.member_id,
            "Hủy đăng ký",
            f"Đăng ký #{reg.registration_id} đã bị hủy. Lý do: {reason}",
        )
        return True

    def process_expired(self, *, today: Optional[date] = None) -> int:
        """Mark ended registrations EXPIRED and notify each member."""
        today = today or date.today()
        expired = self._registrations.expire_ended_before(today)
        for reg in expired:
            self._notifications.notify(
                reg.member_id,
                "Đăng ký đã hết hạn",
                f"Đăng ký #{reg.registration_id} đã hết hạn ngày {reg.end_date:%d/%m/%Y}. Vui lòng gia hạn để tiếp tục tập luyện.",
            )
        if expired:
            logger.info("Expired registrations processed", extra={"count": len(expired)})
        return len(expired)
