from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from ..bookings.repository import BookingRepository
from ..catalog.repository import CatalogRepository
from ..core.constants import DEFAULT_HISTORY_LIMIT, FACE_DUPLICATE_THRESHOLD
from ..core.enums import CheckInMethod, ClassStatus, Role
from ..core.exceptions import NotFoundError, ValidationError
from ..notifications.service import NotificationService
from ..users.repository import UserRepository
from .face_matcher import FaceMatcher
from .model import CheckIn, FaceSample
from .repository import CheckInRepository, FaceSampleRepository

logger = logging.getLogger(__name__)

_CHECKIN_ROLES = (Role.MEMBER, Role.GUEST)


class CheckInService:
    def __init__(
        self,
        checkins: CheckInRepository,
        faces: FaceSampleRepository,
        users: UserRepository,
        catalog: CatalogRepository,
        bookings: BookingRepository,
        notifications: NotificationService,
        *,
        matcher: Optional[FaceMatcher] = None,
    ):
        self._checkins = checkins
        self._faces = faces
        self._users = users
        self._catalog = catalog
        self._bookings = bookings
        self._notifications = notifications
        self._matcher = matcher or FaceMatcher()

    def manual_check_in(
        self,
        member_id: int,
        class_id: Optional[int] = None,
        *,
        method: CheckInMethod = CheckInMethod.MANUAL,
        confidence: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> int:
        now = now or datetime.now()
        member = self._users.get_by_id(int(member_id))
        if not member or not member.is_active or member.role not in _CHECKIN_ROLES:
            raise ValidationError("Thành viên không tồn tại hoặc đã bị khóa")

        class_name = "tập tự do"
        if class_id is not None:
            gym_class = self._catalog.get_class(int(class_id))
            if not gym_class or gym_class.status != ClassStatus.OPEN:
                raise ValidationError("Lớp học không hợp lệ hoặc đã đóng")
            class_name = gym_class.name

        checkin_id = self._checkins.create_if_absent_for_day(
            member_id=member.user_id,
            checked_in_at=now,
            method=method,
            class_id=int(class_id) if class_id is not None else None,
            confidence=confidence,
            note=f"Check-in vào lớp học ID: {class_id}" if class_id is not None else "Check-in tự do",
        )
        if checkin_id is None:
            raise ValidationError("Thành viên đã check-in hôm nay")

        if class_id is not None:
            self._bookings.mark_attended(member_id=member.user_id, class_id=int(class_id), day=now.date())

        logger.info(
            "Member checked in",
            extra={"checkin_id": checkin_id, "member_id": member.user_id, "method": method.value},
        )
        self._notifications.notify(
            member.user_id,
            "Check-in thành công",
            f"Bạn đã check-in thành công {class_name} lúc {now:%H:%M %d/%m/%Y}",
        )
        return checkin_id

    def face_check_in(
        self, descriptor: Iterable[float], *, class_id: Optional[int] = None, now: Optional[datetime] = None
    ) -> CheckIn:
        match = self._matcher.best_match(descriptor, self._faces.list_all())
        if match is None:
            logger.info("Face not recognized")
            raise NotFoundError("Không nhận diện được khuôn mặt")

        checkin_id = self.manual_check_in(
            match.user_id,
            class_id,
            method=CheckInMethod.FACE,
            confidence=round(match.similarity, 4),
            now=now,
        )
        return self.get(checkin_id)

    def check_out(self, checkin_id: int, *, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now()
        checkin = self.get(checkin_id)
        if not checkin.is_open:
            return False
        if now < checkin.checked_in_at:
            raise ValidationError("Thời gian check-out không hợp lệ")
        return self._checkins.check_out(checkin.checkin_id, at=now)

    def register_face(self, user_id: int, descriptor: Iterable[float]) -> None:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("Người dùng không tồn tại")

        values = list(descriptor)
        vec = self._matcher.to_vector(values)
        duplicate = self._matcher.best_match(
            values, self._faces.list_all(), threshold=FACE_DUPLICATE_THRESHOLD, exclude_user_id=user.user_id
        )
        if duplicate is not None:
            logger.warning(
                "Face already registered to another user",
                extra={"user_id": user.user_id, "other_user_id": duplicate.user_id},
            )
            raise ValidationError("Khuôn mặt này đã được đăng ký cho người dùng khác")

        self._faces.save(FaceSample(user_id=user.user_id, descriptor=tuple(float(x) for x in vec)))
        logger.info("Face registered", extra={"user_id": user.user_id})

    def get(self, checkin_id: int) -> CheckIn:
        checkin = self._checkins.get(int(checkin_id))
        if not checkin:
            raise NotFoundError("Không tìm thấy lượt check-in")
        return checkin

    def list_for_day(self, day: date) -> Sequence[CheckIn]:
        return self._checkins.list_for_day(day)

    def list_for_member(self, member_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[CheckIn]:
        return self._checkins.list_for_member(int(member_id), limit=limit)
