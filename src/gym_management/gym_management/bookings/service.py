from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..catalog.model import GymClass
from ..catalog.repository import CatalogRepository
from ..core.constants import BOOKING_CANCEL_MIN_HOURS
from ..core.enums import BookingStatus, ClassStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..notifications.service import NotificationService
from .model import Booking
from .repository import BookingRepository

logger = logging.getLogger(__name__)


class BookingService:
    def __init__(self, bookings: BookingRepository, catalog: CatalogRepository, notifications: NotificationService):
        self._bookings = bookings
        self._catalog = catalog
        self._notifications = notifications

    def _get_class(self, class_id: int) -> GymClass:
        gym_class = self._catalog.get_class(int(class_id))
        if not gym_class:
            raise NotFoundError("Lớp học không tồn tại")
        return gym_class

    def book_class(
        self,
        *,
        member_id: int,
        class_id: int,
        day: date,
        note: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> int:
        now = now or datetime.now()
        if day < now.date():
            raise ValidationError("Không thể đặt lịch cho ngày trong quá khứ")

        gym_class = self._get_class(class_id)
        if gym_class.status != ClassStatus.OPEN:
            raise ValidationError("Lớp học không mở đặt lịch")
        if not gym_class.runs_on(day):
            raise ValidationError("Lớp học không có lịch vào ngày đã chọn")
        if gym_class.is_fixed_schedule and not (gym_class.course_start <= day <= gym_class.course_end):
            raise ValidationError("Ngày đã chọn nằm ngoài thời gian khóa học")
        if day == now.date() and now.time() >= gym_class.start_time:
            raise ValidationError("Buổi học đã bắt đầu")

        if self._bookings.exists_booked(member_id=int(member_id), class_id=gym_class.class_id, day=day):
            raise ValidationError("Bạn đã đặt lịch lớp này cho ngày đã chọn")

        booking_id = self._bookings.book_if_available(
            member_id=int(member_id),
            class_id=gym_class.class_id,
            day=day,
            capacity=gym_class.capacity,
            note=(note or "").strip() or None,
        )
        if booking_id is None:
            raise ValidationError("Lớp học đã đầy")

        logger.info("Class booked", extra={"booking_id": booking_id, "member_id": member_id, "class_id": class_id})
        self._notifications.notify(
            member_id,
            "Đặt lịch thành công",
            f"Bạn đã đặt lịch lớp {gym_class.name} ngày {day:%d/%m/%Y} lúc {gym_class.start_time:%H:%M}.",
        )
        return booking_id

    def cancel_booking(self, *, booking_id: int, member_id: int, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now()
        booking = self._bookings.get(int(booking_id))
        if not booking or booking.member_id != int(member_id):
            raise NotFoundError("Không tìm thấy lịch đặt")
        if booking.status != BookingStatus.BOOKED:
            return False

        gym_class = self._get_class(booking.class_id)
        starts_at = datetime.combine(booking.class_date, gym_class.start_time)
        if starts_at - now < timedelta(hours=BOOKING_CANCEL_MIN_HOURS):
            raise ValidationError(f"Chỉ có thể hủy trước giờ học ít nhất {BOOKING_CANCEL_MIN_HOURS} tiếng")

        cancelled = self._bookings.cancel(booking.booking_id)
        if cancelled:
            logger.info("Booking canceled", extra={"booking_id": booking.booking_id, "member_id": member_id})
        return cancelled

    def available_slots(self, class_id: int, day: date) -> int:
        gym_class = self._get_class(class_id)
        return max(0, gym_class.capacity - self._bookings.count_booked(gym_class.class_id, day))

    def list_for_member(self, member_id: int, *, from_date: Optional[date] = None) -> Sequence[Booking]:
        return self._bookings.list_for_member(int(member_id), from_date=from_date)

    def list_for_class(self, class_id: int, day: date) -> Sequence[Booking]:
        return self._bookings.list_for_class(int(class_id), day)
