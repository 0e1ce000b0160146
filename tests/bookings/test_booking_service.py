from datetime import date, datetime

import pytest

from src.gym_management.gym_management.core.enums import BookingStatus, ClassStatus
from src.gym_management.gym_management.core.exceptions import NotFoundError, ValidationError

# Monday
NOW = datetime(2024, 6, 3, 6, 0)
MONDAY = date(2024, 6, 3)
WEDNESDAY = date(2024, 6, 5)


def test_book_class(world):
    member = world.add_member()
    world.add_class()

    booking_id = world.booking_service.book_class(
        member_id=member.user_id, class_id=1, day=MONDAY, note="  ", now=NOW
    )

    booking = world.bookings.get(booking_id)
    assert booking.status == BookingStatus.BOOKED
    assert booking.note is None
    assert world.notifications_repo.titles_for(member.user_id) == ["Đặt lịch thành công"]
    assert world.booking_service.available_slots(1, MONDAY) == 19


@pytest.mark.parametrize(
    "day,now,message",
    [
        (date(2024, 6, 2), NOW, "quá khứ"),
        (date(2024, 6, 4), NOW, "không có lịch"),
        (MONDAY, datetime(2024, 6, 3, 7, 30), "đã bắt đầu"),
    ],
)
def test_booking_date_rules(world, day, now, message):
    member = world.add_member()
    world.add_class()

    with pytest.raises(ValidationError, match=message):
        world.booking_service.book_class(member_id=member.user_id, class_id=1, day=day, now=now)


def test_closed_or_unknown_class(world):
    member = world.add_member()
    world.add_class(status=ClassStatus.CLOSED)

    with pytest.raises(ValidationError):
        world.booking_service.book_class(member_id=member.user_id, class_id=1, day=MONDAY, now=NOW)
    with pytest.raises(NotFoundError):
        world.booking_service.book_class(member_id=member.user_id, class_id=9, day=MONDAY, now=NOW)


def test_fixed_course_window(world):
    member = world.add_member()
    world.add_class(course_start=date(2024, 6, 10), course_end=date(2024, 8, 10))

    with pytest.raises(ValidationError, match="ngoài thời gian khóa học"):
        world.booking_service.book_class(member_id=member.user_id, class_id=1, day=MONDAY, now=NOW)


def test_duplicate_and_full(world):
    first = world.add_member()
    second = world.add_member("Trần Thị B")
    world.add_class(capacity=1)
    world.booking_service.book_class(member_id=first.user_id, class_id=1, day=MONDAY, now=NOW)

    with pytest.raises(ValidationError, match="đã đặt lịch"):
        world.booking_service.book_class(member_id=first.user_id, class_id=1, day=MONDAY, now=NOW)
    with pytest.raises(ValidationError, match="Lớp học đã đầy"):
        world.booking_service.book_class(member_id=second.user_id, class_id=1, day=MONDAY, now=NOW)
    assert world.booking_service.available_slots(1, MONDAY) == 0


def test_cancel_booking(world):
    member = world.add_member()
    world.add_class()
    booking_id = world.booking_service.book_class(member_id=member.user_id, class_id=1, day=WEDNESDAY, now=NOW)

    assert world.booking_service.cancel_booking(booking_id=booking_id, member_id=member.user_id, now=NOW) is True
    assert world.bookings.get(booking_id).status == BookingStatus.CANCELED
    assert world.booking_service.cancel_booking(booking_id=booking_id, member_id=member.user_id, now=NOW) is False
    # the freed slot can be booked again
    world.booking_service.book_class(member_id=member.user_id, class_id=1, day=WEDNESDAY, now=NOW)


def test_cancel_too_close_to_start(world):
    member = world.add_member()
    world.add_class()
    booking_id = world.booking_service.book_class(member_id=member.user_id, class_id=1, day=MONDAY, now=NOW)

    with pytest.raises(ValidationError, match="2 tiếng"):
        world.booking_service.cancel_booking(booking_id=booking_id, member_id=member.user_id, now=NOW)


def test_cannot_cancel_someone_elses_booking(world):
    owner = world.add_member()
    other = world.add_member("Trần Thị B")
    world.add_class()
    booking_id = world.booking_service.book_class(member_id=owner.user_id, class_id=1, day=WEDNESDAY, now=NOW)

    with pytest.raises(NotFoundError):
        world.booking_service.cancel_booking(booking_id=booking_id, member_id=other.user_id, now=NOW)


def test_list_for_member_from_date(world):
    member = world.add_member()
    world.add_class()
    world.booking_service.book_class(member_id=member.user_id, class_id=1, day=MONDAY, now=NOW)
    world.booking_service.book_class(member_id=member.user_id, class_id=1, day=WEDNESDAY, now=NOW)

    assert len(world.booking_service.list_for_member(member.user_id)) == 2
    assert [b.class_date for b in world.booking_service.list_for_member(member.user_id, from_date=WEDNESDAY)] == [
        WEDNESDAY
    ]
