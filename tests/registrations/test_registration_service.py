from datetime import date
from decimal import Decimal

import pytest

from src.gym_management.gym_management.core.enums import RegistrationKind, RegistrationStatus
from src.gym_management.gym_management.core.exceptions import NotFoundError
from src.gym_management.gym_management.registrations.model import NewRegistration


def _insert(world, member_id, *, status=RegistrationStatus.ACTIVE, start=date(2024, 3, 1), end=date(2024, 6, 1)):
    return world.registrations.insert(
        NewRegistration(
            member_id=member_id,
            kind=RegistrationKind.PACKAGE,
            start_date=start,
            end_date=end,
            fee=Decimal("1500000"),
            status=status,
            package_id=1,
        )
    )


def test_cancel_active_registration(world):
    member = world.add_member()
    reg = _insert(world, member.user_id)

    assert world.registration_service.cancel_registration(reg.registration_id, "  Chuyển nhà ") is True

    canceled = world.registrations.get(reg.registration_id)
    assert canceled.status == RegistrationStatus.CANCELED
    assert canceled.cancel_reason == "Chuyển nhà"
    assert world.notifications_repo.titles_for(member.user_id) == ["Hủy đăng ký"]


def test_cancel_uses_default_reason(world):
    member = world.add_member()
    reg = _insert(world, member.user_id, status=RegistrationStatus.PENDING_PAYMENT)

    assert world.registration_service.cancel_registration(reg.registration_id, "") is True
    assert world.registrations.get(reg.registration_id).cancel_reason == "Không rõ lý do"


@pytest.mark.parametrize("status", [RegistrationStatus.EXPIRED, RegistrationStatus.CANCELED])
def test_cancel_is_refused_for_closed_registrations(world, status):
    member = world.add_member()
    reg = _insert(world, member.user_id, status=status)

    assert world.registration_service.cancel_registration(reg.registration_id, "x") is False
    assert world.notifications_repo.titles_for(member.user_id) == []


def test_cancel_unknown_registration(world):
    assert world.registration_service.cancel_registration(999, "x") is False
    with pytest.raises(NotFoundError):
        world.registration_service.get(999)


def test_process_expired_marks_and_notifies(world):
    member = world.add_member()
    ended = _insert(world, member.user_id, end=date(2024, 5, 31))
    running = _insert(world, member.user_id, start=date(2024, 5, 1), end=date(2024, 6, 1))

    assert world.registration_service.process_expired(today=date(2024, 6, 1)) == 1

    assert world.registrations.get(ended.registration_id).status == RegistrationStatus.EXPIRED
    assert world.registrations.get(running.registration_id).status == RegistrationStatus.ACTIVE
    assert world.notifications_repo.titles_for(member.user_id) == ["Đăng ký đã hết hạn"]
    assert world.registration_service.process_expired(today=date(2024, 6, 1)) == 0


def test_can_renew_within_grace_period(world):
    member = world.add_member()
    reg = _insert(world, member.user_id, status=RegistrationStatus.EXPIRED, end=date(2024, 6, 1))

    assert world.registration_service.can_renew(reg.registration_id, today=date(2024, 7, 1)) is True
    assert world.registration_service.can_renew(reg.registration_id, today=date(2024, 7, 2)) is False


def test_has_active_package(world):
    member = world.add_member()
    assert world.registration_service.has_active_package(member.user_id) is False
    _insert(world, member.user_id)
    assert world.registration_service.has_active_package(member.user_id) is True
