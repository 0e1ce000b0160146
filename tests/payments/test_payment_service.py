from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from src.gym_management.gym_management.core.enums import (
    PaymentMethod,
    PaymentStatus,
    RegistrationKind,
    RegistrationStatus,
)
from src.gym_management.gym_management.core.exceptions import NotFoundError, ValidationError
from src.gym_management.gym_management.payments.model import NewPayment
from src.gym_management.gym_management.registrations.model import NewRegistration

TODAY = date(2024, 6, 1)
NOW = datetime(2024, 6, 1, 9, 30)


def _package_payment(world, member, **kwargs):
    kwargs.setdefault("months", 3)
    kwargs.setdefault("method", PaymentMethod.CASH)
    kwargs.setdefault("today", TODAY)
    return world.payment_service.create_payment_for_package_registration(member_id=member.user_id, package_id=1, **kwargs)


def test_package_fee_is_list_price_and_registration_pending(world):
    member = world.add_member()
    world.add_package(price="1500000", months=3)

    payment = _package_payment(world, member)

    assert payment.amount == Decimal("1500000")
    assert payment.status == PaymentStatus.PENDING
    reg = world.registrations.get(payment.registration_id)
    assert reg.status == RegistrationStatus.PENDING_PAYMENT
    assert reg.fee == Decimal("1500000")
    assert reg.start_date == TODAY
    assert reg.end_date == date(2024, 9, 1)


def test_valid_promotion_discounts_fee(world):
    member = world.add_member()
    world.add_package(price="1500000", months=3)
    world.add_promotion(percent=10)

    payment = _package_payment(world, member, promotion_id=1)

    assert payment.amount == Decimal("1350000")
    assert world.registrations.get(payment.registration_id).fee == Decimal("1350000")


def test_expired_promotion_is_ignored(world):
    member = world.add_member()
    world.add_package(price="1500000", months=3)
    world.add_promotion(percent=10, start=date(2023, 1, 1), end=date(2023, 12, 31))

    payment = _package_payment(world, member, promotion_id=1)

    assert payment.amount == Decimal("1500000")


def test_months_other_than_duration_use_monthly_rate(world):
    member = world.add_member()
    world.add_package(price="1500000", months=3)

    payment = _package_payment(world, member, months=5)

    assert payment.amount == Decimal("2500000")


def test_second_active_package_is_rejected(world):
    member = world.add_member()
    world.add_package()
    first = _package_payment(world, member)
    assert world.payment_service.process_cash_payment(first.payment_id, now=NOW) is True

    with pytest.raises(ValidationError):
        _package_payment(world, member)


def test_second_pending_package_is_rejected_until_first_is_canceled(world):
    member = world.add_member()
    world.add_package()
    first = _package_payment(world, member)

    with pytest.raises(ValidationError, match="chờ thanh toán"):
        _package_payment(world, member)

    assert world.registration_service.cancel_registration(first.registration_id, "Đổi gói") is True
    second = _package_payment(world, member)
    assert world.registrations.get(second.registration_id).status == RegistrationStatus.PENDING_PAYMENT


def _raw_package_payment(world, member):
    return world.payments.create_with_registration(
        NewRegistration(
            member_id=member.user_id,
            kind=RegistrationKind.PACKAGE,
            package_id=1,
            start_date=TODAY,
            end_date=date(2024, 9, 1),
            fee=Decimal("1500000"),
        ),
        NewPayment(amount=Decimal("1500000"), method=PaymentMethod.CASH),
    )


def _active_packages(world, member):
    return [
        r
        for r in world.registrations.rows.values()
        if r.member_id == member.user_id and r.package_id is not None and r.status == RegistrationStatus.ACTIVE
    ]


def test_settlement_never_leaves_two_active_packages(world):
    member = world.add_member()
    world.add_package()
    first = _raw_package_payment(world, member)
    second = _raw_package_payment(world, member)

    assert world.payment_service.process_cash_payment(first.payment_id, now=NOW) is True
    assert world.payment_service.process_cash_payment(second.payment_id, now=NOW) is False

    assert len(_active_packages(world, member)) == 1
    assert world.payments.get(second.payment_id).status == PaymentStatus.PENDING
    assert world.registrations.get(second.registration_id).status == RegistrationStatus.PENDING_PAYMENT
    assert world.notifications_repo.titles_for(member.user_id).count("Thanh toán thành công") == 1


def test_unknown_package_raises_not_found(world):
    member = world.add_member()
    with pytest.raises(NotFoundError):
        _package_payment(world, member)


def test_cash_settlement_activates_registration_and_notifies(world):
    member = world.add_member()
    world.add_class(custom_price=None)
    payment = world.payment_service.create_payment_for_class_registration(
        member_id=member.user_id,
        class_id=1,
        start_date=date(2024, 6, 3),
        end_date=date(2024, 7, 3),
        method=PaymentMethod.CASH,
        today=TODAY,
    )
    assert payment.amount == Decimal("200000")

    assert world.payment_service.process_cash_payment(payment.payment_id, now=NOW) is True

    settled = world.payments.get(payment.payment_id)
    assert settled.status == PaymentStatus.SUCCESS
    assert settled.paid_at == NOW
    reg = world.registrations.get(payment.registration_id)
    assert reg.status == RegistrationStatus.ACTIVE
    assert reg.status_detail == "Thanh toán tiền mặt thành công"
    assert world.notifications_repo.titles_for(member.user_id) == ["Thanh toán thành công"]


def test_settlement_is_idempotent(world):
    member = world.add_member()
    world.add_package()
    payment = _package_payment(world, member)

    assert world.payment_service.process_cash_payment(payment.payment_id, now=NOW) is True
    assert world.payment_service.process_cash_payment(payment.payment_id, now=NOW) is False

    assert world.payments.get(payment.payment_id).paid_at == NOW
    assert world.notifications_repo.titles_for(member.user_id) == ["Thanh toán thành công"]


def test_settlement_refused_for_canceled_registration(world):
    member = world.add_member()
    world.add_package()
    payment = _package_payment(world, member)
    assert world.registration_service.cancel_registration(payment.registration_id, "Khách đổi ý") is True

    assert world.payment_service.process_cash_payment(payment.payment_id, now=NOW) is False
    assert world.payments.get(payment.payment_id).status == PaymentStatus.PENDING


def test_class_capacity_counts_pending_registrations(world):
    world.add_class(capacity=1)
    first, second = world.add_member("A"), world.add_member("B")
    kwargs = dict(class_id=1, start_date=date(2024, 6, 3), end_date=date(2024, 7, 3), method=PaymentMethod.CASH, today=TODAY)

    world.payment_service.create_payment_for_class_registration(member_id=first.user_id, **kwargs)
    with pytest.raises(ValidationError, match="đầy"):
        world.payment_service.create_payment_for_class_registration(member_id=second.user_id, **kwargs)


def test_overlapping_class_registration_is_rejected(world):
    world.add_class()
    member = world.add_member()
    kwargs = dict(member_id=member.user_id, class_id=1, method=PaymentMethod.CASH, today=TODAY)

    world.payment_service.create_payment_for_class_registration(
        start_date=date(2024, 6, 3), end_date=date(2024, 7, 3), **kwargs
    )
    with pytest.raises(ValidationError):
        world.payment_service.create_payment_for_class_registration(
            start_date=date(2024, 6, 20), end_date=date(2024, 7, 20), **kwargs
        )


def test_class_registration_dates_are_validated(world):
    world.add_class()
    member = world.add_member()
    with pytest.raises(ValidationError):
        world.payment_service.create_payment_for_class_registration(
            member_id=member.user_id,
            class_id=1,
            start_date=date(2024, 7, 3),
            end_date=date(2024, 7, 3),
            method=PaymentMethod.CASH,
            today=TODAY,
        )


def test_fixed_class_uses_course_dates(world):
    world.add_class(course_start=date(2024, 6, 10), course_end=date(2024, 8, 10), custom_price="900000")
    member = world.add_member()

    payment = world.payment_service.create_payment_for_fixed_class_registration(
        member_id=member.user_id, class_id=1, method=PaymentMethod.CASH, today=TODAY
    )

    reg = world.registrations.get(payment.registration_id)
    assert (reg.start_date, reg.end_date) == (date(2024, 6, 10), date(2024, 8, 10))
    assert payment.amount == Decimal("900000")


def test_refund_only_from_success(world):
    member = world.add_member()
    world.add_package()
    payment = _package_payment(world, member)

    assert world.payment_service.refund_payment(payment.payment_id, "Sai gói") is False
    assert "Hoàn tiền" not in world.notifications_repo.titles_for(member.user_id)

    world.payment_service.process_cash_payment(payment.payment_id, now=NOW)
    assert world.payment_service.refund_payment(payment.payment_id, "Sai gói") is True

    refunded = world.payments.get(payment.payment_id)
    assert refunded.status == PaymentStatus.REFUND
    assert "Hoàn tiền: Sai gói" in refunded.note
    body = world.notifications_repo.rows[-1].body
    assert "1,500,000" in body and "Sai gói" in body

    notices_before = len(world.notifications_repo.rows)
    assert world.payment_service.refund_payment(payment.payment_id, "lần nữa") is False
    again = world.payments.get(payment.payment_id)
    assert again.status == PaymentStatus.REFUND
    assert again.note == refunded.note
    assert len(world.notifications_repo.rows) == notices_before


def test_renewal_extends_active_registration(world):
    member = world.add_member()
    world.add_package(price="1500000", months=3)
    first = _package_payment(world, member)
    world.payment_service.process_cash_payment(first.payment_id, now=NOW)

    renewal = world.payment_service.create_renewal_payment(
        member_id=member.user_id,
        registration_id=first.registration_id,
        months=2,
        method=PaymentMethod.CASH,
        today=date(2024, 8, 20),
    )
    assert renewal.amount == Decimal("1000000")
    assert world.payment_service.process_cash_payment(renewal.payment_id, now=datetime(2024, 8, 20, 10)) is True

    reg = world.registrations.get(first.registration_id)
    assert reg.status == RegistrationStatus.ACTIVE
    assert reg.end_date == date(2024, 11, 1)


def test_renewal_of_expired_registration_creates_new_active_one(world):
    member = world.add_member()
    world.add_package(price="1500000", months=3)
    first = _package_payment(world, member)
    world.payment_service.process_cash_payment(first.payment_id, now=NOW)
    world.registrations.update(first.registration_id, status=RegistrationStatus.EXPIRED)

    renewal = world.payment_service.create_renewal_payment(
        member_id=member.user_id,
        registration_id=first.registration_id,
        months=1,
        method=PaymentMethod.CASH,
        today=date(2024, 9, 15),
    )
    assert world.payment_service.process_cash_payment(renewal.payment_id, now=datetime(2024, 9, 15, 8)) is True

    relinked = world.payments.get(renewal.payment_id)
    assert relinked.registration_id != first.registration_id
    new_reg = world.registrations.get(relinked.registration_id)
    assert new_reg.status == RegistrationStatus.ACTIVE
    assert (new_reg.start_date, new_reg.end_date) == (date(2024, 9, 15), date(2024, 10, 15))
    assert world.registrations.get(first.registration_id).status == RegistrationStatus.EXPIRED


def test_renewal_outside_grace_period_is_rejected(world):
    member = world.add_member()
    world.add_package(price="1500000", months=3)
    first = _package_payment(world, member)
    world.payment_service.process_cash_payment(first.payment_id, now=NOW)
    world.registrations.update(first.registration_id, status=RegistrationStatus.EXPIRED)

    with pytest.raises(ValidationError):
        world.payment_service.create_renewal_payment(
            member_id=member.user_id,
            registration_id=first.registration_id,
            months=1,
            method=PaymentMethod.CASH,
            today=date(2024, 10, 15),
        )


def _renew(world, member, registration_id, *, months=1, today=date(2024, 9, 15)):
    return world.payment_service.create_renewal_payment(
        member_id=member.user_id,
        registration_id=registration_id,
        months=months,
        method=PaymentMethod.CASH,
        today=today,
    )


def _expired_package(world, member):
    world.add_package(price="1500000", months=3)
    first = _package_payment(world, member)
    world.payment_service.process_cash_payment(first.payment_id, now=NOW)
    world.registrations.update(first.registration_id, status=RegistrationStatus.EXPIRED)
    return first


def test_second_renewal_is_rejected_while_one_is_pending(world):
    member = world.add_member()
    first = _expired_package(world, member)
    pending = _renew(world, member, first.registration_id)

    with pytest.raises(ValidationError, match="gia hạn chờ thanh toán"):
        _renew(world, member, first.registration_id)

    assert world.payment_service.process_cash_payment(pending.payment_id, now=datetime(2024, 9, 15, 8)) is True
    assert len(_active_packages(world, member)) == 1


def test_expired_renewal_is_not_settled_over_another_active_package(world):
    member = world.add_member()
    first = _expired_package(world, member)
    renewal = _renew(world, member, first.registration_id)
    world.registrations.insert(
        NewRegistration(
            member_id=member.user_id,
            kind=RegistrationKind.PACKAGE,
            package_id=1,
            start_date=date(2024, 9, 15),
            end_date=date(2024, 12, 15),
            fee=Decimal("1500000"),
            status=RegistrationStatus.ACTIVE,
        )
    )

    assert world.payment_service.process_cash_payment(renewal.payment_id, now=datetime(2024, 9, 15, 8)) is False

    unchanged = world.payments.get(renewal.payment_id)
    assert unchanged.status == PaymentStatus.PENDING
    assert unchanged.registration_id == first.registration_id
    assert len(_active_packages(world, member)) == 1


def test_extension_is_rolled_back_when_registration_expired_meanwhile(world, monkeypatch):
    member = world.add_member()
    world.add_package(price="1500000", months=3)
    first = _package_payment(world, member)
    world.payment_service.process_cash_payment(first.payment_id, now=NOW)
    renewal = _renew(world, member, first.registration_id, months=2, today=date(2024, 8, 20))
    notices_before = len(world.notifications_repo.rows)

    settle = world.payments.settle

    def expire_then_settle(settlement):
        world.registrations.update(first.registration_id, status=RegistrationStatus.EXPIRED)
        return settle(settlement)

    monkeypatch.setattr(world.payments, "settle", expire_then_settle)

    assert world.payment_service.process_cash_payment(renewal.payment_id, now=datetime(2024, 8, 20, 10)) is False
    assert world.payments.get(renewal.payment_id).status == PaymentStatus.PENDING
    assert world.registrations.get(first.registration_id).end_date == date(2024, 9, 1)
    assert len(world.notifications_repo.rows) == notices_before
