"""In-memory repositories shared by the service tests.

They mirror the conditional-update semantics of the MySQL repositories
(state guards in the WHERE clause), so services can be tested without a DB.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

import pytest

from src.gym_management.gym_management.bookings.model import Booking
from src.gym_management.gym_management.bookings.service import BookingService
from src.gym_management.gym_management.catalog.model import GymClass, Package, Promotion
from src.gym_management.gym_management.checkin.model import CheckIn
from src.gym_management.gym_management.checkin.service import CheckInService
from src.gym_management.gym_management.core.enums import (
    BookingStatus,
    ClassStatus,
    NotificationChannel,
    PaymentStatus,
    RegistrationKind,
    RegistrationStatus,
    Role,
)
from src.gym_management.gym_management.core.exceptions import ValidationError
from src.gym_management.gym_management.notifications.model import Notification
from src.gym_management.gym_management.notifications.service import NotificationService
from src.gym_management.gym_management.payments.model import GatewayTransaction, Payment
from src.gym_management.gym_management.payments.service import PaymentService
from src.gym_management.gym_management.payments.vnpay import VnPayConfig, VnPayGateway
from src.gym_management.gym_management.promotions.service import PromotionService
from src.gym_management.gym_management.registrations.model import Registration
from src.gym_management.gym_management.registrations.service import RegistrationService
from src.gym_management.gym_management.users.model import User
from src.gym_management.gym_management.walkins.service import WalkInService

_OPEN = (RegistrationStatus.PENDING_PAYMENT, RegistrationStatus.ACTIVE)


class InMemoryCatalog:
    def __init__(self):
        self.packages: dict[int, Package] = {}
        self.classes: dict[int, GymClass] = {}
        self.promotions: dict[int, Promotion] = {}

    def get_package(self, package_id: int) -> Optional[Package]:
        return self.packages.get(package_id)

    def list_packages(self):
        return list(self.packages.values())

    def get_class(self, class_id: int) -> Optional[GymClass]:
        return self.classes.get(class_id)

    def list_classes(self, *, trainer_id: Optional[int] = None):
        return [c for c in self.classes.values() if trainer_id is None or c.trainer_id == trainer_id]

    def get_promotion(self, promotion_id: int) -> Optional[Promotion]:
        return self.promotions.get(promotion_id)

    def get_promotion_by_code(self, code: str) -> Optional[Promotion]:
        for p in self.promotions.values():
            if p.code.lower() == code.lower():
                return p
        return None

    def deactivate_promotions_ended_before(self, day: date) -> int:
        count = 0
        for pid, p in list(self.promotions.items()):
            if p.is_active and p.end_date < day:
                self.promotions[pid] = dataclasses.replace(p, is_active=False)
                count += 1
        return count


class InMemoryUsers:
    def __init__(self):
        self.rows: dict[int, User] = {}
        self._id = 0

    def add(self, **kwargs) -> User:
        self._id += 1
        user = User(user_id=self._id, **kwargs)
        self.rows[user.user_id] = user
        return user

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.rows.get(user_id)

    def get_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self.rows.values() if u.username == username), None)

    def list_by_role(self, role: Role, *, active_only: bool = True):
        return [u for u in self.rows.values() if u.role == role and (u.is_active or not active_only)]

    def create(self, *, full_name, role, joined_on, phone=None, email=None, username=None, password_hash=None, hired_on=None) -> int:
        return self.add(
            full_name=full_name,
            role=role,
            joined_on=joined_on,
            phone=phone,
            email=email,
            username=username,
            password_hash=password_hash,
            hired_on=hired_on,
        ).user_id

    def find_guest_joined_on(self, *, phone: str, day: date) -> Optional[User]:
        return next(
            (u for u in self.rows.values() if u.role == Role.GUEST and u.phone == phone and u.joined_on == day),
            None,
        )

    def set_active(self, user_id: int, is_active: bool) -> bool:
        if user_id not in self.rows:
            return False
        self.rows[user_id] = dataclasses.replace(self.rows[user_id], is_active=is_active)
        return True


class InMemoryNotifications:
    def __init__(self):
        self.rows: list[Notification] = []

    def create(self, *, user_id: int, title: str, body, channel: NotificationChannel) -> int:
        n = Notification(
            notification_id=len(self.rows) + 1,
            user_id=user_id,
            title=title,
            body=body,
            channel=channel,
            is_read=False,
            created_at=datetime(2024, 1, 1),
        )
        self.rows.append(n)
        return n.notification_id

    def list_for_user(self, *, user_id: int, unread_only: bool = False, limit: int = 50):
        items = [n for n in self.rows if n.user_id == user_id and (not unread_only or not n.is_read)]
        return items[:limit]

    def mark_read(self, *, notification_id: int, user_id: int) -> bool:
        for i, n in enumerate(self.rows):
            if n.notification_id == notification_id and n.user_id == user_id and not n.is_read:
                self.rows[i] = dataclasses.replace(n, is_read=True)
                return True
        return False

    def titles_for(self, user_id: int) -> list[str]:
        return [n.title for n in self.rows if n.user_id == user_id]


class InMemoryRegistrations:
    def __init__(self):
        self.rows: dict[int, Registration] = {}
        self._id = 0

    def insert(self, new) -> Registration:
        self._id += 1
        reg = Registration(
            registration_id=self._id,
            member_id=new.member_id,
            kind=new.kind,
            start_date=new.start_date,
            end_date=new.end_date,
            status=new.status,
            fee=new.fee,
            package_id=new.package_id,
            class_id=new.class_id,
            status_detail=new.status_detail,
        )
        self.rows[reg.registration_id] = reg
        return reg

    def update(self, registration_id: int, **changes) -> None:
        self.rows[registration_id] = dataclasses.replace(self.rows[registration_id], **changes)

    def get(self, registration_id: int) -> Optional[Registration]:
        return self.rows.get(registration_id)

    def list_for_member(self, member_id: int, *, limit: int = 50):
        return [r for r in self.rows.values() if r.member_id == member_id][:limit]

    def get_active_package(self, member_id: int) -> Optional[Registration]:
        return next(
            (
                r
                for r in self.rows.values()
                if r.member_id == member_id and r.package_id is not None and r.status == RegistrationStatus.ACTIVE
            ),
            None,
        )

    def get_pending_package(self, member_id: int) -> Optional[Registration]:
        return next(
            (
                r
                for r in self.rows.values()
                if r.member_id == member_id
                and r.package_id is not None
                and r.status == RegistrationStatus.PENDING_PAYMENT
            ),
            None,
        )

    def has_overlapping_class(self, *, member_id: int, class_id: int, start_date: date, end_date: date) -> bool:
        return any(
            r.member_id == member_id
            and r.class_id == class_id
            and r.status in _OPEN
            and r.start_date < end_date
            and start_date < r.end_date
            for r in self.rows.values()
        )

    def count_open_for_class(self, class_id: int, *, on: date) -> int:
        return sum(1 for r in self.rows.values() if r.class_id == class_id and r.status in _OPEN and r.end_date >= on)

    def count_active_for_class(self, class_id: int, *, on: date) -> int:
        return sum(
            1
            for r in self.rows.values()
            if r.class_id == class_id and r.status == RegistrationStatus.ACTIVE and r.end_date >= on
        )

    def cancel(self, registration_id: int, *, reason: str, detail: str) -> bool:
        reg = self.rows.get(registration_id)
        if not reg or reg.status not in _OPEN:
            return False
        self.update(registration_id, status=RegistrationStatus.CANCELED, cancel_reason=reason, status_detail=detail)
        return True

    def expire_ended_before(self, day: date):
        ended = [r for r in self.rows.values() if r.status == RegistrationStatus.ACTIVE and r.end_date < day]
        for r in ended:
            self.update(r.registration_id, status=RegistrationStatus.EXPIRED, status_detail="Hết hạn")
        return ended

    def list_walkins_on(self, day: date):
        return [r for r in self.rows.values() if r.kind == RegistrationKind.WALKIN and r.start_date == day]


class InMemoryPayments:
    def __init__(self, registrations: InMemoryRegistrations):
        self._registrations = registrations
        self.rows: dict[int, Payment] = {}
        self.gateway_rows: dict[str, GatewayTransaction] = {}
        self._id = 0
        self.settle_calls = 0

    def _insert(self, registration_id, payment) -> Payment:
        self._id += 1
        p = Payment(
            payment_id=self._id,
            registration_id=registration_id,
            amount=payment.amount,
            method=payment.method,
            status=PaymentStatus.PENDING,
            note=payment.note,
            renewal_months=payment.renewal_months,
        )
        self.rows[p.payment_id] = p
        return p

    def create_with_registration(self, registration, payment, *, capacity_limit=None, capacity_on=None) -> Payment:
        if capacity_limit is not None:
            if self._registrations.count_open_for_class(registration.class_id, on=capacity_on) >= capacity_limit:
                raise ValidationError("Lớp học đã đầy")
        reg = self._registrations.insert(registration)
        return self._insert(reg.registration_id, payment)

    def create_for_registration(self, registration_id: int, payment) -> Payment:
        return self._insert(registration_id, payment)

    def get(self, payment_id: int) -> Optional[Payment]:
        return self.rows.get(payment_id)

    def list_for_registration(self, registration_id: int):
        return [p for p in self.rows.values() if p.registration_id == registration_id]

    def settle(self, settlement) -> bool:
        self.settle_calls += 1
        regs = self._registrations
        if settlement.package_member_id is not None and any(
            r.member_id == settlement.package_member_id
            and r.package_id is not None
            and r.status == RegistrationStatus.ACTIVE
            and r.registration_id != settlement.registration_id
            for r in regs.rows.values()
        ):
            return False

        p = self.rows.get(settlement.payment_id)
        if not p or p.status != PaymentStatus.PENDING:
            return False
        reg = regs.get(p.registration_id) if p.registration_id is not None else None
        if reg and reg.status == RegistrationStatus.CANCELED:
            return False

        # A registration write that would match no row rolls back everything.
        target = regs.get(settlement.registration_id) if settlement.registration_id is not None else None
        if settlement.activate_detail and not (target and target.status == RegistrationStatus.PENDING_PAYMENT):
            return False
        if settlement.extend_to and not (
            target and target.status == RegistrationStatus.ACTIVE and target.end_date < settlement.extend_to
        ):
            return False

        self.rows[p.payment_id] = dataclasses.replace(p, status=PaymentStatus.SUCCESS, paid_at=settlement.paid_at)
        if settlement.activate_detail:
            regs.update(target.registration_id, status=RegistrationStatus.ACTIVE, status_detail=settlement.activate_detail)
        if settlement.extend_to:
            regs.update(target.registration_id, end_date=settlement.extend_to)
        if settlement.renewal is not None:
            new_reg = regs.insert(settlement.renewal)
            self.rows[p.payment_id] = dataclasses.replace(
                self.rows[p.payment_id], registration_id=new_reg.registration_id
            )
        return True

    def refund(self, payment_id: int, *, note: str) -> bool:
        p = self.rows.get(payment_id)
        if not p or p.status != PaymentStatus.SUCCESS:
            return False
        self.rows[payment_id] = dataclasses.replace(
            p, status=PaymentStatus.REFUND, note=" | ".join(x for x in (p.note, note) if x)
        )
        return True

    def create_gateway_transaction(self, *, payment_id: int, gateway_name: str, order_id: str, amount) -> int:
        gid = len(self.gateway_rows) + 1
        self.gateway_rows[order_id] = GatewayTransaction(
            gateway_id=gid, payment_id=payment_id, gateway_name=gateway_name, order_id=order_id, amount=amount
        )
        return gid

    def get_gateway_transaction(self, order_id: str) -> Optional[GatewayTransaction]:
        return self.gateway_rows.get(order_id)

    def record_gateway_response(self, *, order_id, trans_id, resp_code, message, callback_at) -> bool:
        txn = self.gateway_rows.get(order_id)
        if not txn:
            return False
        self.gateway_rows[order_id] = dataclasses.replace(
            txn, trans_id=trans_id, resp_code=resp_code, message=message, callback_at=callback_at
        )
        return True


class InMemoryBookings:
    def __init__(self):
        self.rows: dict[int, Booking] = {}
        self._id = 0

    def get(self, booking_id: int) -> Optional[Booking]:
        return self.rows.get(booking_id)

    def list_for_member(self, member_id: int, *, from_date: Optional[date] = None):
        return [
            b for b in self.rows.values() if b.member_id == member_id and (from_date is None or b.class_date >= from_date)
        ]

    def list_for_class(self, class_id: int, day: date):
        return [b for b in self.rows.values() if b.class_id == class_id and b.class_date == day]

    def exists_booked(self, *, member_id: int, class_id: int, day: date) -> bool:
        return any(
            b.member_id == member_id and b.status == BookingStatus.BOOKED for b in self.list_for_class(class_id, day)
        )

    def count_booked(self, class_id: int, day: date) -> int:
        return sum(1 for b in self.list_for_class(class_id, day) if b.status == BookingStatus.BOOKED)

    def book_if_available(self, *, member_id: int, class_id: int, day: date, capacity: int, note=None) -> Optional[int]:
        if self.count_booked(class_id, day) >= capacity:
            return None
        self._id += 1
        self.rows[self._id] = Booking(
            booking_id=self._id, member_id=member_id, class_id=class_id, class_date=day, status=BookingStatus.BOOKED, note=note
        )
        return self._id

    def cancel(self, booking_id: int) -> bool:
        b = self.rows.get(booking_id)
        if not b or b.status != BookingStatus.BOOKED:
            return False
        self.rows[booking_id] = dataclasses.replace(b, status=BookingStatus.CANCELED)
        return True

    def mark_attended(self, *, member_id: int, class_id: int, day: date) -> bool:
        for b in self.list_for_class(class_id, day):
            if b.member_id == member_id and b.status == BookingStatus.BOOKED:
                self.rows[b.booking_id] = dataclasses.replace(b, status=BookingStatus.ATTENDED)
                return True
        return False


class InMemoryCheckIns:
    def __init__(self):
        self.rows: dict[int, CheckIn] = {}
        self._id = 0

    def get(self, checkin_id: int) -> Optional[CheckIn]:
        return self.rows.get(checkin_id)

    def get_for_day(self, member_id: int, day: date) -> Optional[CheckIn]:
        return next(
            (c for c in self.rows.values() if c.member_id == member_id and c.checked_in_at.date() == day), None
        )

    def create_if_absent_for_day(self, *, member_id, checked_in_at, method, class_id=None, confidence=None, note=None):
        if self.get_for_day(member_id, checked_in_at.date()):
            return None
        self._id += 1
        self.rows[self._id] = CheckIn(
            checkin_id=self._id,
            member_id=member_id,
            checked_in_at=checked_in_at,
            method=method,
            class_id=class_id,
            confidence=confidence,
            note=note,
        )
        return self._id

    def check_out(self, checkin_id: int, *, at: datetime) -> bool:
        c = self.rows.get(checkin_id)
        if not c or c.checked_out_at is not None:
            return False
        self.rows[checkin_id] = dataclasses.replace(c, checked_out_at=at)
        return True

    def list_for_day(self, day: date):
        return [c for c in self.rows.values() if c.checked_in_at.date() == day]

    def list_for_member(self, member_id: int, *, limit: int = 50):
        return [c for c in self.rows.values() if c.member_id == member_id][:limit]


class InMemoryFaces:
    def __init__(self):
        self.rows = {}

    def list_all(self):
        return list(self.rows.values())

    def save(self, sample) -> None:
        self.rows[sample.user_id] = sample

    def delete(self, user_id: int) -> bool:
        return self.rows.pop(user_id, None) is not None


@dataclass
class GymWorld:
    """Repositories and services wired like the app container, minus MySQL."""

    catalog: InMemoryCatalog = field(default_factory=InMemoryCatalog)
    users: InMemoryUsers = field(default_factory=InMemoryUsers)
    notifications_repo: InMemoryNotifications = field(default_factory=InMemoryNotifications)
    registrations: InMemoryRegistrations = field(default_factory=InMemoryRegistrations)
    bookings: InMemoryBookings = field(default_factory=InMemoryBookings)
    checkins: InMemoryCheckIns = field(default_factory=InMemoryCheckIns)
    faces: InMemoryFaces = field(default_factory=InMemoryFaces)
    gateway: Optional[VnPayGateway] = None

    def __post_init__(self):
        self.payments = InMemoryPayments(self.registrations)
        self.notifications = NotificationService(self.notifications_repo)
        self.promotions = PromotionService(self.catalog)
        self.registration_service = RegistrationService(self.registrations, self.notifications)
        self.payment_service = PaymentService(
            self.payments,
            self.registrations,
            self.catalog,
            self.notifications,
            self.promotions,
            gateway=self.gateway,
        )
        self.booking_service = BookingService(self.bookings, self.catalog, self.notifications)
        self.checkin_service = CheckInService(
            self.checkins, self.faces, self.users, self.catalog, self.bookings, self.notifications
        )
        self.walkin_service = WalkInService(
            self.users,
            self.registrations,
            self.payments,
            self.payment_service,
            self.checkin_service,
            pass_price=Decimal("50000"),
        )

    def add_member(self, name: str = "Nguyễn Văn A", **kwargs) -> User:
        kwargs.setdefault("joined_on", date(2024, 1, 1))
        kwargs.setdefault("role", Role.MEMBER)
        return self.users.add(full_name=name, **kwargs)

    def add_package(self, package_id: int = 1, *, price="1500000", months: int = 3, name="Gói 3 tháng") -> Package:
        pkg = Package(package_id=package_id, name=name, duration_months=months, price=Decimal(price))
        self.catalog.packages[package_id] = pkg
        return pkg

    def add_class(
        self,
        class_id: int = 1,
        *,
        name: str = "Yoga sáng",
        trainer_id: Optional[int] = None,
        capacity: int = 20,
        weekdays: str = "Thứ 2,Thứ 4,Thứ 6",
        custom_price=None,
        status: ClassStatus = ClassStatus.OPEN,
        course_start: Optional[date] = None,
        course_end: Optional[date] = None,
    ) -> GymClass:
        gym_class = GymClass(
            class_id=class_id,
            name=name,
            trainer_id=trainer_id,
            capacity=capacity,
            start_time=time(7, 0),
            end_time=time(8, 0),
            weekdays=weekdays,
            status=status,
            custom_price=Decimal(str(custom_price)) if custom_price is not None else None,
            course_start=course_start,
            course_end=course_end,
        )
        self.catalog.classes[class_id] = gym_class
        return gym_class

    def add_promotion(self, promotion_id: int = 1, *, code="WELCOME10", percent=10, start=None, end=None, active=True):
        promo = Promotion(
            promotion_id=promotion_id,
            code=code,
            percent=percent,
            start_date=start or date(2024, 1, 1),
            end_date=end or date(2024, 12, 31),
            is_active=active,
        )
        self.catalog.promotions[promotion_id] = promo
        return promo


TEST_VNPAY = {
    "tmn_code": "TEST0001",
    "hash_secret": "test-hash-secret",
    "base_url": "https://sandbox.vnpayment.vn/paymentv2/vpcpay.html",
    "return_url": "http://localhost/payments/vnpay/return",
    "simulate": True,
}


@pytest.fixture
def world() -> GymWorld:
    return GymWorld()


@pytest.fixture
def vnpay_gateway() -> VnPayGateway:
    return VnPayGateway(VnPayConfig.from_dict(TEST_VNPAY))


@pytest.fixture
def gateway_world(vnpay_gateway) -> GymWorld:
    return GymWorld(gateway=vnpay_gateway)
