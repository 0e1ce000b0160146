from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Optional

from .bookings.mysql_booking_repository import MySQLBookingRepository
from .bookings.service import BookingService
from .catalog.mysql_catalog_repository import MySQLCatalogRepository
from .checkin.face_matcher import FaceMatcher
from .checkin.mysql_checkin_repository import MySQLCheckInRepository, MySQLFaceSampleRepository
from .checkin.service import CheckInService
from .core.constants import DEFAULT_CLASS_PRICE, DEFAULT_WALKIN_PASS_PRICE, FACE_MATCH_THRESHOLD
from .database.connection import DBConfig, DatabaseConnection
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.service import NotificationService
from .payments.mysql_payment_repository import MySQLPaymentRepository
from .payments.service import PaymentService
from .payments.vnpay import VnPayConfig, VnPayGateway
from .promotions.service import PromotionService
from .registrations.mysql_registration_repository import MySQLRegistrationRepository
from .registrations.service import RegistrationService
from .reports.mysql_report_repository import MySQLReportRepository
from .reports.service import ReportService
from .salary.calculator.tiered_calculator import TieredCommissionCalculator
from .salary.config import CommissionConfig
from .salary.mysql_salary_repository import MySQLSalaryRepository, MySQLTrainerRevenueRepository
from .salary.service import SalaryService
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService, UserService
from .walkins.service import WalkInService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    users_repo: MySQLUserRepository
    catalog_repo: MySQLCatalogRepository
    registrations_repo: MySQLRegistrationRepository
    payments_repo: MySQLPaymentRepository

    auth_service: AuthService
    user_service: UserService
    notification_service: NotificationService
    promotion_service: PromotionService
    registration_service: RegistrationService
    payment_service: PaymentService
    booking_service: BookingService
    checkin_service: CheckInService
    walkin_service: WalkInService
    salary_service: SalaryService
    report_service: ReportService


def build_container(
    *,
    db_config: dict,
    vnpay_config: Optional[Mapping] = None,
    commission_config: Optional[Mapping] = None,
    default_class_price: Decimal = DEFAULT_CLASS_PRICE,
    walkin_pass_price: Decimal = DEFAULT_WALKIN_PASS_PRICE,
    face_match_threshold: float = FACE_MATCH_THRESHOLD,
) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    users_repo = MySQLUserRepository(conn)
    catalog_repo = MySQLCatalogRepository(conn)
    registrations_repo = MySQLRegistrationRepository(conn)
    payments_repo = MySQLPaymentRepository(conn)
    notifications_repo = MySQLNotificationRepository(conn)
    bookings_repo = MySQLBookingRepository(conn)
    checkins_repo = MySQLCheckInRepository(conn)
    faces_repo = MySQLFaceSampleRepository(conn)
    salaries_repo = MySQLSalaryRepository(conn)
    revenue_repo = MySQLTrainerRevenueRepository(conn)
    reports_repo = MySQLReportRepository(conn)

    gateway = None
    if vnpay_config and vnpay_config.get("hash_secret"):
        gateway = VnPayGateway(VnPayConfig.from_dict(vnpay_config))

    auth_service = AuthService(users_repo)
    user_service = UserService(users_repo)
    notification_service = NotificationService(notifications_repo)
    promotion_service = PromotionService(catalog_repo)
    registration_service = RegistrationService(registrations_repo, notification_service)
    payment_service = PaymentService(
        payments_repo,
        registrations_repo,
        catalog_repo,
        notification_service,
        promotion_service,
        gateway=gateway,
        default_class_price=default_class_price,
    )
    booking_service = BookingService(bookings_repo, catalog_repo, notification_service)
    checkin_service = CheckInService(
        checkins_repo,
        faces_repo,
        users_repo,
        catalog_repo,
        bookings_repo,
        notification_service,
        matcher=FaceMatcher(face_match_threshold),
    )
    walkin_service = WalkInService(
        users_repo,
        registrations_repo,
        payments_repo,
        payment_service,
        checkin_service,
        pass_price=walkin_pass_price,
    )
    salary_service = SalaryService(
        salaries_repo,
        revenue_repo,
        catalog_repo,
        users_repo,
        notification_service,
        calculator=TieredCommissionCalculator(CommissionConfig.from_dict(commission_config)),
    )
    report_service = ReportService(reports_repo, salary_service, user_service)

    return Container(
        conn=conn,
        users_repo=users_repo,
        catalog_repo=catalog_repo,
        registrations_repo=registrations_repo,
        payments_repo=payments_repo,
        auth_service=auth_service,
        user_service=user_service,
        notification_service=notification_service,
        promotion_service=promotion_service,
        registration_service=registration_service,
        payment_service=payment_service,
        booking_service=booking_service,
        checkin_service=checkin_service,
        walkin_service=walkin_service,
        salary_service=salary_service,
        report_service=report_service,
    )
