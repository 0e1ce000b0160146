from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import PaymentMethod, PaymentStatus, RegistrationStatus
from ..core.exceptions import ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_money, db_cursor, fetchall, fetchone, lock_row
from ..registrations.model import NewRegistration
from .model import GatewayTransaction, NewPayment, Payment, Settlement
from .repository import PaymentRepository

logger = logging.getLogger(__name__)

_PAYMENT_COLUMNS = """
    payment_id, registration_id, amount, method, status, paid_at, note, created_at, renewal_months
"""

_INSERT_REGISTRATION = """
    INSERT INTO registrations(
        member_id, package_id, class_id, kind, start_date, end_date, status, fee, status_detail
    )
"""


def _to_payment(r: dict) -> Payment:
    return Payment(
        payment_id=int(r["payment_id"]),
        registration_id=r.get("registration_id"),
        amount=as_money(r["amount"]),
        method=PaymentMethod(r["method"]),
        status=PaymentStatus(r["status"]),
        paid_at=r.get("paid_at"),
        note=r.get("note"),
        created_at=r.get("created_at"),
        renewal_months=r.get("renewal_months"),
    )


class _RegistrationChanged(Exception):
    """The registration left the state the settlement was planned against."""

def _registration_values(reg: NewRegistration) -> tuple:
    return (
        int(reg.member_id),
        reg.package_id,
        reg.class_id,
        reg.kind.value,
        reg.start_date,
        reg.end_date,
        reg.status.value,
        reg.fee,
        reg.status_detail,
    )


class MySQLPaymentRepository(PaymentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _insert_payment(cur, registration_id: Optional[int], payment: NewPayment) -> Payment:
        cur.execute(
            """
            INSERT INTO payments(registration_id, amount, method, status, note, renewal_months)
            VALUES(%s,%s,%s,%s,%s,%s)
            """,
            (
                registration_id,
                payment.amount,
                payment.method.value,
                PaymentStatus.PENDING.value,
                payment.note,
                payment.renewal_months,
            ),
        )
        payment_id = int(cur.lastrowid)
        cur.execute(f"SELECT {_PAYMENT_COLUMNS} FROM payments WHERE payment_id=%s", (payment_id,))
        return _to_payment(fetchone(cur))

    def create_with_registration(
        self,
        registration: NewRegistration,
        payment: NewPayment,
        *,
        capacity_limit: Optional[int] = None,
        capacity_on: Optional[date] = None,
    ) -> Payment:
        with db_cursor(self._conn_factory) as (_, cur):
            if capacity_limit is not None and registration.class_id is not None:
                # Serialize enrolments per class, then insert only while seats remain.
                lock_row(cur, "gym_classes", registration.class_id)
                cur.execute(
                    _INSERT_REGISTRATION
                    + """
                    SELECT %s,%s,%s,%s,%s,%s,%s,%s,%s FROM DUAL
                    WHERE (
                        SELECT COUNT(*) FROM registrations
                        WHERE class_id=%s AND status IN (%s, %s) AND end_date >= %s
                    ) < %s
                    """,
                    (
                        *_registration_values(registration),
                        registration.class_id,
                        RegistrationStatus.PENDING_PAYMENT.value,
                        RegistrationStatus.ACTIVE.value,
                        capacity_on or registration.start_date,
                        int(capacity_limit),
                    ),
                )
                if cur.rowcount == 0:
                    raise ValidationError("Lớp học đã đầy")
            else:
                cur.execute(
                    _INSERT_REGISTRATION + " VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)",
                    _registration_values(registration),
                )
            registration_id = int(cur.lastrowid)
            return self._insert_payment(cur, registration_id, payment)

    def create_for_registration(self, registration_id: int, payment: NewPayment) -> Payment:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._insert_payment(cur, int(registration_id), payment)

    def get(self, payment_id: int) -> Optional[Payment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_PAYMENT_COLUMNS} FROM payments WHERE payment_id=%s", (int(payment_id),))
            r = fetchone(cur)
            return _to_payment(r) if r else None

    def list_for_registration(self, registration_id: int) -> Sequence[Payment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_PAYMENT_COLUMNS} FROM payments WHERE registration_id=%s ORDER BY created_at, payment_id",
                (int(registration_id),),
            )
            return [_to_payment(r) for r in fetchall(cur)]

    @staticmethod
    def _holds_other_active_package(cur, member_id: int, registration_id: Optional[int]) -> bool:
        cur.execute(
            """
            SELECT 1 FROM registrations
            WHERE member_id=%s AND package_id IS NOT NULL AND status=%s AND registration_id<>%s
            LIMIT 1
            """,
            (int(member_id), RegistrationStatus.ACTIVE.value, int(registration_id or 0)),
        )
        return fetchone(cur) is not None

    def settle(self, settlement: Settlement) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                if settlement.package_member_id is not None:
                    # One ACTIVE package per member: serialize on the member row, then re-check.
                    lock_row(cur, "users", settlement.package_member_id)
                    if self._holds_other_active_package(
                        cur, settlement.package_member_id, settlement.registration_id
                    ):
                        logger.warning(
                            "Settlement refused: member already holds an active package",
                            extra={"payment_id": settlement.payment_id, "member_id": settlement.package_member_id},
                        )
                        return False

                cur.execute(
                    """
                    UPDATE payments p
                    LEFT JOIN registrations r ON r.registration_id = p.registration_id
                    SET p.status=%s, p.paid_at=%s
                    WHERE p.payment_id=%s AND p.status=%s
                      AND (r.registration_id IS NULL OR r.status <> %s)
                    """,
                    (
                        PaymentStatus.SUCCESS.value,
                        settlement.paid_at,
                        int(settlement.payment_id),
                        PaymentStatus.PENDING.value,
                        RegistrationStatus.CANCELED.value,
                    ),
                )
                if cur.rowcount == 0:
                    return False

                if settlement.registration_id is not None and settlement.activate_detail:
                    cur.execute(
                        """
                        UPDATE registrations SET status=%s, status_detail=%s
                        WHERE registration_id=%s AND status=%s
                        """,
                        (
                            RegistrationStatus.ACTIVE.value,
                            settlement.activate_detail,
                            int(settlement.registration_id),
                            RegistrationStatus.PENDING_PAYMENT.value,
                        ),
                    )
                    if cur.rowcount == 0:
                        raise _RegistrationChanged()

                if settlement.registration_id is not None and settlement.extend_to:
                    cur.execute(
                        """
                        UPDATE registrations SET end_date=%s, status_detail=%s
                        WHERE registration_id=%s AND status=%s AND end_date < %s
                        """,
                        (
                            settlement.extend_to,
                            f"Gia hạn đến {settlement.extend_to:%d/%m/%Y}",
                            int(settlement.registration_id),
                            RegistrationStatus.ACTIVE.value,
                            settlement.extend_to,
                        ),
                    )
                    if cur.rowcount == 0:
                        raise _RegistrationChanged()

                if settlement.renewal is not None:
                    cur.execute(
                        _INSERT_REGISTRATION + " VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)",
                        _registration_values(settlement.renewal),
                    )
                    cur.execute(
                        "UPDATE payments SET registration_id=%s WHERE payment_id=%s",
                        (int(cur.lastrowid), int(settlement.payment_id)),
                    )
                return True
        except _RegistrationChanged:
            # db_cursor already rolled the payment update back.
            logger.warning(
                "Settlement rolled back: registration changed",
                extra={"payment_id": settlement.payment_id, "registration_id": settlement.registration_id},
            )
            return False

    def refund(self, payment_id: int, *, note: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE payments
                SET status=%s, note=CONCAT_WS(' | ', NULLIF(note, ''), %s)
                WHERE payment_id=%s AND status=%s
                """,
                (PaymentStatus.REFUND.value, note, int(payment_id), PaymentStatus.SUCCESS.value),
            )
            return cur.rowcount > 0

    # -------- Gateway records --------
    def create_gateway_transaction(
        self, *, payment_id: int, gateway_name: str, order_id: str, amount: Decimal
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO payment_gateway_transactions(payment_id, gateway_name, order_id, amount)
                VALUES(%s,%s,%s,%s)
                """,
                (int(payment_id), gateway_name, order_id, amount),
            )
            return int(cur.lastrowid)

    def get_gateway_transaction(self, order_id: str) -> Optional[GatewayTransaction]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT gateway_id, payment_id, gateway_name, order_id, amount,
                       trans_id, resp_code, message, callback_at
                FROM payment_gateway_transactions
                WHERE order_id=%s
                """,
                (order_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return GatewayTransaction(
                gateway_id=int(r["gateway_id"]),
                payment_id=int(r["payment_id"]),
                gateway_name=r["gateway_name"],
                order_id=r["order_id"],
                amount=as_money(r["amount"]) if r.get("amount") is not None else None,
                trans_id=r.get("trans_id"),
                resp_code=r.get("resp_code"),
                message=r.get("message"),
                callback_at=r.get("callback_at"),
            )

    def record_gateway_response(
        self,
        *,
        order_id: str,
        trans_id: Optional[str],
        resp_code: str,
        message: str,
        callback_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE payment_gateway_transactions
                SET trans_id=%s, resp_code=%s, message=%s, callback_at=%s
                WHERE order_id=%s
                """,
                (trans_id, resp_code, message, callback_at, order_id),
            )
            return cur.rowcount > 0
