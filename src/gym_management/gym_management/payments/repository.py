from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..registrations.model import NewRegistration
from .model import GatewayTransaction, NewPayment, Payment, Settlement


class PaymentRepository(Protocol):
    def create_with_registration(
        self,
        registration: NewRegistration,
        payment: NewPayment,
        *,
        capacity_limit: Optional[int] = None,
        capacity_on: Optional[date] = None,
    ) -> Payment:
        """Insert registration + payment in one transaction.

        With ``capacity_limit`` the registration is only inserted while the class
        holds fewer than that many PENDING_PAYMENT/ACTIVE registrations covering
        ``capacity_on``; otherwise ``ValidationError`` is raised and nothing is written.
        """

        raise NotImplementedError

    def create_for_registration(self, registration_id: int, payment: NewPayment) -> Payment:
        raise NotImplementedError

    def get(self, payment_id: int) -> Optional[Payment]:
        raise NotImplementedError

    def list_for_registration(self, registration_id: int) -> Sequence[Payment]:
        raise NotImplementedError

    def settle(self, settlement: Settlement) -> bool:
        """PENDING -> SUCCESS plus the registration writes, atomically. False if not PENDING."""

        raise NotImplementedError

    def refund(self, payment_id: int, *, note: str) -> bool:
        """SUCCESS -> REFUND, appending ``note``. False if not SUCCESS."""

        raise NotImplementedError

    # Gateway records
    def create_gateway_transaction(
        self, *, payment_id: int, gateway_name: str, order_id: str, amount: Decimal
    ) -> int:
        raise NotImplementedError

    def get_gateway_transaction(self, order_id: str) -> Optional[GatewayTransaction]:
        raise NotImplementedError

    def record_gateway_response(
        self,
        *,
        order_id: str,
        trans_id: Optional[str],
        resp_code: str,
        message: str,
        callback_at: datetime,
    ) -> bool:
        raise NotImplementedError
