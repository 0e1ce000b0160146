"""VNPay redirect-URL signing and return verification (API version 2.1.0).

Request parameters are sorted by key, URL-encoded (``quote_plus``) and signed
with HMAC-SHA512 over the encoded query string; the hex digest travels as
``vnp_SecureHash``.
"""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Mapping, Optional
from urllib.parse import quote_plus

from ..common.money import to_money

VERSION = "2.1.0"
SUCCESS_CODE = "00"

_HASH_KEYS = {"vnp_SecureHash", "vnp_SecureHashType"}


@dataclass(frozen=True)
class VnPayConfig:
    tmn_code: str
    hash_secret: str
    base_url: str
    return_url: str
    simulate: bool = False

    @classmethod
    def from_dict(cls, data: Mapping) -> "VnPayConfig":
        return cls(
            tmn_code=str(data.get("tmn_code", "")),
            hash_secret=str(data.get("hash_secret", "")),
            base_url=str(data.get("base_url", "https://sandbox.vnpayment.vn/paymentv2/vpcpay.html")),
            return_url=str(data.get("return_url", "")),
            simulate=bool(data.get("simulate", False)),
        )


@dataclass(frozen=True)
class VnPayReturn:
    order_id: str
    response_code: str
    transaction_no: Optional[str]
    amount: Optional[Decimal]

    @property
    def is_success(self) -> bool:
        return self.response_code == SUCCESS_CODE


def _encode(params: Mapping[str, str]) -> str:
    return "&".join(
        f"{quote_plus(str(k))}={quote_plus(str(v))}"
        for k, v in sorted(params.items())
        if v is not None and str(v) != ""
    )


class VnPayGateway:
    def __init__(self, config: VnPayConfig):
        self._config = config

    @property
    def simulate(self) -> bool:
        return self._config.simulate

    def sign(self, params: Mapping[str, str]) -> str:
        return hmac.new(
            self._config.hash_secret.encode("utf-8"),
            _encode(params).encode("utf-8"),
            hashlib.sha512,
        ).hexdigest()

    def build_payment_url(
        self,
        *,
        order_id: str,
        amount: Decimal,
        order_info: str,
        client_ip: str,
        created_at: datetime,
    ) -> str:
        params = {
            "vnp_Version": VERSION,
            "vnp_Command": "pay",
            "vnp_TmnCode": self._config.tmn_code,
            # VND minor units
            "vnp_Amount": str(int(to_money(amount)) * 100),
            "vnp_CreateDate": created_at.strftime("%Y%m%d%H%M%S"),
            "vnp_CurrCode": "VND",
            "vnp_IpAddr": client_ip or "127.0.0.1",
            "vnp_Locale": "vn",
            "vnp_OrderInfo": order_info,
            "vnp_OrderType": "other",
            "vnp_ReturnUrl": self._config.return_url,
            "vnp_TxnRef": order_id,
        }
        query = _encode(params)
        return f"{self._config.base_url}?{query}&vnp_SecureHash={self.sign(params)}"

    def verify(self, params: Mapping[str, str]) -> bool:
        received = str(params.get("vnp_SecureHash") or "")
        if not received:
            return False
        data = {k: v for k, v in params.items() if k.startswith("vnp_") and k not in _HASH_KEYS}
        return hmac.compare_digest(self.sign(data).lower(), received.lower())

    @staticmethod
    def parse_return(params: Mapping[str, str]) -> VnPayReturn:
        raw_amount = params.get("vnp_Amount")
        amount = Decimal(str(raw_amount)) / 100 if raw_amount else None
        return VnPayReturn(
            order_id=str(params.get("vnp_TxnRef") or ""),
            response_code=str(params.get("vnp_ResponseCode") or ""),
            transaction_no=params.get("vnp_TransactionNo"),
            amount=amount,
        )

    def simulated_return_params(
        self, *, order_id: str, amount: Decimal, response_code: str = SUCCESS_CODE
    ) -> dict[str, str]:
        """Signed return parameters as the sandbox would send them (development only)."""
        params = {
            "vnp_TmnCode": self._config.tmn_code,
            "vnp_TxnRef": order_id,
            "vnp_Amount": str(int(to_money(amount)) * 100),
            "vnp_ResponseCode": response_code,
            "vnp_TransactionNo": f"SIM{order_id}",
            "vnp_OrderInfo": f"Thanh toan don hang:{order_id}",
        }
        params["vnp_SecureHash"] = self.sign(params)
        return params
