from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from ..catalog.model import Promotion
from ..catalog.repository import CatalogRepository
from ..common.money import to_money
from ..registrations.pricing import apply_discount

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PromotionCheck:
    valid: bool
    message: str
    promotion: Optional[Promotion] = None

    @property
    def percent(self) -> int:
        if not self.valid or not self.promotion or not self.promotion.percent:
            return 0
        return int(self.promotion.percent)


class PromotionService:
    def __init__(self, catalog: CatalogRepository):
        self._catalog = catalog

    def validate_code(self, code: str, *, today: Optional[date] = None) -> PromotionCheck:
        today = today or date.today()
        code = (code or "").strip()
        if not code:
            return PromotionCheck(False, "Vui lòng nhập mã khuyến mãi")

        promo = self._catalog.get_promotion_by_code(code)
        return self._check(promo, today)

    def check_promotion(self, promotion_id: Optional[int], *, today: Optional[date] = None) -> PromotionCheck:
        if promotion_id is None:
            return PromotionCheck(False, "Vui lòng nhập mã khuyến mãi")
        promo = self._catalog.get_promotion(int(promotion_id))
        return self._check(promo, today or date.today())

    @staticmethod
    def _check(promo: Optional[Promotion], today: date) -> PromotionCheck:
        if not promo:
            return PromotionCheck(False, "Mã khuyến mãi không tồn tại")
        if not promo.is_active:
            return PromotionCheck(False, "Mã khuyến mãi đã bị vô hiệu hóa", promo)
        if today < promo.start_date:
            return PromotionCheck(False, "Mã khuyến mãi chưa có hiệu lực", promo)
        if today > promo.end_date:
            return PromotionCheck(False, "Mã khuyến mãi đã hết hạn", promo)
        return PromotionCheck(True, f"Áp dụng giảm {promo.percent or 0}%", promo)

    def discount_for(self, promotion_id: Optional[int], amount: Decimal, *, today: Optional[date] = None) -> Decimal:
        """Discount amount (not the discounted price); 0 when the promotion does not apply."""
        check = self.check_promotion(promotion_id, today=today)
        if not check.valid:
            return Decimal("0")
        return to_money(amount) - apply_discount(amount, check.percent)

    def deactivate_expired(self, *, today: Optional[date] = None) -> int:
        count = self._catalog.deactivate_promotions_ended_before(today or date.today())
        if count:
            logger.info("Deactivated expired promotions", extra={"count": count})
        return count
