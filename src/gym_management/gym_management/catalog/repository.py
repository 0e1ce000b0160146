from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import GymClass, Package, Promotion


class CatalogRepository(Protocol):
    # Packages
    def get_package(self, package_id: int) -> Optional[Package]:
        raise NotImplementedError

    def list_packages(self) -> Sequence[Package]:
        raise NotImplementedError

    # Classes
    def get_class(self, class_id: int) -> Optional[GymClass]:
        raise NotImplementedError

    def list_classes(self, *, trainer_id: Optional[int] = None) -> Sequence[GymClass]:
        raise NotImplementedError

    # Promotions
    def get_promotion(self, promotion_id: int) -> Optional[Promotion]:
        raise NotImplementedError

    def get_promotion_by_code(self, code: str) -> Optional[Promotion]:
        raise NotImplementedError

    def deactivate_promotions_ended_before(self, day: date) -> int:
        raise NotImplementedError
