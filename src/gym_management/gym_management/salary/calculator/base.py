from __future__ import annotations

from abc import ABC, abstractmethod

from ..config import CommissionConfig
from ..model import CommissionBreakdown, TrainerMonthStats


class CommissionCalculator(ABC):
    """Calculator interface (Strategy Pattern for trainer commission)."""

    def __init__(self, config: CommissionConfig | None = None):
        self.config = config or CommissionConfig()

    @abstractmethod
    def calculate(self, stats: TrainerMonthStats) -> CommissionBreakdown:
        raise NotImplementedError
