from __future__ import annotations

from dataclasses import dataclass

from ..schedules.grace import GraceStatus
from .strategies.base import ClockInStrategy
from .strategies.early_strategy import EarlyClockInStrategy
from .strategies.late_strategy import LateClockInStrategy
from .strategies.on_time_strategy import OnTimeStrategy


@dataclass
class ClockInStrategyFactory:
    """Factory Pattern: choose the clock-in strategy from the grace classification."""

    def for_grace(self, grace: GraceStatus) -> ClockInStrategy:
        if grace.is_within_grace:
            return OnTimeStrategy()
        if grace.is_early:
            return EarlyClockInStrategy()
        return LateClockInStrategy()
