from __future__ import annotations

from ...core.enums import TimeEntryStatus
from ...schedules.grace import GraceStatus
from .base import ClockInDecision, ClockInStrategy


class OnTimeStrategy(ClockInStrategy):
    """Clock-in inside the grace window, approved directly."""

    def decide(self, grace: GraceStatus) -> ClockInDecision:
        return ClockInDecision(status=TimeEntryStatus.APPROVED)
