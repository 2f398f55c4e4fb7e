from __future__ import annotations

from ...core.enums import ApprovalReason, TimeEntryStatus
from ...schedules.grace import GraceStatus
from .base import ClockInDecision, ClockInStrategy


class EarlyClockInStrategy(ClockInStrategy):
    """Clock-in before the grace window opens."""

    def decide(self, grace: GraceStatus) -> ClockInDecision:
        return ClockInDecision(status=TimeEntryStatus.PENDING_APPROVAL, approval_reason=ApprovalReason.EARLY_CLOCK_IN)
