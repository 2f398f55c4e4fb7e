from __future__ import annotations

from ...core.enums import ApprovalReason, TimeEntryStatus
from ...schedules.grace import GraceStatus
from .base import ClockInDecision, ClockInStrategy


class LateClockInStrategy(ClockInStrategy):
    """Clock-in after the grace window closed."""

    def decide(self, grace: GraceStatus) -> ClockInDecision:
        return ClockInDecision(status=TimeEntryStatus.PENDING_APPROVAL, approval_reason=ApprovalReason.LATE_CLOCK_IN)
