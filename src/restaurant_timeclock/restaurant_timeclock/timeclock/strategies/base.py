from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ...core.enums import ApprovalReason, TimeEntryStatus
from ...schedules.grace import GraceStatus


@dataclass(frozen=True)
class ClockInDecision:
    status: TimeEntryStatus
    approval_reason: Optional[ApprovalReason] = None

    @property
    def approval_required(self) -> bool:
        return self.approval_reason is not None


class ClockInStrategy(ABC):
    """Strategy Pattern: encapsulate how a clock-in is classified."""

    @abstractmethod
    def decide(self, grace: GraceStatus) -> ClockInDecision:
        raise NotImplementedError
