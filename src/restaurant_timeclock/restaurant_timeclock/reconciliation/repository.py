from __future__ import annotations

from datetime import datetime, time
from typing import Optional, Protocol, Sequence

from ..core.enums import NudgeStatus, NudgeType
from .model import ClockOutNudge, PotentialClockOut


class NudgeRepository(Protocol):
    def create(
        self,
        *,
        employee_id: int,
        time_entry_id: Optional[int],
        nudge_type: NudgeType,
        title: str,
        message: str,
        suggested_time: datetime,
        created_at: datetime,
        potential_clock_out_time: Optional[datetime] = None,
        scheduled_end_time: Optional[time] = None,
    ) -> int:
        raise NotImplementedError

    def get_by_id(self, nudge_id: int) -> Optional[ClockOutNudge]:
        raise NotImplementedError

    def list_nudges(
        self,
        *,
        employee_id: Optional[int] = None,
        status: Optional[NudgeStatus] = None,
        requires_manager_action: Optional[bool] = None,
        limit: int = 200,
    ) -> Sequence[ClockOutNudge]:
        raise NotImplementedError

    def exists_since(self, *, employee_id: int, nudge_type: NudgeType, since: datetime) -> bool:
        raise NotImplementedError

    def respond(
        self,
        *,
        nudge_id: int,
        status: NudgeStatus,
        requires_manager_action: bool,
        confirmed_clock_out: Optional[datetime],
        responded_at: datetime,
    ) -> bool:
        """Resolve a PENDING nudge; False when it was already answered."""

        raise NotImplementedError

    def complete_manager_action(self, *, nudge_id: int, confirmed_clock_out: datetime) -> bool:
        """Clear requires_manager_action on a NEEDS_MANAGER nudge; False when already cleared."""

        raise NotImplementedError


class CandidateRepository(Protocol):
    def add(self, candidate: PotentialClockOut) -> bool:
        """Record a candidate unless one is already pending for the employee."""

        raise NotImplementedError

    def list_all(self) -> Sequence[PotentialClockOut]:
        raise NotImplementedError

    def remove(self, employee_id: int) -> None:
        raise NotImplementedError
