from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time
from typing import Optional

from ..common.datetime_utils import format_hhmm
from ..core.enums import NudgeStatus, NudgeType


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class ClockOutNudge:
    """Prompt asking an employee to confirm a suspected missed clock-out.

    PENDING until the employee answers; CONFIRMED and NEEDS_MANAGER are terminal.
    """

    nudge_id: int
    employee_id: int
    nudge_type: NudgeType
    title: str
    message: str
    suggested_time: datetime
    status: NudgeStatus
    created_at: datetime
    time_entry_id: Optional[int] = None
    potential_clock_out_time: Optional[datetime] = None
    scheduled_end_time: Optional[time] = None
    requires_manager_action: bool = False
    confirmed_clock_out: Optional[datetime] = None
    responded_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status == NudgeStatus.PENDING

    @property
    def awaits_manager(self) -> bool:
        return self.status == NudgeStatus.NEEDS_MANAGER and self.requires_manager_action

    def to_dict(self) -> dict:
        return {
            "nudge_id": self.nudge_id,
            "employee_id": self.employee_id,
            "time_entry_id": self.time_entry_id,
            "type": self.nudge_type.value,
            "title": self.title,
            "message": self.message,
            "potential_clock_out_time": _iso(self.potential_clock_out_time),
            "scheduled_end_time": format_hhmm(self.scheduled_end_time),
            "suggested_time": _iso(self.suggested_time),
            "status": self.status.value,
            "requires_manager_action": self.requires_manager_action,
            "confirmed_clock_out": _iso(self.confirmed_clock_out),
            "created_at": _iso(self.created_at),
            "responded_at": _iso(self.responded_at),
        }


@dataclass(frozen=True)
class PotentialClockOut:
    """Moment an employee's device was seen leaving while still clocked in."""

    employee_id: int
    candidate_time: datetime
    recorded_at: datetime
    time_entry_id: Optional[int] = None
