from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import format_hhmm
from ..core.enums import ApprovalReason, ErrorType, TimeEntryStatus
from ..presence.gate import PresenceReading
from ..schedules.grace import GraceStatus
from ..schedules.model import ShiftWindow


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class TimeEntry:
    """Domain entity: one clock-in/clock-out pair.

    Open (clock_out_time is None) between clock-in and clock-out; at most one open
    entry per employee per day.
    """

    entry_id: int
    employee_id: int
    work_date: date
    clock_in_time: datetime
    clock_out_time: Optional[datetime]
    status: TimeEntryStatus
    created_at: datetime
    updated_at: datetime
    scheduled_shift: Optional[ShiftWindow] = None
    grace_status: Optional[GraceStatus] = None
    approval_required: bool = False
    approval_reason: Optional[ApprovalReason] = None
    total_hours: Optional[float] = None
    auto_clock_out: bool = False
    auto_clock_out_reason: Optional[str] = None
    location_id: Optional[str] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    approval_notes: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.clock_out_time is None

    def to_dict(self) -> dict:
        return {
            "entry_id": self.entry_id,
            "employee_id": self.employee_id,
            "date": self.work_date.strftime("%Y-%m-%d"),
            "clock_in_time": format_hhmm(self.clock_in_time),
            "clock_out_time": format_hhmm(self.clock_out_time),
            "clock_in_at": _iso(self.clock_in_time),
            "clock_out_at": _iso(self.clock_out_time),
            "scheduled_shift": self.scheduled_shift.to_dict() if self.scheduled_shift else None,
            "grace_status": self.grace_status.to_dict() if self.grace_status else None,
            "status": self.status.value,
            "approval_required": self.approval_required,
            "approval_reason": self.approval_reason.value if self.approval_reason else None,
            "total_hours": f"{self.total_hours:.2f}" if self.total_hours is not None else None,
            "auto_clock_out": self.auto_clock_out,
            "auto_clock_out_reason": self.auto_clock_out_reason,
            "location_id": self.location_id,
            "approved_by": self.approved_by,
            "approved_at": _iso(self.approved_at),
            "approval_notes": self.approval_notes,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


@dataclass(frozen=True)
class ClockStatus:
    """Per-employee projection of the time entries, rebuilt after every clock event."""

    employee_id: int
    is_currently_clocked: bool = False
    current_time_entry_id: Optional[int] = None
    last_clock_in: Optional[datetime] = None
    last_clock_out: Optional[datetime] = None
    current_shift: Optional[ShiftWindow] = None

    def to_dict(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "is_currently_clocked": self.is_currently_clocked,
            "current_time_entry_id": self.current_time_entry_id,
            "last_clock_in": _iso(self.last_clock_in),
            "last_clock_out": _iso(self.last_clock_out),
            "current_shift": self.current_shift.to_dict() if self.current_shift else None,
        }


@dataclass(frozen=True)
class ClockResult:
    """Outcome of a clock-in/clock-out attempt.

    Rejections are values, not exceptions. A clock-in that needs manager approval
    is still a success with requires_approval set.
    """

    success: bool
    message: str
    error_type: Optional[ErrorType] = None
    time_entry: Optional[TimeEntry] = None
    requires_approval: bool = False
    hours_worked: Optional[float] = None
    shift: Optional[ShiftWindow] = None
    grace_status: Optional[GraceStatus] = None
    location: Optional[PresenceReading] = None

    @classmethod
    def fail(cls, error_type: ErrorType, message: str, *, location: Optional[PresenceReading] = None) -> "ClockResult":
        return cls(success=False, message=message, error_type=error_type, location=location)

    def to_dict(self) -> dict:
        out: dict = {"success": self.success, "message": self.message}
        if not self.success:
            out["error"] = self.message
            out["error_type"] = self.error_type.value if self.error_type else None
        if self.time_entry is not None:
            out["time_entry"] = self.time_entry.to_dict()
        if self.success:
            out["requires_approval"] = self.requires_approval
        if self.hours_worked is not None:
            out["hours_worked"] = f"{self.hours_worked:.2f}"
        if self.location is not None:
            out["location"] = self.location.to_dict()
        return out
