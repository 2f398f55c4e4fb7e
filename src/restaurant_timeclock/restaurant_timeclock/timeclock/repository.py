from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import ApprovalReason, TimeEntryStatus
from ..schedules.grace import GraceStatus
from ..schedules.model import ShiftWindow
from .model import ClockStatus, TimeEntry


class TimeEntryRepository(Protocol):
    def create_open_entry(
        self,
        *,
        employee_id: int,
        work_date: date,
        clock_in_time: datetime,
        scheduled_shift: Optional[ShiftWindow],
        grace_status: Optional[GraceStatus],
        status: TimeEntryStatus,
        approval_reason: Optional[ApprovalReason],
        location_id: Optional[str],
        created_at: datetime,
    ) -> Optional[int]:
        """Insert an open entry.

        Returns None when another open entry already exists for the employee and day.
        """

        raise NotImplementedError

    def get_by_id(self, entry_id: int) -> Optional[TimeEntry]:
        raise NotImplementedError

    def find_open_entry(self, *, employee_id: int, work_dates: Sequence[date]) -> Optional[TimeEntry]:
        """Most recent open entry among the given work dates."""

        raise NotImplementedError

    def list_open_entries(self) -> Sequence[TimeEntry]:
        raise NotImplementedError

    def list_for_employee(
        self,
        *,
        employee_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
        limit: int = 30,
    ) -> Sequence[TimeEntry]:
        """Newest first."""

        raise NotImplementedError

    def close_entry(
        self,
        *,
        entry_id: int,
        clock_out_time: datetime,
        total_hours: float,
        updated_at: datetime,
        auto_clock_out: bool = False,
        auto_clock_out_reason: Optional[str] = None,
    ) -> bool:
        """Set the clock-out only if the entry is still open."""

        raise NotImplementedError

    def set_approval_status(
        self,
        *,
        entry_id: int,
        status: TimeEntryStatus,
        approved_by: int,
        approved_at: datetime,
        approval_notes: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError

    def delete_open_entry(self, entry_id: int) -> bool:
        """Remove an entry that is still open; used to undo a clock-in that could not be completed."""

        raise NotImplementedError


class ClockStatusRepository(Protocol):
    def get(self, employee_id: int) -> Optional[ClockStatus]:
        raise NotImplementedError

    def save(self, status: ClockStatus) -> None:
        raise NotImplementedError
