from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol

from ..core.enums import ShiftLabel, Weekday
from .model import Employee, ManualDay


class EmployeeRepository(Protocol):
    """Employee Directory.

    The timeclock only reads employees, except for the schedule fields written
    when an availability change is approved.
    """

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def set_schedule_override(
        self,
        *,
        employee_id: int,
        weekday: Weekday,
        day: ManualDay,
        effective_date: date,
    ) -> bool:
        raise NotImplementedError

    def set_availability(self, *, employee_id: int, weekday: Weekday, labels: Iterable[ShiftLabel]) -> bool:
        """Replace the recurring availability of one weekday."""

        raise NotImplementedError
