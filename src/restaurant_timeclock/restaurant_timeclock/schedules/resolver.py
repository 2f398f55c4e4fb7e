from __future__ import annotations

from datetime import date

from ..core.constants import CANONICAL_SHIFT_TIMES
from ..core.enums import ShiftSource, Weekday
from ..employees.model import Employee
from .model import ShiftWindow


def resolve_shift_windows(employee: Employee, target_date: date) -> list[ShiftWindow]:
    """Expected shift windows for one employee on one calendar day.

    The manual (or approved override) day and every available recurring shift are
    all returned; nothing is deduplicated. The result is stably sorted by start time,
    so among equally close windows the earlier one is picked by callers.
    """

    schedule = employee.schedule
    windows: list[ShiftWindow] = []

    manual_day = schedule.manual_day_for(target_date)
    if manual_day and manual_day.is_working and manual_day.clock_in and manual_day.clock_out:
        windows.append(
            ShiftWindow(
                start_time=manual_day.clock_in,
                end_time=manual_day.clock_out,
                source=ShiftSource.MANUAL,
            )
        )

    available = schedule.availability.get(Weekday.of(target_date), frozenset())
    for label, (start, end) in CANONICAL_SHIFT_TIMES.items():
        if label in available:
            windows.append(ShiftWindow(start_time=start, end_time=end, source=ShiftSource.AUTOMATIC, label=label))

    windows.sort(key=lambda w: w.start_time)
    return windows
