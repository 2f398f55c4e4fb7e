from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from typing import Mapping, Optional

from ..core.enums import Role, ShiftLabel, Weekday


@dataclass(frozen=True)
class ManualDay:
    """One weekday of a hand-entered schedule."""

    is_working: bool
    clock_in: Optional[time] = None
    clock_out: Optional[time] = None


@dataclass(frozen=True)
class ScheduleOverride:
    """Manager-approved replacement for one weekday, effective from a date."""

    weekday: Weekday
    day: ManualDay
    effective_date: date


@dataclass(frozen=True)
class EmployeeSchedule:
    manual: Mapping[Weekday, ManualDay] = field(default_factory=dict)
    availability: Mapping[Weekday, frozenset[ShiftLabel]] = field(default_factory=dict)
    overrides: Mapping[Weekday, ScheduleOverride] = field(default_factory=dict)

    def manual_day_for(self, target: date) -> Optional[ManualDay]:
        weekday = Weekday.of(target)
        override = self.overrides.get(weekday)
        if override and override.effective_date <= target:
            return override.day
        return self.manual.get(weekday)


@dataclass(frozen=True)
class Employee:
    """Domain entity: employee record as read from the directory."""

    employee_id: int
    full_name: str
    role: Role = Role.EMPLOYEE
    is_active: bool = True
    schedule: EmployeeSchedule = field(default_factory=EmployeeSchedule)
