from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..common.datetime_utils import hours_between, window_end_instant
from ..core.enums import ShiftLabel, ShiftSource


@dataclass(frozen=True)
class ShiftWindow:
    """Expected shift for one calendar day. Recomputed on demand, never stored alone."""

    start_time: time
    end_time: time
    source: ShiftSource
    label: Optional[ShiftLabel] = None

    @property
    def crosses_midnight(self) -> bool:
        return self.end_time <= self.start_time

    @property
    def duration_hours(self) -> float:
        return hours_between(self.start_time, self.end_time)

    def end_at(self, work_date: date) -> datetime:
        return window_end_instant(work_date, self.start_time, self.end_time)

    def matches(self, other: Optional["ShiftWindow"]) -> bool:
        if other is None:
            return False
        return (self.start_time, self.end_time, self.source) == (other.start_time, other.end_time, other.source)

    def to_dict(self) -> dict:
        return {
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
            "source": self.source.value,
            "label": self.label.value if self.label else None,
        }
