from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta
from typing import Optional

from ..core.exceptions import ValidationError

MINUTES_PER_DAY = 24 * 60


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value.strip())
    except (AttributeError, ValueError):
        raise ValidationError("Invalid timestamp (expected ISO 8601)")


def parse_hhmm(value: Optional[str]) -> Optional[time]:
    v = (value or "").strip()
    if not v:
        return None
    try:
        return datetime.strptime(v, "%H:%M").time()
    except ValueError:
        raise ValidationError("Invalid time (HH:MM)")


def format_hhmm(value: Optional[time | datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.strftime("%H:%M")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so services can take it as an injectable clock.
    """
    return datetime.now()


def signed_minutes(later: datetime, earlier: datetime) -> int:
    """Whole minutes from earlier to later, rounding halves up."""
    return math.floor((later - earlier).total_seconds() / 60 + 0.5)


def hours_between(clock_in: time, clock_out: time) -> float:
    """Elapsed hours between two times of day.

    A clock-out earlier than the clock-in is taken to cross midnight.
    """
    in_minutes = clock_in.hour * 60 + clock_in.minute
    out_minutes = clock_out.hour * 60 + clock_out.minute
    if out_minutes < in_minutes:
        out_minutes += MINUTES_PER_DAY
    return round((out_minutes - in_minutes) / 60, 2)


def window_end_instant(work_date: date, start: time, end: time) -> datetime:
    """Absolute end of a shift that starts on work_date; overnight ends roll to the next day."""
    end_at = datetime.combine(work_date, end)
    if end <= start:
        end_at += timedelta(days=1)
    return end_at
