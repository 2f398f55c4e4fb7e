from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time

from ..common.datetime_utils import signed_minutes
from ..core.constants import GRACE_PERIOD_AFTER, GRACE_PERIOD_BEFORE


@dataclass(frozen=True)
class GraceStatus:
    """Classification of an event against a shift boundary.

    Exactly one of is_within_grace / is_early / is_late is true.
    """

    is_within_grace: bool
    is_early: bool
    is_late: bool
    minutes_early: int
    minutes_late: int
    time_difference: int

    @classmethod
    def from_difference(
        cls,
        minutes: int,
        *,
        before: int = GRACE_PERIOD_BEFORE,
        after: int = GRACE_PERIOD_AFTER,
    ) -> "GraceStatus":
        return cls(
            is_within_grace=-before <= minutes <= after,
            is_early=minutes < -before,
            is_late=minutes > after,
            minutes_early=-minutes if minutes < 0 else 0,
            minutes_late=minutes if minutes > 0 else 0,
            time_difference=minutes,
        )

    def to_dict(self) -> dict:
        return {
            "is_within_grace": self.is_within_grace,
            "is_early": self.is_early,
            "is_late": self.is_late,
            "minutes_early": self.minutes_early,
            "minutes_late": self.minutes_late,
            "time_difference": self.time_difference,
        }


def evaluate_grace(
    boundary: time,
    observed: datetime,
    *,
    before: int = GRACE_PERIOD_BEFORE,
    after: int = GRACE_PERIOD_AFTER,
) -> GraceStatus:
    """Compare an observed timestamp with a same-day shift boundary."""

    boundary_at = datetime.combine(observed.date(), boundary)
    return GraceStatus.from_difference(signed_minutes(observed, boundary_at), before=before, after=after)
