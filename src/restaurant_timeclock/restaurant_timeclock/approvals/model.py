from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Mapping, Optional

from ..common.datetime_utils import format_hhmm, parse_hhmm, parse_iso_date
from ..core.enums import ApprovalType, AvailabilityChangeKind, RequestStatus, ShiftLabel, Weekday
from ..core.exceptions import ValidationError
from ..employees.model import ManualDay


def _weekday(value: str) -> Weekday:
    try:
        return Weekday(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown weekday: {value!r}")


def _label(value: str) -> ShiftLabel:
    try:
        return ShiftLabel(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown shift: {value!r}")


@dataclass(frozen=True)
class AvailabilityChange:
    """Requested schedule mutation carried by an AVAILABILITY_CHANGE request.

    SCHEDULE_OVERRIDE replaces manual days from effective_date on;
    PERMANENT_CHANGE replaces the recurring availability of the listed weekdays.
    """

    kind: AvailabilityChangeKind
    overrides: Mapping[Weekday, ManualDay] = field(default_factory=dict)
    availability: Mapping[Weekday, frozenset[ShiftLabel]] = field(default_factory=dict)
    effective_date: Optional[date] = None

    @property
    def weekdays(self) -> list[Weekday]:
        days = self.overrides if self.kind == AvailabilityChangeKind.SCHEDULE_OVERRIDE else self.availability
        return [d for d in Weekday if d in days]

    def validate(self) -> None:
        if self.kind == AvailabilityChangeKind.SCHEDULE_OVERRIDE:
            if not self.overrides:
                raise ValidationError("At least one day must be changed")
            if self.effective_date is None:
                raise ValidationError("Effective date is required for a schedule override")
            for weekday, day in self.overrides.items():
                if day.is_working and (day.clock_in is None or day.clock_out is None):
                    raise ValidationError(f"Start and end time are required for {weekday.value}")
        else:
            if not self.availability:
                raise ValidationError("At least one day must be changed")

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "effective_date": self.effective_date.strftime("%Y-%m-%d") if self.effective_date else None,
            "overrides": {
                d.value: {
                    "is_working": day.is_working,
                    "clock_in": format_hhmm(day.clock_in),
                    "clock_out": format_hhmm(day.clock_out),
                }
                for d, day in self.overrides.items()
            },
            "availability": {
                d.value: sorted(label.value for label in labels) for d, labels in self.availability.items()
            },
        }

    @classmethod
    def from_dict(cls, raw: Mapping) -> "AvailabilityChange":
        if not isinstance(raw, Mapping):
            raise ValidationError("Invalid change payload")
        try:
            kind = AvailabilityChangeKind(str(raw.get("kind", "")).strip().upper())
        except ValueError:
            raise ValidationError("Invalid change kind")

        effective = raw.get("effective_date")
        try:
            effective_date = parse_iso_date(effective) if effective else None
        except ValueError:
            raise ValidationError("Invalid effective date (YYYY-MM-DD)")

        overrides = {
            _weekday(d): ManualDay(
                is_working=bool(values.get("is_working")),
                clock_in=parse_hhmm(values.get("clock_in")),
                clock_out=parse_hhmm(values.get("clock_out")),
            )
            for d, values in (raw.get("overrides") or {}).items()
        }
        availability = {
            _weekday(d): frozenset(_label(v) for v in (labels or []))
            for d, labels in (raw.get("availability") or {}).items()
        }
        return cls(kind=kind, overrides=overrides, availability=availability, effective_date=effective_date)


@dataclass(frozen=True)
class ApprovalRequest:
    """Pending manager decision; resolution is terminal."""

    request_id: int
    request_type: ApprovalType
    employee_id: int
    reason: str
    status: RequestStatus
    requested_at: datetime
    time_entry_id: Optional[int] = None
    changes: Optional[AvailabilityChange] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    approval_notes: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "type": self.request_type.value,
            "employee_id": self.employee_id,
            "time_entry_id": self.time_entry_id,
            "reason": self.reason,
            "status": self.status.value,
            "requested_at": self.requested_at.isoformat(),
            "changes": self.changes.to_dict() if self.changes else None,
            "approved_by": self.approved_by,
            "approved_at": self.approved_at.isoformat() if self.approved_at else None,
            "approval_notes": self.approval_notes,
        }
