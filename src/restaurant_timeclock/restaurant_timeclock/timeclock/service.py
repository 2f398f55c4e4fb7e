from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Callable, Optional, Sequence

from ..common.datetime_utils import hours_between, now_local
from ..common.locks import KeyedLock
from ..core.constants import (
    CLOCK_IN_QR_TOKEN,
    CLOCK_OUT_QR_TOKEN,
    DEFAULT_HISTORY_LIMIT,
    GRACE_PERIOD_AFTER,
    GRACE_PERIOD_BEFORE,
)
from ..core.enums import ErrorType
from ..core.exceptions import ClockError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..presence.gate import PresenceGate, PresenceReading
from ..schedules.grace import GraceStatus, evaluate_grace
from ..schedules.model import ShiftWindow
from ..schedules.resolver import resolve_shift_windows
from .factory import ClockInStrategyFactory
from .model import ClockResult, ClockStatus, TimeEntry
from .repository import ClockStatusRepository, TimeEntryRepository
from .strategies.base import ClockInDecision

if TYPE_CHECKING:
    from ..approvals.service import ApprovalQueue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _ClockInPlan:
    employee: Employee
    presence: PresenceReading
    shift: ShiftWindow
    grace: GraceStatus
    decision: ClockInDecision


def open_entry_dates(today: date) -> tuple[date, date]:
    """Work dates that may still hold an open entry: today, then yesterday's overnight shift."""
    return today, today - timedelta(days=1)


class ClockEventProcessor:
    """Validates and commits clock-in / clock-out attempts.

    Per employee and day: NOT_CLOCKED_IN -> OPEN -> CLOSED. Every public operation
    returns a ClockResult; rejections never escape as exceptions.
    """

    def __init__(
        self,
        entries: TimeEntryRepository,
        statuses: ClockStatusRepository,
        employees: EmployeeRepository,
        presence: PresenceGate,
        approvals: "ApprovalQueue",
        *,
        strategy_factory: Optional[ClockInStrategyFactory] = None,
        locks: Optional[KeyedLock] = None,
        clock: Callable[[], datetime] = now_local,
        grace_before: int = GRACE_PERIOD_BEFORE,
        grace_after: int = GRACE_PERIOD_AFTER,
        clock_in_token: str = CLOCK_IN_QR_TOKEN,
        clock_out_token: str = CLOCK_OUT_QR_TOKEN,
    ):
        self._entries = entries
        self._statuses = statuses
        self._employees = employees
        self._presence = presence
        self._approvals = approvals
        self._factory = strategy_factory or ClockInStrategyFactory()
        self._locks = locks or KeyedLock()
        self._clock = clock
        self._grace_before = int(grace_before)
        self._grace_after = int(grace_after)
        self._clock_in_token = clock_in_token
        self._clock_out_token = clock_out_token

    # -------- Preconditions --------
    def _require_employee(self, employee_id: Optional[int]) -> Employee:
        if employee_id is None:
            raise ClockError(ErrorType.NOT_LOGGED_IN, "Please log in to use the time clock")
        employee = self._employees.get_by_id(int(employee_id))
        if employee is None or not employee.is_active:
            raise ClockError(ErrorType.NOT_LOGGED_IN, "Please log in to use the time clock")
        return employee

    def _require_presence(self) -> PresenceReading:
        reading = self._presence.get_current_presence()
        if not reading.verified:
            raise ClockError(
                ErrorType.LOCATION_VERIFICATION_FAILED,
                "You must be connected to the restaurant network to use the time clock",
            )
        return reading

    def _check_common(self, employee_id: Optional[int], qr_token: Optional[str], expected: str, action: str):
        if (qr_token or "").strip() != expected:
            raise ClockError(ErrorType.INVALID_QR, f"Invalid QR code. Please scan the {action} QR code")
        employee = self._require_employee(employee_id)
        presence = self._require_presence()
        return employee, presence

    def _find_open(self, employee_id: int, today: date) -> Optional[TimeEntry]:
        return self._entries.find_open_entry(employee_id=int(employee_id), work_dates=open_entry_dates(today))

    def closest_window(self, windows: Sequence[ShiftWindow], observed: datetime) -> tuple[ShiftWindow, GraceStatus]:
        """Window whose start is nearest to observed; the first wins on ties."""

        scored = [
            (w, evaluate_grace(w.start_time, observed, before=self._grace_before, after=self._grace_after))
            for w in windows
        ]
        return min(scored, key=lambda pair: abs(pair[1].time_difference))

    def _plan_clock_in(self, employee_id: Optional[int], qr_token: Optional[str], now: datetime) -> _ClockInPlan:
        employee, presence = self._check_common(employee_id, qr_token, self._clock_in_token, "clock-in")

        if self._find_open(employee.employee_id, now.date()) is not None:
            raise ClockError(ErrorType.ALREADY_CLOCKED_IN, "You are already clocked in")

        windows = resolve_shift_windows(employee, now.date())
        if not windows:
            raise ClockError(ErrorType.NO_SHIFT_SCHEDULED, "You have no shift scheduled today")

        shift, grace = self.closest_window(windows, now)
        decision = self._factory.for_grace(grace).decide(grace)
        return _ClockInPlan(employee=employee, presence=presence, shift=shift, grace=grace, decision=decision)

    # -------- Clock in --------
    def validate_clock_in(
        self,
        employee_id: Optional[int],
        qr_token: Optional[str],
        now: Optional[datetime] = None,
    ) -> ClockResult:
        now = now or self._clock()
        try:
            plan = self._plan_clock_in(employee_id, qr_token, now)
        except ClockError as exc:
            logger.info("clock-in rejected for employee %s: %s", employee_id, exc.error_type.value)
            return ClockResult.fail(exc.error_type, str(exc))
        except Exception as exc:
            logger.exception("clock-in validation failed for employee %s", employee_id)
            return ClockResult.fail(ErrorType.VALIDATION_ERROR, f"Validation failed: {exc}")

        return ClockResult(
            success=True,
            message="Ready to clock in",
            requires_approval=plan.decision.approval_required,
            shift=plan.shift,
            grace_status=plan.grace,
            location=plan.presence,
        )

    def process_clock_in(
        self,
        employee_id: Optional[int],
        qr_token: Optional[str],
        now: Optional[datetime] = None,
    ) -> ClockResult:
        now = now or self._clock()
        with self._locks.hold(employee_id):
            try:
                plan = self._plan_clock_in(employee_id, qr_token, now)
            except ClockError as exc:
                logger.info("clock-in rejected for employee %s: %s", employee_id, exc.error_type.value)
                return ClockResult.fail(exc.error_type, str(exc))
            except Exception as exc:
                logger.exception("clock-in validation failed for employee %s", employee_id)
                return ClockResult.fail(ErrorType.VALIDATION_ERROR, f"Validation failed: {exc}")

            try:
                return self._commit_clock_in(plan, now)
            except ClockError as exc:
                logger.info("clock-in rejected for employee %s: %s", employee_id, exc.error_type.value)
                return ClockResult.fail(exc.error_type, str(exc))
            except Exception as exc:
                logger.exception("clock-in failed for employee %s", employee_id)
                return ClockResult.fail(ErrorType.PROCESSING_ERROR, f"Clock-in failed: {exc}")

    def _commit_clock_in(self, plan: _ClockInPlan, now: datetime) -> ClockResult:
        employee_id = plan.employee.employee_id
        entry_id = self._entries.create_open_entry(
            employee_id=employee_id,
            work_date=now.date(),
            clock_in_time=now,
            scheduled_shift=plan.shift,
            grace_status=plan.grace,
            status=plan.decision.status,
            approval_reason=plan.decision.approval_reason,
            location_id=plan.presence.location_id,
            created_at=now,
        )
        if entry_id is None:
            raise ClockError(ErrorType.ALREADY_CLOCKED_IN, "You are already clocked in")

        entry = self._entries.get_by_id(entry_id)
        if plan.decision.approval_required:
            try:
                self._approvals.create_clock_in_request(entry, now=now)
            except Exception:
                # An entry awaiting approval is never left without its request.
                self._entries.delete_open_entry(entry_id)
                raise
        self.rebuild_clock_status(employee_id, now=now)

        if plan.decision.approval_required:
            if plan.grace.is_early:
                message = f"Clocked in {plan.grace.minutes_early} minutes early. Waiting for manager approval"
            else:
                message = f"Clocked in {plan.grace.minutes_late} minutes late. Waiting for manager approval"
        else:
            message = "Clocked in successfully"

        logger.info("employee %s clocked in (entry %s, status %s)", employee_id, entry_id, plan.decision.status.value)
        return ClockResult(
            success=True,
            message=message,
            time_entry=entry,
            requires_approval=plan.decision.approval_required,
            shift=plan.shift,
            grace_status=plan.grace,
            location=plan.presence,
        )

    # -------- Clock out --------
    def _plan_clock_out(self, employee_id: Optional[int], qr_token: Optional[str], now: datetime):
        employee, presence = self._check_common(employee_id, qr_token, self._clock_out_token, "clock-out")
        entry = self._find_open(employee.employee_id, now.date())
        if entry is None:
            raise ClockError(ErrorType.NOT_CLOCKED_IN, "You are not clocked in")
        return entry, presence

    def validate_clock_out(
        self,
        employee_id: Optional[int],
        qr_token: Optional[str],
        now: Optional[datetime] = None,
    ) -> ClockResult:
        now = now or self._clock()
        try:
            entry, presence = self._plan_clock_out(employee_id, qr_token, now)
        except ClockError as exc:
            logger.info("clock-out rejected for employee %s: %s", employee_id, exc.error_type.value)
            return ClockResult.fail(exc.error_type, str(exc))
        except Exception as exc:
            logger.exception("clock-out validation failed for employee %s", employee_id)
            return ClockResult.fail(ErrorType.VALIDATION_ERROR, f"Validation failed: {exc}")

        return ClockResult(
            success=True,
            message="Ready to clock out",
            time_entry=entry,
            hours_worked=hours_between(entry.clock_in_time.time(), now.time()),
            shift=entry.scheduled_shift,
            location=presence,
        )

    def process_clock_out(
        self,
        employee_id: Optional[int],
        qr_token: Optional[str],
        now: Optional[datetime] = None,
    ) -> ClockResult:
        now = now or self._clock()
        with self._locks.hold(employee_id):
            try:
                entry, presence = self._plan_clock_out(employee_id, qr_token, now)
            except ClockError as exc:
                logger.info("clock-out rejected for employee %s: %s", employee_id, exc.error_type.value)
                return ClockResult.fail(exc.error_type, str(exc))
            except Exception as exc:
                logger.exception("clock-out validation failed for employee %s", employee_id)
                return ClockResult.fail(ErrorType.VALIDATION_ERROR, f"Validation failed: {exc}")

            try:
                closed, hours = self._close(entry, clock_out_time=now, now=now)
            except ClockError as exc:
                logger.info("clock-out rejected for employee %s: %s", employee_id, exc.error_type.value)
                return ClockResult.fail(exc.error_type, str(exc))
            except Exception as exc:
                logger.exception("clock-out failed for employee %s", employee_id)
                return ClockResult.fail(ErrorType.PROCESSING_ERROR, f"Clock-out failed: {exc}")

        logger.info("employee %s clocked out (entry %s, %.2fh)", employee_id, entry.entry_id, hours)
        return ClockResult(
            success=True,
            message=f"Clocked out successfully. Hours worked: {hours:.2f}",
            time_entry=closed,
            hours_worked=hours,
            shift=entry.scheduled_shift,
            location=presence,
        )

    def _close(
        self,
        entry: TimeEntry,
        *,
        clock_out_time: datetime,
        now: datetime,
        auto_clock_out: bool = False,
        reason: Optional[str] = None,
    ) -> tuple[TimeEntry, float]:
        if clock_out_time < entry.clock_in_time:
            raise ValidationError("Clock-out time cannot be before the clock-in time")

        hours = hours_between(entry.clock_in_time.time(), clock_out_time.time())
        closed = self._entries.close_entry(
            entry_id=entry.entry_id,
            clock_out_time=clock_out_time,
            total_hours=hours,
            updated_at=now,
            auto_clock_out=auto_clock_out,
            auto_clock_out_reason=reason,
        )
        if not closed:
            raise ClockError(ErrorType.NOT_CLOCKED_IN, "This time entry is already closed")

        self.rebuild_clock_status(entry.employee_id, now=now)
        return self._entries.get_by_id(entry.entry_id), hours

    # -------- Corrections --------
    def finalize_entry(
        self,
        entry_id: int,
        *,
        clock_out_time: datetime,
        now: Optional[datetime] = None,
        reason: str,
        auto_clock_out: bool = True,
    ) -> ClockResult:
        """Close a specific open entry at a backfilled time (reconciliation / manager correction)."""

        now = now or self._clock()
        entry = self._entries.get_by_id(int(entry_id))
        if entry is None:
            return ClockResult.fail(ErrorType.NOT_CLOCKED_IN, "Time entry not found")

        with self._locks.hold(entry.employee_id):
            try:
                entry = self._entries.get_by_id(int(entry_id))
                if entry is None or not entry.is_open:
                    raise ClockError(ErrorType.NOT_CLOCKED_IN, "This time entry is already closed")
                closed, hours = self._close(
                    entry,
                    clock_out_time=clock_out_time,
                    now=now,
                    auto_clock_out=auto_clock_out,
                    reason=reason,
                )
            except ClockError as exc:
                return ClockResult.fail(exc.error_type, str(exc))
            except ValidationError as exc:
                return ClockResult.fail(ErrorType.VALIDATION_ERROR, str(exc))
            except Exception as exc:
                logger.exception("finalizing entry %s failed", entry_id)
                return ClockResult.fail(ErrorType.PROCESSING_ERROR, f"Clock-out failed: {exc}")

        logger.info("entry %s finalized at %s (%s)", entry_id, clock_out_time.isoformat(), reason)
        return ClockResult(
            success=True,
            message=f"Clock-out recorded. Hours worked: {hours:.2f}",
            time_entry=closed,
            hours_worked=hours,
            shift=entry.scheduled_shift,
        )

    def apply_manager_clock_out(
        self,
        entry_id: int,
        *,
        manager_id: int,
        clock_out_time: datetime,
        notes: str = "",
        now: Optional[datetime] = None,
    ) -> ClockResult:
        reason = f"Corrected by manager #{int(manager_id)}"
        if (notes or "").strip():
            reason = f"{reason}: {notes.strip()}"
        return self.finalize_entry(
            entry_id,
            clock_out_time=clock_out_time,
            now=now,
            reason=reason[:255],
            auto_clock_out=False,
        )

    # -------- Status & history --------
    def rebuild_clock_status(self, employee_id: int, *, now: Optional[datetime] = None) -> ClockStatus:
        now = now or self._clock()
        open_entry = self._find_open(employee_id, now.date())
        recent = self._entries.list_for_employee(employee_id=int(employee_id), limit=DEFAULT_HISTORY_LIMIT)

        clock_ins = [e.clock_in_time for e in recent]
        clock_outs = [e.clock_out_time for e in recent if e.clock_out_time is not None]
        status = ClockStatus(
            employee_id=int(employee_id),
            is_currently_clocked=open_entry is not None,
            current_time_entry_id=open_entry.entry_id if open_entry else None,
            last_clock_in=max(clock_ins) if clock_ins else None,
            last_clock_out=max(clock_outs) if clock_outs else None,
            current_shift=open_entry.scheduled_shift if open_entry else None,
        )
        self._statuses.save(status)
        return status

    def get_current_entry(self, employee_id: int, *, now: Optional[datetime] = None) -> Optional[TimeEntry]:
        now = now or self._clock()
        return self._find_open(int(employee_id), now.date())

    def get_clock_status(self, employee_id: int) -> ClockStatus:
        return self._statuses.get(int(employee_id)) or ClockStatus(employee_id=int(employee_id))

    def get_time_entries(
        self,
        employee_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> Sequence[TimeEntry]:
        if start and end and end < start:
            raise ValidationError("End date must be on or after the start date")
        return self._entries.list_for_employee(employee_id=int(employee_id), start=start, end=end, limit=limit)
