from __future__ import annotations

import logging
import threading
from datetime import datetime, time, timedelta
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import format_hhmm, now_local
from ..common.locks import KeyedLock
from ..common.results import ActionResult
from ..core.constants import DEFAULT_LIST_LIMIT, OVERDUE_THRESHOLD_MINUTES, SUGGESTION_WINDOW_MINUTES
from ..core.enums import ErrorType, NotificationType, NudgeResponse, NudgeStatus, NudgeType
from ..employees.repository import EmployeeRepository
from ..notifications.service import NotificationService
from ..presence.gate import PresenceGate
from ..schedules.model import ShiftWindow
from ..schedules.resolver import resolve_shift_windows
from ..timeclock.model import TimeEntry
from ..timeclock.repository import TimeEntryRepository
from ..timeclock.service import ClockEventProcessor, open_entry_dates
from .model import ClockOutNudge, PotentialClockOut
from .repository import CandidateRepository, NudgeRepository

logger = logging.getLogger(__name__)

FORGOT_CLOCK_OUT_TITLE = "Did you forget to clock out?"
SHIFT_OVERDUE_TITLE = "Your shift has ended"


class ReconciliationEngine:
    """Detects likely missed clock-outs and reconciles the employee's answer.

    Two triggers: presence loss followed by regain, and an open entry running more
    than the overdue threshold past its shift end.
    """

    def __init__(
        self,
        processor: ClockEventProcessor,
        entries: TimeEntryRepository,
        employees: EmployeeRepository,
        nudges: NudgeRepository,
        candidates: CandidateRepository,
        notifications: NotificationService,
        presence: PresenceGate,
        *,
        locks: Optional[KeyedLock] = None,
        clock: Callable[[], datetime] = now_local,
        overdue_minutes: int = OVERDUE_THRESHOLD_MINUTES,
        suggestion_minutes: int = SUGGESTION_WINDOW_MINUTES,
    ):
        self._processor = processor
        self._entries = entries
        self._employees = employees
        self._nudges = nudges
        self._candidates = candidates
        self._notifications = notifications
        self._presence = presence
        self._locks = locks or KeyedLock()
        self._clock = clock
        self._overdue = timedelta(minutes=int(overdue_minutes))
        self._suggestion_window = timedelta(minutes=int(suggestion_minutes))

        self._state_lock = threading.Lock()
        self._last_verified: Optional[bool] = None

    # -------- Detection --------
    def monitor_presence(self, now: Optional[datetime] = None) -> list[ClockOutNudge]:
        """Compare the current presence reading with the previous one.

        A loss records candidates; a regain turns pending candidates into nudges.
        Candidates left over from before a restart are nudged on the first verified reading.
        """

        now = now or self._clock()
        verified = self._presence.get_current_presence().verified
        with self._state_lock:
            previous = self._last_verified
            self._last_verified = verified

        if previous is True and not verified:
            logger.info("presence lost at %s", now.isoformat())
            self._record_candidates(now)
            return []
        if verified and previous is not True:
            return self._nudge_candidates(now)
        return []

    def _record_candidates(self, now: datetime) -> int:
        recorded = 0
        for entry in self._entries.list_open_entries():
            candidate = PotentialClockOut(
                employee_id=entry.employee_id,
                candidate_time=now,
                recorded_at=now,
                time_entry_id=entry.entry_id,
            )
            if self._candidates.add(candidate):
                recorded += 1
        if recorded:
            logger.info("recorded %s potential clock-out(s)", recorded)
        return recorded

    def _nudge_candidates(self, now: datetime) -> list[ClockOutNudge]:
        created: list[ClockOutNudge] = []
        for candidate in self._candidates.list_all():
            try:
                with self._locks.hold(candidate.employee_id):
                    nudge = self._nudge_for_candidate(candidate, now)
                    self._candidates.remove(candidate.employee_id)
            except Exception:
                logger.exception("could not reconcile candidate for employee %s", candidate.employee_id)
                continue
            if nudge is not None:
                created.append(nudge)
        return created

    def _open_entry_for(self, employee_id: int, entry_id: Optional[int], today) -> Optional[TimeEntry]:
        if entry_id is not None:
            entry = self._entries.get_by_id(int(entry_id))
            return entry if entry and entry.is_open else None
        return self._entries.find_open_entry(employee_id=employee_id, work_dates=open_entry_dates(today))

    def _nudge_for_candidate(self, candidate: PotentialClockOut, now: datetime) -> Optional[ClockOutNudge]:
        entry = self._open_entry_for(candidate.employee_id, candidate.time_entry_id, candidate.candidate_time.date())
        if entry is None:
            # Clocked out while away.
            return None

        suggested, scheduled_end = self.suggest_clock_out(entry, candidate.candidate_time)
        if scheduled_end is not None:
            message = (
                f"You left the restaurant at {format_hhmm(candidate.candidate_time)} while still clocked in. "
                f"Your shift ended at {format_hhmm(scheduled_end)}. Did you forget to clock out?"
            )
        else:
            message = (
                f"You left the restaurant at {format_hhmm(candidate.candidate_time)} while still clocked in. "
                "Did you forget to clock out?"
            )
        return self._create_nudge(
            entry,
            nudge_type=NudgeType.FORGOT_CLOCK_OUT,
            title=FORGOT_CLOCK_OUT_TITLE,
            message=message,
            suggested_time=suggested,
            now=now,
            potential_clock_out_time=candidate.candidate_time,
            scheduled_end_time=scheduled_end,
        )

    def _entry_windows(self, entry: TimeEntry) -> list[ShiftWindow]:
        """Windows of the entry's day, narrowed to the shift it was clocked against when that still resolves."""

        employee = self._employees.get_by_id(entry.employee_id)
        windows = resolve_shift_windows(employee, entry.work_date) if employee else []
        if entry.scheduled_shift is not None:
            matched = [w for w in windows if w.matches(entry.scheduled_shift)]
            if matched:
                return matched
            if not windows:
                return [entry.scheduled_shift]
        return windows

    def suggest_clock_out(self, entry: TimeEntry, candidate_time: datetime) -> tuple[datetime, Optional[time]]:
        """Scheduled end within the suggestion window of the candidate, else the candidate itself.

        Ends earlier than the clock-in are never suggested.
        """

        best: Optional[tuple[timedelta, datetime, time]] = None
        for window in self._entry_windows(entry):
            end_at = window.end_at(entry.work_date)
            if end_at < entry.clock_in_time:
                continue
            distance = abs(end_at - candidate_time)
            if distance <= self._suggestion_window and (best is None or distance < best[0]):
                best = (distance, end_at, window.end_time)
        if best is None:
            return candidate_time, None
        return best[1], best[2]

    def check_for_forgotten_clock_outs(self, now: Optional[datetime] = None) -> list[ClockOutNudge]:
        now = now or self._clock()
        start_of_day = datetime.combine(now.date(), time.min)
        created: list[ClockOutNudge] = []

        for entry in self._entries.list_open_entries():
            try:
                with self._locks.hold(entry.employee_id):
                    nudge = self._check_overdue(entry, now, start_of_day)
            except Exception:
                logger.exception("overdue check failed for entry %s", entry.entry_id)
                continue
            if nudge is not None:
                created.append(nudge)
        return created

    def _check_overdue(self, entry: TimeEntry, now: datetime, start_of_day: datetime) -> Optional[ClockOutNudge]:
        if self._nudges.exists_since(employee_id=entry.employee_id, nudge_type=NudgeType.SHIFT_OVERDUE, since=start_of_day):
            return None

        for window in self._entry_windows(entry):
            end_at = window.end_at(entry.work_date)
            # A shift that ended before the clock-in cannot be the one left running.
            if end_at <= entry.clock_in_time or now - end_at <= self._overdue:
                continue
            overdue_minutes = int((now - end_at).total_seconds() // 60)
            return self._create_nudge(
                entry,
                nudge_type=NudgeType.SHIFT_OVERDUE,
                title=SHIFT_OVERDUE_TITLE,
                message=(
                    f"Your shift ended at {format_hhmm(window.end_time)} ({overdue_minutes} minutes ago) "
                    "and you are still clocked in. Did you forget to clock out?"
                ),
                suggested_time=end_at,
                now=now,
                scheduled_end_time=window.end_time,
            )
        return None

    def _create_nudge(
        self,
        entry: TimeEntry,
        *,
        nudge_type: NudgeType,
        title: str,
        message: str,
        suggested_time: datetime,
        now: datetime,
        potential_clock_out_time: Optional[datetime] = None,
        scheduled_end_time: Optional[time] = None,
    ) -> ClockOutNudge:
        nudge_id = self._nudges.create(
            employee_id=entry.employee_id,
            time_entry_id=entry.entry_id,
            nudge_type=nudge_type,
            title=title,
            message=message,
            suggested_time=suggested_time,
            created_at=now,
            potential_clock_out_time=potential_clock_out_time,
            scheduled_end_time=scheduled_end_time,
        )
        self._notifications.notify_employee(
            employee_id=entry.employee_id,
            notification_type=NotificationType(nudge_type.value),
            title=title,
            message=message,
            now=now,
            nudge_id=nudge_id,
            action_required=True,
        )
        logger.info("%s nudge %s created for employee %s", nudge_type.value, nudge_id, entry.employee_id)
        return self._nudges.get_by_id(nudge_id)

    def run_checks(self, now: Optional[datetime] = None) -> list[ClockOutNudge]:
        now = now or self._clock()
        return self.monitor_presence(now) + self.check_for_forgotten_clock_outs(now)

    # -------- Responses --------
    def respond(
        self,
        *,
        nudge_id: int,
        response: str,
        clock_out_time: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> ActionResult:
        now = now or self._clock()
        try:
            answer = NudgeResponse(str(response or "").strip().upper())
        except ValueError:
            return ActionResult.fail(ErrorType.VALIDATION_ERROR, "Response must be YES or NO")

        try:
            nudge = self._nudges.get_by_id(int(nudge_id))
            if nudge is None:
                return ActionResult.fail(ErrorType.NUDGE_NOT_FOUND, "Nudge not found")
            if not nudge.is_pending:
                return ActionResult.fail(ErrorType.NUDGE_NOT_PENDING, "This nudge has already been answered")

            with self._locks.hold(nudge.employee_id):
                nudge = self._nudges.get_by_id(nudge.nudge_id)
                if nudge is None or not nudge.is_pending:
                    return ActionResult.fail(ErrorType.NUDGE_NOT_PENDING, "This nudge has already been answered")
                if answer == NudgeResponse.YES:
                    return self._confirm(nudge, clock_out_time or nudge.suggested_time, now)
                return self._escalate(nudge, now)
        except Exception as exc:
            logger.exception("responding to nudge %s failed", nudge_id)
            return ActionResult.fail(ErrorType.RESPONSE_ERROR, f"Could not record the response: {exc}")

    def _confirm(self, nudge: ClockOutNudge, clock_out_time: datetime, now: datetime) -> ActionResult:
        """Close the entry, then mark the nudge CONFIRMED; a failed close leaves the nudge pending."""

        entry = self._open_entry_for(nudge.employee_id, nudge.time_entry_id, nudge.created_at.date())
        if entry is None:
            self._claim(nudge, NudgeStatus.CONFIRMED, confirmed_clock_out=None, now=now)
            logger.info("nudge %s confirmed but employee %s is no longer clocked in", nudge.nudge_id, nudge.employee_id)
            return ActionResult.ok("Already clocked out; nothing to change", nudge_id=nudge.nudge_id)
        if clock_out_time < entry.clock_in_time:
            return ActionResult.fail(ErrorType.VALIDATION_ERROR, "Clock-out time cannot be before the clock-in time")

        result = self._processor.finalize_entry(
            entry.entry_id,
            clock_out_time=clock_out_time,
            now=now,
            reason=f"Confirmed by employee ({nudge.nudge_type.value})",
            auto_clock_out=True,
        )
        if not result.success:
            return ActionResult.fail(result.error_type or ErrorType.RESPONSE_ERROR, result.message)

        self._claim(nudge, NudgeStatus.CONFIRMED, confirmed_clock_out=clock_out_time, now=now)
        return ActionResult.ok(
            f"Clocked out at {format_hhmm(clock_out_time)}",
            nudge_id=nudge.nudge_id,
            time_entry=result.time_entry.to_dict() if result.time_entry else None,
            hours_worked=f"{result.hours_worked:.2f}" if result.hours_worked is not None else None,
        )

    def _claim(
        self,
        nudge: ClockOutNudge,
        status: NudgeStatus,
        *,
        confirmed_clock_out: Optional[datetime],
        now: datetime,
        requires_manager_action: bool = False,
    ) -> bool:
        claimed = self._nudges.respond(
            nudge_id=nudge.nudge_id,
            status=status,
            requires_manager_action=requires_manager_action,
            confirmed_clock_out=confirmed_clock_out,
            responded_at=now,
        )
        if not claimed:
            logger.warning("nudge %s was answered concurrently", nudge.nudge_id)
        return claimed

    def _escalate(self, nudge: ClockOutNudge, now: datetime) -> ActionResult:
        if not self._claim(nudge, NudgeStatus.NEEDS_MANAGER, confirmed_clock_out=None, now=now, requires_manager_action=True):
            return ActionResult.fail(ErrorType.NUDGE_NOT_PENDING, "This nudge has already been answered")

        self._notifications.notify_managers(
            employee_id=nudge.employee_id,
            notification_type=NotificationType.CLOCK_OUT_CORRECTION_NEEDED,
            title="Clock-out correction needed",
            message=(
                f"Employee #{nudge.employee_id} did not confirm the suggested clock-out "
                f"({format_hhmm(nudge.suggested_time)}). Please correct the time entry."
            ),
            now=now,
            nudge_id=nudge.nudge_id,
        )
        logger.info("nudge %s escalated to managers", nudge.nudge_id)
        return ActionResult.ok("A manager will correct your time entry", nudge_id=nudge.nudge_id)

    def resolve_with_manager(
        self,
        *,
        nudge_id: int,
        manager_id: int,
        clock_out_time: datetime,
        notes: str = "",
        now: Optional[datetime] = None,
    ) -> ActionResult:
        """Manager correction for a nudge the employee answered NO."""

        now = now or self._clock()
        try:
            nudge = self._nudges.get_by_id(int(nudge_id))
            if nudge is None:
                return ActionResult.fail(ErrorType.NUDGE_NOT_FOUND, "Nudge not found")
            if not nudge.awaits_manager:
                return ActionResult.fail(ErrorType.NUDGE_NOT_PENDING, "This nudge does not need a correction")

            with self._locks.hold(nudge.employee_id):
                nudge = self._nudges.get_by_id(nudge.nudge_id)
                if nudge is None or not nudge.awaits_manager:
                    return ActionResult.fail(ErrorType.NUDGE_NOT_PENDING, "This nudge does not need a correction")
                entry = self._open_entry_for(nudge.employee_id, nudge.time_entry_id, nudge.created_at.date())
                if entry is None:
                    return ActionResult.fail(ErrorType.NOT_CLOCKED_IN, "The time entry is already closed")
                if clock_out_time < entry.clock_in_time:
                    return ActionResult.fail(
                        ErrorType.VALIDATION_ERROR, "Clock-out time cannot be before the clock-in time"
                    )

                result = self._processor.apply_manager_clock_out(
                    entry.entry_id,
                    manager_id=int(manager_id),
                    clock_out_time=clock_out_time,
                    notes=notes,
                    now=now,
                )
                if not result.success:
                    return ActionResult.fail(result.error_type or ErrorType.RESPONSE_ERROR, result.message)
                if not self._nudges.complete_manager_action(nudge_id=nudge.nudge_id, confirmed_clock_out=clock_out_time):
                    logger.warning("nudge %s was corrected concurrently", nudge.nudge_id)

            self._notifications.resolve_for_nudge(nudge.nudge_id)
        except Exception as exc:
            logger.exception("manager correction for nudge %s failed", nudge_id)
            return ActionResult.fail(ErrorType.RESPONSE_ERROR, f"Could not apply the correction: {exc}")

        logger.info("nudge %s corrected by manager %s", nudge_id, manager_id)
        return ActionResult.ok(
            f"Clock-out set to {format_hhmm(clock_out_time)}",
            nudge_id=int(nudge_id),
            time_entry=result.time_entry.to_dict() if result.time_entry else None,
        )

    # -------- Queries --------
    def get_nudge(self, nudge_id: int) -> Optional[ClockOutNudge]:
        return self._nudges.get_by_id(int(nudge_id))

    def list_pending_nudges(self, employee_id: int) -> Sequence[ClockOutNudge]:
        return self._nudges.list_nudges(employee_id=int(employee_id), status=NudgeStatus.PENDING, limit=DEFAULT_LIST_LIMIT)

    def list_manager_corrections(self) -> Sequence[ClockOutNudge]:
        return self._nudges.list_nudges(
            status=NudgeStatus.NEEDS_MANAGER, requires_manager_action=True, limit=DEFAULT_LIST_LIMIT
        )
