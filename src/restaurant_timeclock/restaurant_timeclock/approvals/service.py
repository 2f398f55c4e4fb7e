from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import format_hhmm, now_local
from ..common.locks import KeyedLock
from ..common.results import ActionResult
from ..common.validators import optional_text, require_non_empty
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import (
    ApprovalReason,
    ApprovalType,
    AvailabilityChangeKind,
    ErrorType,
    NotificationType,
    RequestStatus,
    TimeEntryStatus,
)
from ..core.exceptions import ValidationError
from ..employees.repository import EmployeeRepository
from ..notifications.service import NotificationService
from ..timeclock.model import TimeEntry
from ..timeclock.repository import TimeEntryRepository
from .model import ApprovalRequest, AvailabilityChange
from .repository import ApprovalRepository

logger = logging.getLogger(__name__)


def _clock_in_reason(entry: TimeEntry) -> str:
    grace = entry.grace_status
    shift = entry.scheduled_shift
    start = format_hhmm(shift.start_time) if shift else "scheduled"
    if entry.approval_reason == ApprovalReason.EARLY_CLOCK_IN and grace:
        return f"Clocked in {grace.minutes_early} minutes early for the {start} shift"
    if entry.approval_reason == ApprovalReason.LATE_CLOCK_IN and grace:
        return f"Clocked in {grace.minutes_late} minutes late for the {start} shift"
    return "Clock-in outside the grace period"


class ApprovalQueue:
    """Manager approvals for out-of-window clock-ins and availability changes."""

    def __init__(
        self,
        requests: ApprovalRepository,
        entries: TimeEntryRepository,
        employees: EmployeeRepository,
        notifications: NotificationService,
        *,
        locks: Optional[KeyedLock] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._requests = requests
        self._entries = entries
        self._employees = employees
        self._notifications = notifications
        self._locks = locks or KeyedLock()
        self._clock = clock

    def create_clock_in_request(self, entry: TimeEntry, *, now: datetime) -> int:
        reason = _clock_in_reason(entry)
        request_id = self._requests.create(
            request_type=ApprovalType.CLOCK_IN_APPROVAL,
            employee_id=entry.employee_id,
            reason=reason,
            requested_at=now,
            time_entry_id=entry.entry_id,
        )
        try:
            self._notifications.notify_managers(
                employee_id=entry.employee_id,
                notification_type=NotificationType.CLOCK_IN_APPROVAL_REQUEST,
                title="Clock-in approval needed",
                message=f"Employee #{entry.employee_id}: {reason}.",
                now=now,
                request_id=request_id,
            )
        except Exception:
            self._requests.delete(request_id)
            raise
        logger.info("clock-in approval request %s created for employee %s", request_id, entry.employee_id)
        return request_id

    def submit_availability_change(
        self,
        *,
        employee_id: Optional[int],
        change: AvailabilityChange,
        reason: str,
        now: Optional[datetime] = None,
    ) -> ActionResult:
        now = now or self._clock()
        try:
            if employee_id is None or self._employees.get_by_id(int(employee_id)) is None:
                raise ValidationError("Employee not found")
            reason = require_non_empty(reason, "Reason")
            change.validate()
        except ValidationError as exc:
            return ActionResult.fail(ErrorType.VALIDATION_ERROR, str(exc))

        try:
            request_id = self._requests.create(
                request_type=ApprovalType.AVAILABILITY_CHANGE,
                employee_id=int(employee_id),
                reason=reason,
                requested_at=now,
                changes=change,
            )
            days = ", ".join(d.value.capitalize() for d in change.weekdays)
            try:
                self._notifications.notify_managers(
                    employee_id=int(employee_id),
                    notification_type=NotificationType.AVAILABILITY_CHANGE_REQUEST,
                    title="Availability change request",
                    message=f"Employee #{employee_id} requests a schedule change ({days}): {reason}",
                    now=now,
                    request_id=request_id,
                )
            except Exception:
                self._requests.delete(request_id)
                raise
        except Exception as exc:
            logger.exception("availability change submission failed for employee %s", employee_id)
            return ActionResult.fail(ErrorType.SUBMISSION_ERROR, f"Could not submit the request: {exc}")

        logger.info("availability change request %s submitted by employee %s", request_id, employee_id)
        return ActionResult.ok("Request submitted for manager approval", request_id=request_id)

    def get_request(self, request_id: int) -> Optional[ApprovalRequest]:
        return self._requests.get_by_id(int(request_id))

    def list_pending(self, request_type: Optional[ApprovalType] = None) -> Sequence[ApprovalRequest]:
        return self._requests.list_requests(
            status=RequestStatus.PENDING, request_type=request_type, limit=DEFAULT_LIST_LIMIT
        )

    def list_for_employee(self, employee_id: int) -> Sequence[ApprovalRequest]:
        return self._requests.list_requests(employee_id=int(employee_id), limit=DEFAULT_LIST_LIMIT)

    def resolve(
        self,
        *,
        request_id: int,
        approved: bool,
        manager_id: int,
        notes: str = "",
        now: Optional[datetime] = None,
    ) -> ActionResult:
        """Approve or deny a pending request.

        Only the caller whose status transition succeeds applies the side effects,
        so resolving twice never re-applies a change.
        """

        now = now or self._clock()
        notes_value = optional_text(notes)
        status = RequestStatus.APPROVED if approved else RequestStatus.DENIED

        try:
            req = self._requests.get_by_id(int(request_id))
            if req is None:
                return ActionResult.fail(ErrorType.REQUEST_NOT_FOUND, "Request not found")
            if not req.is_pending:
                return ActionResult.fail(ErrorType.REQUEST_NOT_PENDING, "Request has already been resolved")

            with self._locks.hold(req.employee_id):
                decided = self._requests.decide(
                    request_id=req.request_id,
                    status=status,
                    decided_by=int(manager_id),
                    decided_at=now,
                    notes=notes_value,
                )
                if not decided:
                    return ActionResult.fail(ErrorType.REQUEST_NOT_PENDING, "Request has already been resolved")
                try:
                    self._apply(req, status, manager_id=int(manager_id), now=now, notes=notes_value)
                except Exception:
                    # _apply writes are idempotent; a reopened request can be resolved again.
                    self._requests.reopen(request_id=req.request_id, status=status)
                    raise

            self._notify_outcome(req, status, notes_value, now)
            self._notifications.resolve_for_request(req.request_id)
        except Exception as exc:
            logger.exception("resolving request %s failed", request_id)
            return ActionResult.fail(ErrorType.APPROVAL_ERROR, f"Could not resolve the request: {exc}")

        logger.info("request %s %s by manager %s", request_id, status.value, manager_id)
        return ActionResult.ok(f"Request {status.value.lower()}", request_id=int(request_id), status=status.value)

    def _apply(
        self,
        req: ApprovalRequest,
        status: RequestStatus,
        *,
        manager_id: int,
        now: datetime,
        notes: Optional[str],
    ) -> None:
        if req.request_type == ApprovalType.CLOCK_IN_APPROVAL:
            if req.time_entry_id is None:
                return
            entry_status = TimeEntryStatus.APPROVED if status == RequestStatus.APPROVED else TimeEntryStatus.DENIED
            self._entries.set_approval_status(
                entry_id=req.time_entry_id,
                status=entry_status,
                approved_by=manager_id,
                approved_at=now,
                approval_notes=notes,
            )
            return

        if status != RequestStatus.APPROVED or req.changes is None:
            return

        change = req.changes
        if change.kind == AvailabilityChangeKind.SCHEDULE_OVERRIDE:
            for weekday, day in change.overrides.items():
                self._employees.set_schedule_override(
                    employee_id=req.employee_id,
                    weekday=weekday,
                    day=day,
                    effective_date=change.effective_date or now.date(),
                )
        else:
            for weekday, labels in change.availability.items():
                self._employees.set_availability(employee_id=req.employee_id, weekday=weekday, labels=labels)

    def _notify_outcome(self, req: ApprovalRequest, status: RequestStatus, notes: Optional[str], now: datetime) -> None:
        verdict = "approved" if status == RequestStatus.APPROVED else "denied"
        if req.request_type == ApprovalType.CLOCK_IN_APPROVAL:
            notification_type = NotificationType.CLOCK_IN_APPROVAL_RESPONSE
            title = f"Clock-in {verdict}"
            message = f"Your clock-in was {verdict} by a manager."
        else:
            notification_type = NotificationType.AVAILABILITY_CHANGE_RESPONSE
            title = f"Availability change {verdict}"
            message = f"Your availability change request was {verdict}."
        if notes:
            message = f"{message} Note: {notes}"

        self._notifications.notify_employee(
            employee_id=req.employee_id,
            notification_type=notification_type,
            title=title,
            message=message,
            now=now,
            request_id=req.request_id,
        )
