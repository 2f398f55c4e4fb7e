from __future__ import annotations

import dataclasses
from datetime import date, datetime, time

from src.restaurant_timeclock.restaurant_timeclock.approvals.model import ApprovalRequest
from src.restaurant_timeclock.restaurant_timeclock.core.enums import (
    NotificationAudience,
    NotificationStatus,
    NudgeStatus,
    RequestStatus,
    Role,
    ShiftLabel,
    Weekday,
)
from src.restaurant_timeclock.restaurant_timeclock.employees.model import (
    Employee,
    EmployeeSchedule,
    ManualDay,
    ScheduleOverride,
)
from src.restaurant_timeclock.restaurant_timeclock.notifications.model import Notification
from src.restaurant_timeclock.restaurant_timeclock.presence.gate import PresenceReading
from src.restaurant_timeclock.restaurant_timeclock.reconciliation.model import ClockOutNudge
from src.restaurant_timeclock.restaurant_timeclock.timeclock.model import TimeEntry

# Calendar used across the suite: 2026-10-12 is a Monday.
MONDAY = date(2026, 10, 12)
FRIDAY = date(2026, 10, 16)
SATURDAY = date(2026, 10, 17)
SUNDAY = date(2026, 10, 18)

MANAGER_ID = 1
SAM_ID = 2
JORDAN_ID = 3
INACTIVE_ID = 4

CLOCK_IN = "CLOCK_IN_RESTAURANT_GENERAL"
CLOCK_OUT = "CLOCK_OUT_RESTAURANT_GENERAL"


def at(day: date, hour: int, minute: int = 0, second: int = 0) -> datetime:
    return datetime.combine(day, time(hour, minute, second))


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class StaticPresenceGate:
    def __init__(self, verified: bool = True, location_id: str = "bartlesville"):
        self.verified = verified
        self.location_id = location_id

    def get_current_presence(self) -> PresenceReading:
        if not self.verified:
            return PresenceReading.unverified()
        return PresenceReading(
            verified=True,
            location_id=self.location_id,
            location_name=self.location_id.capitalize(),
            network_name=f"Restaurant-{self.location_id.capitalize()}",
            confidence=1.0,
        )


class FakeEmployeeRepo:
    def __init__(self, employees=()):
        self._employees = {e.employee_id: e for e in employees}
        self.availability_writes = 0
        self.override_writes = 0

    def get_by_id(self, employee_id):
        return self._employees.get(int(employee_id))

    def set_schedule_override(self, *, employee_id, weekday, day, effective_date):
        emp = self._employees[int(employee_id)]
        overrides = dict(emp.schedule.overrides)
        overrides[weekday] = ScheduleOverride(weekday=weekday, day=day, effective_date=effective_date)
        self._employees[emp.employee_id] = dataclasses.replace(
            emp, schedule=dataclasses.replace(emp.schedule, overrides=overrides)
        )
        self.override_writes += 1
        return True

    def set_availability(self, *, employee_id, weekday, labels):
        emp = self._employees[int(employee_id)]
        availability = dict(emp.schedule.availability)
        availability[weekday] = frozenset(labels)
        self._employees[emp.employee_id] = dataclasses.replace(
            emp, schedule=dataclasses.replace(emp.schedule, availability=availability)
        )
        self.availability_writes += 1
        return True


class FakeTimeEntryRepo:
    def __init__(self):
        self._next_id = 1
        self._entries: dict[int, TimeEntry] = {}

    def create_open_entry(
        self,
        *,
        employee_id,
        work_date,
        clock_in_time,
        scheduled_shift,
        grace_status,
        status,
        approval_reason,
        location_id,
        created_at,
    ):
        for e in self._entries.values():
            if e.employee_id == employee_id and e.work_date == work_date and e.is_open:
                return None
        entry_id = self._next_id
        self._next_id += 1
        self._entries[entry_id] = TimeEntry(
            entry_id=entry_id,
            employee_id=employee_id,
            work_date=work_date,
            clock_in_time=clock_in_time,
            clock_out_time=None,
            status=status,
            created_at=created_at,
            updated_at=created_at,
            scheduled_shift=scheduled_shift,
            grace_status=grace_status,
            approval_required=approval_reason is not None,
            approval_reason=approval_reason,
            location_id=location_id,
        )
        return entry_id

    def get_by_id(self, entry_id):
        return self._entries.get(int(entry_id))

    def find_open_entry(self, *, employee_id, work_dates):
        open_entries = [
            e for e in self._entries.values() if e.employee_id == employee_id and e.is_open and e.work_date in work_dates
        ]
        return max(open_entries, key=lambda e: e.clock_in_time) if open_entries else None

    def list_open_entries(self):
        return [e for e in self._entries.values() if e.is_open]

    def list_for_employee(self, *, employee_id, start=None, end=None, limit=30):
        rows = [
            e
            for e in self._entries.values()
            if e.employee_id == employee_id
            and (start is None or e.work_date >= start)
            and (end is None or e.work_date <= end)
        ]
        rows.sort(key=lambda e: e.clock_in_time, reverse=True)
        return rows[:limit]

    def close_entry(
        self,
        *,
        entry_id,
        clock_out_time,
        total_hours,
        updated_at,
        auto_clock_out=False,
        auto_clock_out_reason=None,
    ):
        entry = self._entries.get(int(entry_id))
        if entry is None or not entry.is_open:
            return False
        self._entries[entry.entry_id] = dataclasses.replace(
            entry,
            clock_out_time=clock_out_time,
            total_hours=total_hours,
            updated_at=updated_at,
            auto_clock_out=auto_clock_out,
            auto_clock_out_reason=auto_clock_out_reason,
        )
        return True

    def set_approval_status(self, *, entry_id, status, approved_by, approved_at, approval_notes=None):
        entry = self._entries.get(int(entry_id))
        if entry is None:
            return False
        self._entries[entry.entry_id] = dataclasses.replace(
            entry,
            status=status,
            approved_by=approved_by,
            approved_at=approved_at,
            approval_notes=approval_notes,
        )
        return True

    def delete_open_entry(self, entry_id):
        entry = self._entries.get(int(entry_id))
        if entry is None or not entry.is_open:
            return False
        del self._entries[entry.entry_id]
        return True


class FakeClockStatusRepo:
    def __init__(self):
        self._statuses = {}

    def get(self, employee_id):
        return self._statuses.get(int(employee_id))

    def save(self, status):
        self._statuses[status.employee_id] = status


class FakeApprovalRepo:
    def __init__(self):
        self._next_id = 1
        self._requests: dict[int, ApprovalRequest] = {}

    def create(self, *, request_type, employee_id, reason, requested_at, time_entry_id=None, changes=None):
        rid = self._next_id
        self._next_id += 1
        self._requests[rid] = ApprovalRequest(
            request_id=rid,
            request_type=request_type,
            employee_id=int(employee_id),
            reason=reason,
            status=RequestStatus.PENDING,
            requested_at=requested_at,
            time_entry_id=time_entry_id,
            changes=changes,
        )
        return rid

    def get_by_id(self, request_id):
        return self._requests.get(int(request_id))

    def list_requests(self, *, status=None, request_type=None, employee_id=None, limit=200):
        rows = [
            r
            for r in self._requests.values()
            if (status is None or r.status == status)
            and (request_type is None or r.request_type == request_type)
            and (employee_id is None or r.employee_id == employee_id)
        ]
        return rows[:limit]

    def decide(self, *, request_id, status, decided_by, decided_at, notes=None):
        req = self._requests.get(int(request_id))
        if req is None or req.status != RequestStatus.PENDING:
            return False
        self._requests[req.request_id] = dataclasses.replace(
            req,
            status=status,
            approved_by=decided_by,
            approved_at=decided_at,
            approval_notes=notes,
        )
        return True

    def reopen(self, *, request_id, status):
        req = self._requests.get(int(request_id))
        if req is None or req.status != status:
            return False
        self._requests[req.request_id] = dataclasses.replace(
            req, status=RequestStatus.PENDING, approved_by=None, approved_at=None, approval_notes=None
        )
        return True

    def delete(self, request_id):
        return self._requests.pop(int(request_id), None) is not None


class FakeNotificationRepo:
    def __init__(self):
        self._next_id = 1
        self.items: dict[int, Notification] = {}

    def create(
        self,
        *,
        audience,
        employee_id,
        notification_type,
        title,
        message,
        created_at,
        request_id=None,
        nudge_id=None,
        action_required=False,
    ):
        nid = self._next_id
        self._next_id += 1
        self.items[nid] = Notification(
            notification_id=nid,
            audience=audience,
            employee_id=employee_id,
            notification_type=notification_type,
            title=title,
            message=message,
            created_at=created_at,
            request_id=request_id,
            nudge_id=nudge_id,
            action_required=action_required,
        )
        return nid

    def list_for_employee(self, *, employee_id, unread_only=False, limit=200):
        rows = [
            n
            for n in self.items.values()
            if n.audience == NotificationAudience.EMPLOYEE
            and n.employee_id == employee_id
            and (not unread_only or not n.is_read)
        ]
        return rows[:limit]

    def list_for_managers(self, *, notification_type=None, status=NotificationStatus.PENDING, limit=200):
        rows = [
            n
            for n in self.items.values()
            if n.audience == NotificationAudience.MANAGER
            and (notification_type is None or n.notification_type == notification_type)
            and (status is None or n.status == status)
        ]
        return rows[:limit]

    def mark_read(self, *, notification_id, employee_id):
        n = self.items.get(int(notification_id))
        if n is None or n.audience != NotificationAudience.EMPLOYEE or n.employee_id != employee_id:
            return False
        self.items[n.notification_id] = dataclasses.replace(n, is_read=True)
        return True

    def _resolve(self, match) -> int:
        count = 0
        for n in list(self.items.values()):
            if n.audience == NotificationAudience.MANAGER and n.status == NotificationStatus.PENDING and match(n):
                self.items[n.notification_id] = dataclasses.replace(n, status=NotificationStatus.RESOLVED)
                count += 1
        return count

    def resolve_for_request(self, *, request_id):
        return self._resolve(lambda n: n.request_id == request_id)

    def resolve_for_nudge(self, *, nudge_id):
        return self._resolve(lambda n: n.nudge_id == nudge_id)


class FakeNudgeRepo:
    def __init__(self):
        self._next_id = 1
        self._nudges: dict[int, ClockOutNudge] = {}

    def create(
        self,
        *,
        employee_id,
        time_entry_id,
        nudge_type,
        title,
        message,
        suggested_time,
        created_at,
        potential_clock_out_time=None,
        scheduled_end_time=None,
    ):
        nid = self._next_id
        self._next_id += 1
        self._nudges[nid] = ClockOutNudge(
            nudge_id=nid,
            employee_id=employee_id,
            nudge_type=nudge_type,
            title=title,
            message=message,
            suggested_time=suggested_time,
            status=NudgeStatus.PENDING,
            created_at=created_at,
            time_entry_id=time_entry_id,
            potential_clock_out_time=potential_clock_out_time,
            scheduled_end_time=scheduled_end_time,
        )
        return nid

    def get_by_id(self, nudge_id):
        return self._nudges.get(int(nudge_id))

    def list_nudges(self, *, employee_id=None, status=None, requires_manager_action=None, limit=200):
        rows = [
            n
            for n in self._nudges.values()
            if (employee_id is None or n.employee_id == employee_id)
            and (status is None or n.status == status)
            and (requires_manager_action is None or n.requires_manager_action == requires_manager_action)
        ]
        return rows[:limit]

    def exists_since(self, *, employee_id, nudge_type, since):
        return any(
            n.employee_id == employee_id and n.nudge_type == nudge_type and n.created_at >= since
            for n in self._nudges.values()
        )

    def respond(self, *, nudge_id, status, requires_manager_action, confirmed_clock_out, responded_at):
        n = self._nudges.get(int(nudge_id))
        if n is None or n.status != NudgeStatus.PENDING:
            return False
        self._nudges[n.nudge_id] = dataclasses.replace(
            n,
            status=status,
            requires_manager_action=requires_manager_action,
            confirmed_clock_out=confirmed_clock_out,
            responded_at=responded_at,
        )
        return True

    def complete_manager_action(self, *, nudge_id, confirmed_clock_out):
        n = self._nudges.get(int(nudge_id))
        if n is None or not n.awaits_manager:
            return False
        self._nudges[n.nudge_id] = dataclasses.replace(
            n, requires_manager_action=False, confirmed_clock_out=confirmed_clock_out
        )
        return True


class FakeCandidateRepo:
    def __init__(self):
        self._candidates = {}

    def add(self, candidate):
        if candidate.employee_id in self._candidates:
            return False
        self._candidates[candidate.employee_id] = candidate
        return True

    def list_all(self):
        return list(self._candidates.values())

    def remove(self, employee_id):
        self._candidates.pop(int(employee_id), None)


def weekday_schedule(start: time, end: time) -> dict:
    working = {Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY, Weekday.THURSDAY, Weekday.FRIDAY}
    return {
        d: ManualDay(is_working=True, clock_in=start, clock_out=end) if d in working else ManualDay(is_working=False)
        for d in Weekday
    }


def make_employees() -> list[Employee]:
    return [
        Employee(employee_id=MANAGER_ID, full_name="Morgan Lee", role=Role.MANAGER),
        Employee(
            employee_id=SAM_ID,
            full_name="Sam Rivera",
            schedule=EmployeeSchedule(manual=weekday_schedule(time(9, 0), time(17, 0))),
        ),
        Employee(
            employee_id=JORDAN_ID,
            full_name="Jordan Kim",
            schedule=EmployeeSchedule(
                availability={
                    Weekday.FRIDAY: frozenset({ShiftLabel.MORNING, ShiftLabel.AFTERNOON}),
                    Weekday.SATURDAY: frozenset({ShiftLabel.EVENING}),
                }
            ),
        ),
        Employee(
            employee_id=INACTIVE_ID,
            full_name="Alex Former",
            is_active=False,
            schedule=EmployeeSchedule(manual=weekday_schedule(time(9, 0), time(17, 0))),
        ),
    ]


