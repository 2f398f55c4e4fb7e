from datetime import date, time

from src.restaurant_timeclock.restaurant_timeclock.core.enums import ShiftLabel, ShiftSource, Weekday
from src.restaurant_timeclock.restaurant_timeclock.employees.model import (
    Employee,
    EmployeeSchedule,
    ManualDay,
    ScheduleOverride,
)
from src.restaurant_timeclock.restaurant_timeclock.schedules.resolver import resolve_shift_windows
from tests.support import FRIDAY, MONDAY, SATURDAY, make_employees, weekday_schedule


def _employee(employee_id):
    return next(e for e in make_employees() if e.employee_id == employee_id)


def test_manual_schedule_gives_one_window():
    windows = resolve_shift_windows(_employee(2), MONDAY)

    assert len(windows) == 1
    assert windows[0].start_time == time(9, 0)
    assert windows[0].end_time == time(17, 0)
    assert windows[0].source == ShiftSource.MANUAL
    assert windows[0].label is None


def test_non_working_day_gives_no_windows():
    assert resolve_shift_windows(_employee(2), SATURDAY) == []


def test_availability_gives_canonical_windows_sorted_by_start():
    windows = resolve_shift_windows(_employee(3), FRIDAY)

    assert [w.label for w in windows] == [ShiftLabel.MORNING, ShiftLabel.AFTERNOON]
    assert [(w.start_time, w.end_time) for w in windows] == [(time(6, 0), time(14, 0)), (time(14, 0), time(22, 0))]
    assert all(w.source == ShiftSource.AUTOMATIC for w in windows)


def test_evening_shift_crosses_midnight():
    (window,) = resolve_shift_windows(_employee(3), SATURDAY)

    assert window.crosses_midnight
    assert window.duration_hours == 8.0
    assert window.end_at(SATURDAY).date() == date(2026, 10, 18)


def test_manual_and_availability_are_both_kept():
    emp = Employee(
        employee_id=9,
        full_name="Casey",
        schedule=EmployeeSchedule(
            manual=weekday_schedule(time(14, 0), time(22, 0)),
            availability={Weekday.MONDAY: frozenset({ShiftLabel.AFTERNOON, ShiftLabel.MORNING})},
        ),
    )

    windows = resolve_shift_windows(emp, MONDAY)

    assert [(w.start_time, w.source) for w in windows] == [
        (time(6, 0), ShiftSource.AUTOMATIC),
        (time(14, 0), ShiftSource.MANUAL),
        (time(14, 0), ShiftSource.AUTOMATIC),
    ]


def test_override_applies_from_effective_date():
    override = ScheduleOverride(
        weekday=Weekday.MONDAY,
        day=ManualDay(is_working=True, clock_in=time(11, 0), clock_out=time(19, 0)),
        effective_date=date(2026, 10, 19),
    )
    emp = Employee(
        employee_id=9,
        full_name="Casey",
        schedule=EmployeeSchedule(
            manual=weekday_schedule(time(9, 0), time(17, 0)),
            overrides={Weekday.MONDAY: override},
        ),
    )

    assert resolve_shift_windows(emp, MONDAY)[0].start_time == time(9, 0)
    assert resolve_shift_windows(emp, date(2026, 10, 19))[0].start_time == time(11, 0)


def test_day_off_override_removes_manual_window():
    override = ScheduleOverride(
        weekday=Weekday.MONDAY,
        day=ManualDay(is_working=False),
        effective_date=MONDAY,
    )
    emp = Employee(
        employee_id=9,
        full_name="Casey",
        schedule=EmployeeSchedule(
            manual=weekday_schedule(time(9, 0), time(17, 0)),
            overrides={Weekday.MONDAY: override},
        ),
    )

    assert resolve_shift_windows(emp, MONDAY) == []


def test_working_day_without_times_is_ignored():
    emp = Employee(
        employee_id=9,
        full_name="Casey",
        schedule=EmployeeSchedule(manual={Weekday.MONDAY: ManualDay(is_working=True, clock_in=time(9, 0))}),
    )

    assert resolve_shift_windows(emp, MONDAY) == []
