from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from ..core.enums import Role, ShiftLabel, Weekday
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import Employee, EmployeeSchedule, ManualDay, ScheduleOverride
from .repository import EmployeeRepository


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load_schedule(self, cur, employee_id: int) -> EmployeeSchedule:
        cur.execute(
            """
            SELECT weekday, is_working, clock_in, clock_out
            FROM employee_manual_schedule
            WHERE employee_id=%s
            """,
            (employee_id,),
        )
        manual = {
            Weekday(r["weekday"]): ManualDay(
                is_working=bool(r["is_working"]),
                clock_in=normalize_mysql_time(r.get("clock_in")),
                clock_out=normalize_mysql_time(r.get("clock_out")),
            )
            for r in fetchall(cur)
        }

        cur.execute(
            "SELECT weekday, shift_label FROM employee_availability WHERE employee_id=%s",
            (employee_id,),
        )
        labels: dict[Weekday, set[ShiftLabel]] = {}
        for r in fetchall(cur):
            labels.setdefault(Weekday(r["weekday"]), set()).add(ShiftLabel(r["shift_label"]))

        cur.execute(
            """
            SELECT weekday, is_working, clock_in, clock_out, effective_date
            FROM employee_schedule_overrides
            WHERE employee_id=%s
            """,
            (employee_id,),
        )
        overrides = {}
        for r in fetchall(cur):
            weekday = Weekday(r["weekday"])
            overrides[weekday] = ScheduleOverride(
                weekday=weekday,
                day=ManualDay(
                    is_working=bool(r["is_working"]),
                    clock_in=normalize_mysql_time(r.get("clock_in")),
                    clock_out=normalize_mysql_time(r.get("clock_out")),
                ),
                effective_date=r["effective_date"],
            )

        return EmployeeSchedule(
            manual=manual,
            availability={day: frozenset(values) for day, values in labels.items()},
            overrides=overrides,
        )

    def _to_employee(self, cur, r) -> Employee:
        employee_id = int(r["employee_id"])
        return Employee(
            employee_id=employee_id,
            full_name=r["full_name"],
            role=Role(r["role"]),
            is_active=bool(r["is_active"]),
            schedule=self._load_schedule(cur, employee_id),
        )

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT employee_id, full_name, role, is_active FROM employees WHERE employee_id=%s",
                (int(employee_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return self._to_employee(cur, r)

    def set_schedule_override(
        self,
        *,
        employee_id: int,
        weekday: Weekday,
        day: ManualDay,
        effective_date: date,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO employee_schedule_overrides(employee_id, weekday, is_working, clock_in, clock_out, effective_date)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    is_working=VALUES(is_working),
                    clock_in=VALUES(clock_in),
                    clock_out=VALUES(clock_out),
                    effective_date=VALUES(effective_date),
                    approved_at=CURRENT_TIMESTAMP
                """,
                (int(employee_id), weekday.value, int(day.is_working), day.clock_in, day.clock_out, effective_date),
            )
            return cur.rowcount > 0

    def set_availability(self, *, employee_id: int, weekday: Weekday, labels: Iterable[ShiftLabel]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM employee_availability WHERE employee_id=%s AND weekday=%s",
                (int(employee_id), weekday.value),
            )
            for label in sorted(set(labels), key=lambda x: x.value):
                cur.execute(
                    "INSERT INTO employee_availability(employee_id, weekday, shift_label) VALUES(%s,%s,%s)",
                    (int(employee_id), weekday.value, label.value),
                )
            return True
