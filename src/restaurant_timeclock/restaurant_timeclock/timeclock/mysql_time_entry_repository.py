from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

import mysql.connector

from ..core.enums import ApprovalReason, ShiftLabel, ShiftSource, TimeEntryStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from ..schedules.grace import GraceStatus
from ..schedules.model import ShiftWindow
from .model import TimeEntry
from .repository import TimeEntryRepository

_COLUMNS = """
    entry_id, employee_id, work_date, clock_in_time, clock_out_time,
    shift_start, shift_end, shift_source, shift_label, grace_time_difference,
    status, approval_required, approval_reason, total_hours,
    auto_clock_out, auto_clock_out_reason, location_id,
    approved_by, approved_at, approval_notes, created_at, updated_at
"""


def shift_from_row(r) -> Optional[ShiftWindow]:
    if r.get("shift_start") is None or not r.get("shift_source"):
        return None
    return ShiftWindow(
        start_time=normalize_mysql_time(r["shift_start"]),
        end_time=normalize_mysql_time(r["shift_end"]),
        source=ShiftSource(r["shift_source"]),
        label=ShiftLabel(r["shift_label"]) if r.get("shift_label") else None,
    )


def shift_params(shift: Optional[ShiftWindow]) -> tuple:
    if shift is None:
        return (None, None, None, None)
    return (shift.start_time, shift.end_time, shift.source.value, shift.label.value if shift.label else None)


def _to_entry(r) -> TimeEntry:
    diff = r.get("grace_time_difference")
    total = r.get("total_hours")
    return TimeEntry(
        entry_id=int(r["entry_id"]),
        employee_id=int(r["employee_id"]),
        work_date=r["work_date"],
        clock_in_time=r["clock_in_time"],
        clock_out_time=r.get("clock_out_time"),
        status=TimeEntryStatus(r["status"]),
        created_at=r["created_at"],
        updated_at=r["updated_at"],
        scheduled_shift=shift_from_row(r),
        grace_status=GraceStatus.from_difference(int(diff)) if diff is not None else None,
        approval_required=bool(r["approval_required"]),
        approval_reason=ApprovalReason(r["approval_reason"]) if r.get("approval_reason") else None,
        total_hours=float(total) if total is not None else None,
        auto_clock_out=bool(r["auto_clock_out"]),
        auto_clock_out_reason=r.get("auto_clock_out_reason"),
        location_id=r.get("location_id"),
        approved_by=r.get("approved_by"),
        approved_at=r.get("approved_at"),
        approval_notes=r.get("approval_notes"),
    )


class MySQLTimeEntryRepository(TimeEntryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_open_entry(
        self,
        *,
        employee_id: int,
        work_date: date,
        clock_in_time: datetime,
        scheduled_shift: Optional[ShiftWindow],
        grace_status: Optional[GraceStatus],
        status: TimeEntryStatus,
        approval_reason: Optional[ApprovalReason],
        location_id: Optional[str],
        created_at: datetime,
    ) -> Optional[int]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO time_entries(
                        employee_id, work_date, clock_in_time,
                        shift_start, shift_end, shift_source, shift_label, grace_time_difference,
                        status, approval_required, approval_reason, location_id, created_at, updated_at
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(employee_id),
                        work_date,
                        clock_in_time,
                        *shift_params(scheduled_shift),
                        grace_status.time_difference if grace_status else None,
                        status.value,
                        int(approval_reason is not None),
                        approval_reason.value if approval_reason else None,
                        location_id,
                        created_at,
                        created_at,
                    ),
                )
                return int(cur.lastrowid)
        except mysql.connector.IntegrityError:
            # uq_one_open_entry rejected a second open entry for the same day.
            return None

    def get_by_id(self, entry_id: int) -> Optional[TimeEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM time_entries WHERE entry_id=%s", (int(entry_id),))
            r = fetchone(cur)
            return _to_entry(r) if r else None

    def find_open_entry(self, *, employee_id: int, work_dates: Sequence[date]) -> Optional[TimeEntry]:
        if not work_dates:
            return None
        placeholders = ",".join(["%s"] * len(work_dates))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM time_entries
                WHERE employee_id=%s AND clock_out_time IS NULL AND work_date IN ({placeholders})
                ORDER BY clock_in_time DESC
                LIMIT 1
                """,
                (int(employee_id), *work_dates),
            )
            r = fetchone(cur)
            return _to_entry(r) if r else None

    def list_open_entries(self) -> Sequence[TimeEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM time_entries
                WHERE clock_out_time IS NULL
                ORDER BY employee_id, clock_in_time
                """
            )
            return [_to_entry(r) for r in fetchall(cur)]

    def list_for_employee(
        self,
        *,
        employee_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
        limit: int = 30,
    ) -> Sequence[TimeEntry]:
        clauses = ["employee_id=%s"]
        params: list[object] = [int(employee_id)]
        if start is not None:
            clauses.append("work_date >= %s")
            params.append(start)
        if end is not None:
            clauses.append("work_date <= %s")
            params.append(end)
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM time_entries
                WHERE {where}
                ORDER BY clock_in_time DESC
                LIMIT %s
                """,
                (*params, int(limit)),
            )
            return [_to_entry(r) for r in fetchall(cur)]

    def close_entry(
        self,
        *,
        entry_id: int,
        clock_out_time: datetime,
        total_hours: float,
        updated_at: datetime,
        auto_clock_out: bool = False,
        auto_clock_out_reason: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE time_entries
                SET clock_out_time=%s, total_hours=%s, auto_clock_out=%s, auto_clock_out_reason=%s, updated_at=%s
                WHERE entry_id=%s AND clock_out_time IS NULL
                """,
                (
                    clock_out_time,
                    total_hours,
                    int(auto_clock_out),
                    auto_clock_out_reason,
                    updated_at,
                    int(entry_id),
                ),
            )
            return cur.rowcount > 0

    def set_approval_status(
        self,
        *,
        entry_id: int,
        status: TimeEntryStatus,
        approved_by: int,
        approved_at: datetime,
        approval_notes: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE time_entries
                SET status=%s, approved_by=%s, approved_at=%s, approval_notes=%s, updated_at=%s
                WHERE entry_id=%s
                """,
                (status.value, int(approved_by), approved_at, approval_notes, approved_at, int(entry_id)),
            )
            return cur.rowcount > 0

    def delete_open_entry(self, entry_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM time_entries WHERE entry_id=%s AND clock_out_time IS NULL",
                (int(entry_id),),
            )
            return cur.rowcount > 0
