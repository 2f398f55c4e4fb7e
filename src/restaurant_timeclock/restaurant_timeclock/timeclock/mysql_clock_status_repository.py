from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import ClockStatus
from .mysql_time_entry_repository import shift_from_row, shift_params
from .repository import ClockStatusRepository


class MySQLClockStatusRepository(ClockStatusRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, employee_id: int) -> Optional[ClockStatus]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT employee_id, is_currently_clocked, current_time_entry_id, last_clock_in, last_clock_out,
                       shift_start, shift_end, shift_source, shift_label
                FROM employee_clock_status
                WHERE employee_id=%s
                """,
                (int(employee_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return ClockStatus(
                employee_id=int(r["employee_id"]),
                is_currently_clocked=bool(r["is_currently_clocked"]),
                current_time_entry_id=r.get("current_time_entry_id"),
                last_clock_in=r.get("last_clock_in"),
                last_clock_out=r.get("last_clock_out"),
                current_shift=shift_from_row(r),
            )

    def save(self, status: ClockStatus) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO employee_clock_status(
                    employee_id, is_currently_clocked, current_time_entry_id, last_clock_in, last_clock_out,
                    shift_start, shift_end, shift_source, shift_label
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    is_currently_clocked=VALUES(is_currently_clocked),
                    current_time_entry_id=VALUES(current_time_entry_id),
                    last_clock_in=VALUES(last_clock_in),
                    last_clock_out=VALUES(last_clock_out),
                    shift_start=VALUES(shift_start),
                    shift_end=VALUES(shift_end),
                    shift_source=VALUES(shift_source),
                    shift_label=VALUES(shift_label)
                """,
                (
                    int(status.employee_id),
                    int(status.is_currently_clocked),
                    status.current_time_entry_id,
                    status.last_clock_in,
                    status.last_clock_out,
                    *shift_params(status.current_shift),
                ),
            )
