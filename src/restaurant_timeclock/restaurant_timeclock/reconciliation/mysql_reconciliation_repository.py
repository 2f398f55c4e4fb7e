from __future__ import annotations

from datetime import datetime, time
from typing import Optional, Sequence

from ..core.enums import NudgeStatus, NudgeType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import ClockOutNudge, PotentialClockOut
from .repository import CandidateRepository, NudgeRepository

_COLUMNS = """
    nudge_id, employee_id, time_entry_id, nudge_type, title, message,
    potential_clock_out_time, scheduled_end_time, suggested_time, status,
    requires_manager_action, confirmed_clock_out, created_at, responded_at
"""


def _to_nudge(r) -> ClockOutNudge:
    return ClockOutNudge(
        nudge_id=int(r["nudge_id"]),
        employee_id=int(r["employee_id"]),
        nudge_type=NudgeType(r["nudge_type"]),
        title=r["title"],
        message=r["message"],
        suggested_time=r["suggested_time"],
        status=NudgeStatus(r["status"]),
        created_at=r["created_at"],
        time_entry_id=r.get("time_entry_id"),
        potential_clock_out_time=r.get("potential_clock_out_time"),
        scheduled_end_time=normalize_mysql_time(r.get("scheduled_end_time")),
        requires_manager_action=bool(r["requires_manager_action"]),
        confirmed_clock_out=r.get("confirmed_clock_out"),
        responded_at=r.get("responded_at"),
    )


class MySQLNudgeRepository(NudgeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        employee_id: int,
        time_entry_id: Optional[int],
        nudge_type: NudgeType,
        title: str,
        message: str,
        suggested_time: datetime,
        created_at: datetime,
        potential_clock_out_time: Optional[datetime] = None,
        scheduled_end_time: Optional[time] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO clock_out_nudges(
                    employee_id, time_entry_id, nudge_type, title, message,
                    potential_clock_out_time, scheduled_end_time, suggested_time, status, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(employee_id),
                    time_entry_id,
                    nudge_type.value,
                    title,
                    message,
                    potential_clock_out_time,
                    scheduled_end_time,
                    suggested_time,
                    NudgeStatus.PENDING.value,
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def get_by_id(self, nudge_id: int) -> Optional[ClockOutNudge]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM clock_out_nudges WHERE nudge_id=%s", (int(nudge_id),))
            r = fetchone(cur)
            return _to_nudge(r) if r else None

    def list_nudges(
        self,
        *,
        employee_id: Optional[int] = None,
        status: Optional[NudgeStatus] = None,
        requires_manager_action: Optional[bool] = None,
        limit: int = 200,
    ) -> Sequence[ClockOutNudge]:
        clauses = []
        params: list[object] = []
        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(int(employee_id))
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if requires_manager_action is not None:
            clauses.append("requires_manager_action=%s")
            params.append(int(requires_manager_action))
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM clock_out_nudges
                {where}
                ORDER BY created_at DESC, nudge_id DESC
                LIMIT %s
                """,
                (*params, int(limit)),
            )
            return [_to_nudge(r) for r in fetchall(cur)]

    def exists_since(self, *, employee_id: int, nudge_type: NudgeType, since: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 AS found
                FROM clock_out_nudges
                WHERE employee_id=%s AND nudge_type=%s AND created_at >= %s
                LIMIT 1
                """,
                (int(employee_id), nudge_type.value, since),
            )
            return fetchone(cur) is not None

    def respond(
        self,
        *,
        nudge_id: int,
        status: NudgeStatus,
        requires_manager_action: bool,
        confirmed_clock_out: Optional[datetime],
        responded_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE clock_out_nudges
                SET status=%s, requires_manager_action=%s, confirmed_clock_out=%s, responded_at=%s
                WHERE nudge_id=%s AND status=%s
                """,
                (
                    status.value,
                    int(requires_manager_action),
                    confirmed_clock_out,
                    responded_at,
                    int(nudge_id),
                    NudgeStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def complete_manager_action(self, *, nudge_id: int, confirmed_clock_out: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE clock_out_nudges
                SET requires_manager_action=0, confirmed_clock_out=%s
                WHERE nudge_id=%s AND status=%s AND requires_manager_action=1
                """,
                (confirmed_clock_out, int(nudge_id), NudgeStatus.NEEDS_MANAGER.value),
            )
            return cur.rowcount > 0


class MySQLCandidateRepository(CandidateRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def add(self, candidate: PotentialClockOut) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO potential_clock_outs(employee_id, time_entry_id, candidate_time, recorded_at)
                VALUES(%s,%s,%s,%s)
                """,
                (
                    int(candidate.employee_id),
                    candidate.time_entry_id,
                    candidate.candidate_time,
                    candidate.recorded_at,
                ),
            )
            return cur.rowcount > 0

    def list_all(self) -> Sequence[PotentialClockOut]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT employee_id, time_entry_id, candidate_time, recorded_at
                FROM potential_clock_outs
                ORDER BY candidate_time, employee_id
                """
            )
            return [
                PotentialClockOut(
                    employee_id=int(r["employee_id"]),
                    candidate_time=r["candidate_time"],
                    recorded_at=r["recorded_at"],
                    time_entry_id=r.get("time_entry_id"),
                )
                for r in fetchall(cur)
            ]

    def remove(self, employee_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM potential_clock_outs WHERE employee_id=%s", (int(employee_id),))
