from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import ApprovalType, RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json, to_json
from .model import ApprovalRequest, AvailabilityChange
from .repository import ApprovalRepository

_COLUMNS = """
    request_id, request_type, employee_id, time_entry_id, reason, status,
    requested_at, changes_json, approved_by, approved_at, approval_notes
"""


def _to_request(r) -> ApprovalRequest:
    raw_changes = from_json(r.get("changes_json"))
    return ApprovalRequest(
        request_id=int(r["request_id"]),
        request_type=ApprovalType(r["request_type"]),
        employee_id=int(r["employee_id"]),
        reason=r["reason"],
        status=RequestStatus(r["status"]),
        requested_at=r["requested_at"],
        time_entry_id=r.get("time_entry_id"),
        changes=AvailabilityChange.from_dict(raw_changes) if raw_changes else None,
        approved_by=r.get("approved_by"),
        approved_at=r.get("approved_at"),
        approval_notes=r.get("approval_notes"),
    )


class MySQLApprovalRepository(ApprovalRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        request_type: ApprovalType,
        employee_id: int,
        reason: str,
        requested_at: datetime,
        time_entry_id: Optional[int] = None,
        changes: Optional[AvailabilityChange] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO approval_requests(
                    request_type, employee_id, time_entry_id, reason, status, requested_at, changes_json
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    request_type.value,
                    int(employee_id),
                    time_entry_id,
                    reason,
                    RequestStatus.PENDING.value,
                    requested_at,
                    to_json(changes.to_dict()) if changes else None,
                ),
            )
            return int(cur.lastrowid)

    def get_by_id(self, request_id: int) -> Optional[ApprovalRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM approval_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _to_request(r) if r else None

    def list_requests(
        self,
        *,
        status: Optional[RequestStatus] = None,
        request_type: Optional[ApprovalType] = None,
        employee_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[ApprovalRequest]:
        clauses = []
        params: list[object] = []
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if request_type is not None:
            clauses.append("request_type=%s")
            params.append(request_type.value)
        if employee_id is not None:
            clauses.append("employee_id=%s")
            params.append(int(employee_id))
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM approval_requests
                {where}
                ORDER BY requested_at DESC, request_id DESC
                LIMIT %s
                """,
                (*params, int(limit)),
            )
            return [_to_request(r) for r in fetchall(cur)]

    def decide(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        decided_by: int,
        decided_at: datetime,
        notes: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE approval_requests
                SET status=%s, approved_by=%s, approved_at=%s, approval_notes=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    status.value,
                    int(decided_by),
                    decided_at,
                    notes,
                    int(request_id),
                    RequestStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def reopen(self, *, request_id: int, status: RequestStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE approval_requests
                SET status=%s, approved_by=NULL, approved_at=NULL, approval_notes=NULL
                WHERE request_id=%s AND status=%s
                """,
                (RequestStatus.PENDING.value, int(request_id), status.value),
            )
            return cur.rowcount > 0

    def delete(self, request_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM approval_requests WHERE request_id=%s", (int(request_id),))
            return cur.rowcount > 0
