from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import NotificationAudience, NotificationStatus, NotificationType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import Notification
from .repository import NotificationRepository

_COLUMNS = """
    notification_id, audience, employee_id, notification_type, title, message,
    request_id, nudge_id, action_required, is_read, status, created_at
"""


def _to_notification(r) -> Notification:
    return Notification(
        notification_id=int(r["notification_id"]),
        audience=NotificationAudience(r["audience"]),
        employee_id=int(r["employee_id"]),
        notification_type=NotificationType(r["notification_type"]),
        title=r["title"],
        message=r["message"],
        created_at=r["created_at"],
        request_id=r.get("request_id"),
        nudge_id=r.get("nudge_id"),
        action_required=bool(r["action_required"]),
        is_read=bool(r["is_read"]),
        status=NotificationStatus(r["status"]),
    )


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        audience: NotificationAudience,
        employee_id: int,
        notification_type: NotificationType,
        title: str,
        message: str,
        created_at: datetime,
        request_id: Optional[int] = None,
        nudge_id: Optional[int] = None,
        action_required: bool = False,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO notifications(
                    audience, employee_id, notification_type, title, message,
                    request_id, nudge_id, action_required, is_read, status, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,0,%s,%s)
                """,
                (
                    audience.value,
                    int(employee_id),
                    notification_type.value,
                    title,
                    message,
                    request_id,
                    nudge_id,
                    int(action_required),
                    NotificationStatus.PENDING.value,
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def list_for_employee(self, *, employee_id: int, unread_only: bool = False, limit: int = 200) -> Sequence[Notification]:
        clauses = ["audience=%s", "employee_id=%s"]
        params: list[object] = [NotificationAudience.EMPLOYEE.value, int(employee_id)]
        if unread_only:
            clauses.append("is_read=0")
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM notifications WHERE {where} ORDER BY created_at DESC, notification_id DESC LIMIT %s",
                (*params, int(limit)),
            )
            return [_to_notification(r) for r in fetchall(cur)]

    def list_for_managers(
        self,
        *,
        notification_type: Optional[NotificationType] = None,
        status: Optional[NotificationStatus] = NotificationStatus.PENDING,
        limit: int = 200,
    ) -> Sequence[Notification]:
        clauses = ["audience=%s"]
        params: list[object] = [NotificationAudience.MANAGER.value]
        if notification_type is not None:
            clauses.append("notification_type=%s")
            params.append(notification_type.value)
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM notifications WHERE {where} ORDER BY created_at DESC, notification_id DESC LIMIT %s",
                (*params, int(limit)),
            )
            return [_to_notification(r) for r in fetchall(cur)]

    def mark_read(self, *, notification_id: int, employee_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE notifications SET is_read=1 WHERE notification_id=%s AND employee_id=%s",
                (int(notification_id), int(employee_id)),
            )
            return cur.rowcount > 0

    def resolve_for_request(self, *, request_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE notifications SET status=%s WHERE audience=%s AND request_id=%s AND status=%s",
                (
                    NotificationStatus.RESOLVED.value,
                    NotificationAudience.MANAGER.value,
                    int(request_id),
                    NotificationStatus.PENDING.value,
                ),
            )
            return int(cur.rowcount)

    def resolve_for_nudge(self, *, nudge_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE notifications SET status=%s WHERE audience=%s AND nudge_id=%s AND status=%s",
                (
                    NotificationStatus.RESOLVED.value,
                    NotificationAudience.MANAGER.value,
                    int(nudge_id),
                    NotificationStatus.PENDING.value,
                ),
            )
            return int(cur.rowcount)
