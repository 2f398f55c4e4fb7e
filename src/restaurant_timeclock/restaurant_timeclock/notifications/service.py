from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import NotificationAudience, NotificationType
from .model import Notification
from .repository import NotificationRepository


class NotificationService:
    """Outbound notification sink shared by the timeclock, approvals and reconciliation."""

    def __init__(self, notifications: NotificationRepository):
        self._notifications = notifications

    def notify_employee(
        self,
        *,
        employee_id: int,
        notification_type: NotificationType,
        title: str,
        message: str,
        now: datetime,
        request_id: Optional[int] = None,
        nudge_id: Optional[int] = None,
        action_required: bool = False,
    ) -> int:
        return self._notifications.create(
            audience=NotificationAudience.EMPLOYEE,
            employee_id=int(employee_id),
            notification_type=notification_type,
            title=title,
            message=message,
            created_at=now,
            request_id=request_id,
            nudge_id=nudge_id,
            action_required=action_required,
        )

    def notify_managers(
        self,
        *,
        employee_id: int,
        notification_type: NotificationType,
        title: str,
        message: str,
        now: datetime,
        request_id: Optional[int] = None,
        nudge_id: Optional[int] = None,
    ) -> int:
        """Manager notifications are addressed to the queue, keyed by the employee they concern."""

        return self._notifications.create(
            audience=NotificationAudience.MANAGER,
            employee_id=int(employee_id),
            notification_type=notification_type,
            title=title,
            message=message,
            created_at=now,
            request_id=request_id,
            nudge_id=nudge_id,
            action_required=True,
        )

    def list_for_employee(self, employee_id: int, *, unread_only: bool = False) -> Sequence[Notification]:
        return self._notifications.list_for_employee(
            employee_id=int(employee_id), unread_only=unread_only, limit=DEFAULT_LIST_LIMIT
        )

    def list_for_managers(self, notification_type: Optional[NotificationType] = None) -> Sequence[Notification]:
        return self._notifications.list_for_managers(notification_type=notification_type, limit=DEFAULT_LIST_LIMIT)

    def mark_read(self, *, notification_id: int, employee_id: int) -> bool:
        return self._notifications.mark_read(notification_id=int(notification_id), employee_id=int(employee_id))

    def resolve_for_request(self, request_id: int) -> int:
        return self._notifications.resolve_for_request(request_id=int(request_id))

    def resolve_for_nudge(self, nudge_id: int) -> int:
        return self._notifications.resolve_for_nudge(nudge_id=int(nudge_id))
