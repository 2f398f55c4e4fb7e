from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import NotificationAudience, NotificationStatus, NotificationType
from .model import Notification


class NotificationRepository(Protocol):
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
        raise NotImplementedError

    def list_for_employee(self, *, employee_id: int, unread_only: bool = False, limit: int = 200) -> Sequence[Notification]:
        raise NotImplementedError

    def list_for_managers(
        self,
        *,
        notification_type: Optional[NotificationType] = None,
        status: Optional[NotificationStatus] = NotificationStatus.PENDING,
        limit: int = 200,
    ) -> Sequence[Notification]:
        raise NotImplementedError

    def mark_read(self, *, notification_id: int, employee_id: int) -> bool:
        raise NotImplementedError

    def resolve_for_request(self, *, request_id: int) -> int:
        """Mark PENDING manager notifications about a request as RESOLVED; returns count."""

        raise NotImplementedError

    def resolve_for_nudge(self, *, nudge_id: int) -> int:
        raise NotImplementedError
