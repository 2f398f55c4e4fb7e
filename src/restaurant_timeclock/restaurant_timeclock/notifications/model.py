from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import NotificationAudience, NotificationStatus, NotificationType


@dataclass(frozen=True)
class Notification:
    """Outbound message rendered by the employee or manager UI."""

    notification_id: int
    audience: NotificationAudience
    employee_id: int
    notification_type: NotificationType
    title: str
    message: str
    created_at: datetime
    request_id: Optional[int] = None
    nudge_id: Optional[int] = None
    action_required: bool = False
    is_read: bool = False
    status: NotificationStatus = NotificationStatus.PENDING

    def to_dict(self) -> dict:
        return {
            "notification_id": self.notification_id,
            "audience": self.audience.value,
            "employee_id": self.employee_id,
            "type": self.notification_type.value,
            "title": self.title,
            "message": self.message,
            "request_id": self.request_id,
            "nudge_id": self.nudge_id,
            "action_required": self.action_required,
            "is_read": self.is_read,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
        }
