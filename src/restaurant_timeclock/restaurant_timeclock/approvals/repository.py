from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import ApprovalType, RequestStatus
from .model import ApprovalRequest, AvailabilityChange


class ApprovalRepository(Protocol):
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
        raise NotImplementedError

    def get_by_id(self, request_id: int) -> Optional[ApprovalRequest]:
        raise NotImplementedError

    def list_requests(
        self,
        *,
        status: Optional[RequestStatus] = None,
        request_type: Optional[ApprovalType] = None,
        employee_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[ApprovalRequest]:
        raise NotImplementedError

    def decide(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        decided_by: int,
        decided_at: datetime,
        notes: Optional[str] = None,
    ) -> bool:
        """Move a PENDING request to its terminal status.

        Returns False when the request is no longer pending.
        """

        raise NotImplementedError

    def reopen(self, *, request_id: int, status: RequestStatus) -> bool:
        """Put a request decided as `status` back to PENDING."""

        raise NotImplementedError

    def delete(self, request_id: int) -> bool:
        raise NotImplementedError
