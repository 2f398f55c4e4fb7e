from __future__ import annotations

from datetime import date
from enum import Enum


class Role(str, Enum):
    """Roles used for permission checks on manager actions."""

    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"


class Weekday(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def of(cls, value: date) -> "Weekday":
        return list(cls)[value.weekday()]


class ShiftLabel(str, Enum):
    """Canonical recurring shifts an employee can mark as available."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


class ShiftSource(str, Enum):
    MANUAL = "manual"
    AUTOMATIC = "automatic"


class TimeEntryStatus(str, Enum):
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    DENIED = "DENIED"


class ApprovalReason(str, Enum):
    EARLY_CLOCK_IN = "EARLY_CLOCK_IN"
    LATE_CLOCK_IN = "LATE_CLOCK_IN"


class ApprovalType(str, Enum):
    CLOCK_IN_APPROVAL = "CLOCK_IN_APPROVAL"
    AVAILABILITY_CHANGE = "AVAILABILITY_CHANGE"


class RequestStatus(str, Enum):
    """Approval flow status (clock-in approvals, availability changes)."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    DENIED = "DENIED"


class AvailabilityChangeKind(str, Enum):
    SCHEDULE_OVERRIDE = "SCHEDULE_OVERRIDE"
    PERMANENT_CHANGE = "PERMANENT_CHANGE"


class NudgeType(str, Enum):
    FORGOT_CLOCK_OUT = "FORGOT_CLOCK_OUT"
    SHIFT_OVERDUE = "SHIFT_OVERDUE"


class NudgeStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    NEEDS_MANAGER = "NEEDS_MANAGER"


class NudgeResponse(str, Enum):
    YES = "YES"
    NO = "NO"


class NotificationAudience(str, Enum):
    EMPLOYEE = "EMPLOYEE"
    MANAGER = "MANAGER"


class NotificationType(str, Enum):
    CLOCK_IN_APPROVAL_REQUEST = "CLOCK_IN_APPROVAL_REQUEST"
    CLOCK_IN_APPROVAL_RESPONSE = "CLOCK_IN_APPROVAL_RESPONSE"
    AVAILABILITY_CHANGE_REQUEST = "AVAILABILITY_CHANGE_REQUEST"
    AVAILABILITY_CHANGE_RESPONSE = "AVAILABILITY_CHANGE_RESPONSE"
    FORGOT_CLOCK_OUT = "FORGOT_CLOCK_OUT"
    SHIFT_OVERDUE = "SHIFT_OVERDUE"
    CLOCK_OUT_CORRECTION_NEEDED = "CLOCK_OUT_CORRECTION_NEEDED"


class NotificationStatus(str, Enum):
    PENDING = "PENDING"
    RESOLVED = "RESOLVED"


class ErrorType(str, Enum):
    """Typed failure reasons returned (never raised) by public operations."""

    INVALID_QR = "INVALID_QR"
    NOT_LOGGED_IN = "NOT_LOGGED_IN"
    LOCATION_VERIFICATION_FAILED = "LOCATION_VERIFICATION_FAILED"
    ALREADY_CLOCKED_IN = "ALREADY_CLOCKED_IN"
    NOT_CLOCKED_IN = "NOT_CLOCKED_IN"
    NO_SHIFT_SCHEDULED = "NO_SHIFT_SCHEDULED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    PROCESSING_ERROR = "PROCESSING_ERROR"
    REQUEST_NOT_FOUND = "REQUEST_NOT_FOUND"
    REQUEST_NOT_PENDING = "REQUEST_NOT_PENDING"
    SUBMISSION_ERROR = "SUBMISSION_ERROR"
    APPROVAL_ERROR = "APPROVAL_ERROR"
    NUDGE_NOT_FOUND = "NUDGE_NOT_FOUND"
    NUDGE_NOT_PENDING = "NUDGE_NOT_PENDING"
    RESPONSE_ERROR = "RESPONSE_ERROR"
