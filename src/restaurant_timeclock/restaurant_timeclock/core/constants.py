"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

from .enums import ShiftLabel

GRACE_PERIOD_BEFORE = 5
GRACE_PERIOD_AFTER = 5

CLOCK_IN_QR_TOKEN = "CLOCK_IN_RESTAURANT_GENERAL"
CLOCK_OUT_QR_TOKEN = "CLOCK_OUT_RESTAURANT_GENERAL"

# Recurring availability labels map to fixed shift times.
CANONICAL_SHIFT_TIMES: dict[ShiftLabel, tuple[time, time]] = {
    ShiftLabel.MORNING: (time(6, 0), time(14, 0)),
    ShiftLabel.AFTERNOON: (time(14, 0), time(22, 0)),
    ShiftLabel.EVENING: (time(22, 0), time(6, 0)),
}

OVERDUE_THRESHOLD_MINUTES = 15
SUGGESTION_WINDOW_MINUTES = 30

RECONCILIATION_INTERVAL_MINUTES = 5
PRESENCE_HEARTBEAT_TIMEOUT_SECONDS = 90

DEFAULT_HISTORY_LIMIT = 30
DEFAULT_LIST_LIMIT = 200
