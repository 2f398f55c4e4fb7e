import os

from config import DEFAULT_RESTAURANT_NETWORKS

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timeclock_test"),
}

CLOCK_IN_QR_TOKEN = "CLOCK_IN_RESTAURANT_GENERAL"
CLOCK_OUT_QR_TOKEN = "CLOCK_OUT_RESTAURANT_GENERAL"

GRACE_PERIOD_BEFORE = 5
GRACE_PERIOD_AFTER = 5

RESTAURANT_NETWORKS = dict(DEFAULT_RESTAURANT_NETWORKS)
PRESENCE_HEARTBEAT_TIMEOUT_SECONDS = 90

RECONCILIATION_INTERVAL_MINUTES = 5
RECONCILIATION_ENABLED = False

DEBUG = False
TESTING = True

AUTO_INIT_DB = False
