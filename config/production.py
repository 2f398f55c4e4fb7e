import os

from config import load_restaurant_networks

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timeclock_db"),
}

CLOCK_IN_QR_TOKEN = os.getenv("CLOCK_IN_QR_TOKEN", "CLOCK_IN_RESTAURANT_GENERAL")
CLOCK_OUT_QR_TOKEN = os.getenv("CLOCK_OUT_QR_TOKEN", "CLOCK_OUT_RESTAURANT_GENERAL")

GRACE_PERIOD_BEFORE = int(os.getenv("GRACE_PERIOD_BEFORE", "5"))
GRACE_PERIOD_AFTER = int(os.getenv("GRACE_PERIOD_AFTER", "5"))

RESTAURANT_NETWORKS = load_restaurant_networks()
PRESENCE_HEARTBEAT_TIMEOUT_SECONDS = int(os.getenv("PRESENCE_HEARTBEAT_TIMEOUT_SECONDS", "90"))

RECONCILIATION_INTERVAL_MINUTES = int(os.getenv("RECONCILIATION_INTERVAL_MINUTES", "5"))
RECONCILIATION_ENABLED = bool(int(os.getenv("RECONCILIATION_ENABLED", "1")))

DEBUG = False

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
