import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_tracker_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False

BOOTSTRAP_ADMIN_EMAIL = None
BOOTSTRAP_ADMIN_PASSWORD = None

CRON_SECRET = "test-cron-secret"
AUTO_ABSENT_CUTOFF_HOUR = 13
SESSION_DAYS = 7
