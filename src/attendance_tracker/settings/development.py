import os

from . import env_flag

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_tracker"),
}

DEBUG = env_flag("DEBUG", "1")
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# Applies schema.sql on startup (idempotent: CREATE TABLE IF NOT EXISTS)
AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "1")

BOOTSTRAP_ADMIN_EMAIL = os.getenv("BOOTSTRAP_ADMIN_EMAIL")
BOOTSTRAP_ADMIN_PASSWORD = os.getenv("BOOTSTRAP_ADMIN_PASSWORD")

CRON_SECRET = os.getenv("CRON_SECRET")
AUTO_ABSENT_CUTOFF_HOUR = int(os.getenv("AUTO_ABSENT_CUTOFF_HOUR", "13"))
SESSION_DAYS = int(os.getenv("SESSION_DAYS", "7"))
