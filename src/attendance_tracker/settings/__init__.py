import os


def get_settings_module() -> str:
    # APP_ENV picks the module; anything unrecognised falls back to development.
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "attendance_tracker.settings.production"

    if env in {"test", "testing"}:
        return "attendance_tracker.settings.testing"

    return "attendance_tracker.settings.development"


def env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}
