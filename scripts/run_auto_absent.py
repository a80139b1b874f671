"""Run the absence marker once, without going through HTTP.

Meant for a system scheduler (cron, systemd timer) on hosts that do not call /cron/auto-absent.
"""
from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv

from attendance_tracker.container import build_container
from attendance_tracker.core.constants import AUTO_ABSENT_CUTOFF_HOUR
from attendance_tracker.settings import get_settings_module

logger = logging.getLogger("attendance_tracker.scripts.run_auto_absent")


def main() -> None:
    load_dotenv(override=False)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")

    settings = importlib.import_module(get_settings_module())
    container = build_container(
        db_config=settings.DB_CONFIG,
        cutoff_hour=int(getattr(settings, "AUTO_ABSENT_CUTOFF_HOUR", AUTO_ABSENT_CUTOFF_HOUR)),
    )
    result = container.auto_absent_service.run_auto_absent()
    logger.info("%s (%s)", result.message, ", ".join(result.members) or "-")


if __name__ == "__main__":
    main()
