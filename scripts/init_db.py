from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv

from attendance_tracker.database.bootstrap import apply_schema, ensure_admin_account, list_tables
from attendance_tracker.settings import get_settings_module

logger = logging.getLogger("attendance_tracker.scripts.init_db")


def main() -> None:
    load_dotenv(override=False)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")

    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config)
    ensure_admin_account(
        db_config,
        email=getattr(settings, "BOOTSTRAP_ADMIN_EMAIL", None),
        password=getattr(settings, "BOOTSTRAP_ADMIN_PASSWORD", None),
    )
    tables = list_tables(db_config)
    logger.info(
        "Applied schema.sql -> %s@%s:%s/%s (tables=%s)",
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
        len(tables),
    )


if __name__ == "__main__":
    main()
