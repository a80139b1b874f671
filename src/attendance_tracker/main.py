from __future__ import annotations

import importlib
import logging
from datetime import timedelta
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .absence.controller import register as register_absence
from .attendance.controller import register as register_attendance
from .common.web import EXTENSION_KEY, register_error_handlers
from .container import Container, build_container
from .core.constants import AUTO_ABSENT_CUTOFF_HOUR, DEFAULT_SESSION_DAYS
from .dashboard.controller import register as register_dashboard
from .database.bootstrap import apply_schema, ensure_admin_account, list_tables
from .identity.controller import register as register_identity
from .leave.controller import register as register_leave
from .people.controller import register as register_people
from .settings import get_settings_module

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(*, container: Optional[Container] = None, settings_module: Optional[str] = None) -> Flask:
    """Application factory.

    Tests pass a prebuilt ``container`` (in-memory repositories); the database bootstrap is
    skipped in that case.
    """
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["CRON_SECRET"] = getattr(settings, "CRON_SECRET", None)
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(
        days=int(getattr(settings, "SESSION_DAYS", DEFAULT_SESSION_DAYS))
    )

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if getattr(settings, "AUTO_INIT_DB", False):
            apply_schema(db_config)
            logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
        ensure_admin_account(
            db_config,
            email=getattr(settings, "BOOTSTRAP_ADMIN_EMAIL", None),
            password=getattr(settings, "BOOTSTRAP_ADMIN_PASSWORD", None),
        )

        container = build_container(
            db_config=db_config,
            cutoff_hour=int(getattr(settings, "AUTO_ABSENT_CUTOFF_HOUR", AUTO_ABSENT_CUTOFF_HOUR)),
        )

    app.extensions[EXTENSION_KEY] = container
    register_error_handlers(app)

    register_identity(app, container)
    register_people(app, container)
    register_attendance(app, container)
    register_leave(app, container)
    register_dashboard(app, container)
    register_absence(app, container)

    return app
