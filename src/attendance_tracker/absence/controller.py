from __future__ import annotations

import hmac

from flask import Flask, request

from ..common.web import fail, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/cron/auto-absent", methods=["GET"], endpoint="cron_auto_absent")
    def cron_auto_absent():
        secret = app.config.get("CRON_SECRET")
        if secret:
            supplied = request.headers.get("Authorization", "")
            if not hmac.compare_digest(supplied, f"Bearer {secret}"):
                return fail("Unauthorized", 401)

        return ok(container.auto_absent_service.run_auto_absent())
