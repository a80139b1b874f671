from __future__ import annotations

from flask import Flask, g

from ..common.web import login_required, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/dashboard", methods=["GET"], endpoint="dashboard")
    @login_required
    def dashboard():
        return ok(container.dashboard_service.for_account(g.account_id, g.role))
