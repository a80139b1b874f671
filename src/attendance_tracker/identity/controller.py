from __future__ import annotations

from flask import Flask, g, session

from ..common.web import admin_required, login_required, ok, request_data
from ..container import Container
from .service import parse_role


def register(app: Flask, container: Container) -> None:
    @app.route("/auth/login", methods=["POST"], endpoint="login")
    def login():
        data = request_data()
        s_account = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))

        session.clear()
        session.permanent = bool(data.get("remember_me"))
        session["account_id"] = s_account.account_id
        session["email"] = s_account.email

        container.identity_service.auto_link_on_authenticate(s_account.account_id, s_account.email)
        return ok(container.identity_service.describe(s_account.account_id))

    @app.route("/auth/signup", methods=["POST"], endpoint="signup")
    def signup():
        data = request_data()
        account_id = container.auth_service.sign_up(data.get("email", ""), data.get("password", ""))
        return ok({"account_id": account_id}, 201)

    @app.route("/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return ok()

    @app.route("/auth/password", methods=["POST"], endpoint="change_password")
    @login_required
    def change_password():
        data = request_data()
        container.auth_service.change_password(
            g.account_id,
            data.get("current_password", ""),
            data.get("new_password", ""),
        )
        return ok()

    @app.route("/auth/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        return ok(container.identity_service.describe(g.account_id))

    @app.route("/admin/roles/<int:account_id>", methods=["PUT"], endpoint="set_user_role")
    @admin_required
    def set_user_role(account_id: int):
        role = parse_role(request_data().get("role"))
        container.identity_service.set_user_role(current_role=g.role, account_id=account_id, role=role)
        return ok({"account_id": account_id, "role": role})
