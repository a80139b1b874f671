from __future__ import annotations

from flask import Flask, g, request

from ..common.web import admin_required, login_required, ok, request_data
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/leave", methods=["POST"], endpoint="create_leave")
    @login_required
    def create_leave():
        data = request_data()
        leave = container.leave_service.create_leave_request(
            g.account_id,
            start_date=data.get("start_date"),
            end_date=data.get("end_date"),
            leave_type=data.get("leave_type"),
            reason=data.get("reason"),
        )
        return ok(leave, 201)

    @app.route("/leave/<int:request_id>", methods=["DELETE"], endpoint="cancel_leave")
    @login_required
    def cancel_leave(request_id: int):
        container.leave_service.cancel_leave_request(g.account_id, request_id)
        return ok()

    @app.route("/leave/mine", methods=["GET"], endpoint="my_leaves")
    @login_required
    def my_leaves():
        return ok(container.leave_service.list_mine(g.account_id))

    @app.route("/leave", methods=["GET"], endpoint="list_leaves")
    @admin_required
    def list_leaves():
        return ok(container.leave_service.list_all(current_role=g.role, status_filter=request.args.get("status")))

    @app.route("/leave/<int:request_id>/review", methods=["POST"], endpoint="review_leave")
    @admin_required
    def review_leave(request_id: int):
        data = request_data()
        leave = container.leave_service.review_leave_request(
            current_role=g.role,
            reviewer_account_id=g.account_id,
            request_id=request_id,
            decision=data.get("decision") or data.get("status"),
            notes=data.get("notes"),
        )
        return ok(leave)

    @app.route("/people/<int:person_id>/leave-stats", methods=["GET"], endpoint="person_leave_stats")
    @admin_required
    def person_leave_stats(person_id: int):
        return ok(container.leave_service.person_leave_stats(current_role=g.role, person_id=person_id))
