from __future__ import annotations

from datetime import date

from flask import Flask, g, request

from ..common.datetime_utils import parse_optional_date
from ..common.validators import parse_positive_int
from ..common.web import admin_required, login_required, ok, request_data
from ..container import Container
from ..core.constants import DEFAULT_MY_LOGS_LIMIT, DEFAULT_PERSON_LOGS_LIMIT, MAX_PAGE_SIZE
from ..core.exceptions import ValidationError
from .model import LogFilters, PunchLocation


def register(app: Flask, container: Container) -> None:
    def _date_arg(value, field_name: str) -> date:
        parsed = parse_optional_date(value, field_name)
        if parsed is None:
            raise ValidationError(f"{field_name} is required")
        return parsed

    @app.route("/punch/in", methods=["POST"], endpoint="punch_in")
    @login_required
    def punch_in():
        location = PunchLocation.from_mapping(request_data())
        return ok(container.attendance_service.punch_in(g.account_id, location))

    @app.route("/punch/out", methods=["POST"], endpoint="punch_out")
    @login_required
    def punch_out():
        location = PunchLocation.from_mapping(request_data())
        return ok(container.attendance_service.punch_out(g.account_id, location))

    @app.route("/punch/today", methods=["GET"], endpoint="punch_today")
    @login_required
    def punch_today():
        return ok(container.attendance_service.get_today_status(g.account_id))

    @app.route("/my/logs", methods=["GET"], endpoint="my_logs")
    @login_required
    def my_logs():
        limit = parse_positive_int(
            request.args.get("limit"), "limit", default=DEFAULT_MY_LOGS_LIMIT, maximum=MAX_PAGE_SIZE
        )
        return ok(container.attendance_service.my_logs(g.account_id, limit))

    @app.route("/attendance/sheet", methods=["GET"], endpoint="attendance_sheet")
    @admin_required
    def attendance_sheet():
        attendance_date = _date_arg(request.args.get("date"), "date")
        return ok(
            container.attendance_service.attendance_for_date(
                current_role=g.role,
                attendance_date=attendance_date,
            )
        )

    @app.route("/attendance/bulk", methods=["POST"], endpoint="attendance_bulk")
    @admin_required
    def attendance_bulk():
        data = request_data()
        records = data.get("records") or []
        if not isinstance(records, list):
            raise ValidationError("records must be a list")
        saved = container.attendance_service.bulk_upsert_attendance(
            current_role=g.role,
            attendance_date=_date_arg(data.get("date"), "date"),
            records=records,
            recorded_by=g.account_id,
        )
        return ok({"saved": saved})

    @app.route("/logs", methods=["GET"], endpoint="list_logs")
    @admin_required
    def list_logs():
        filters = LogFilters.from_mapping(request.args)
        return ok(container.attendance_service.list_logs(current_role=g.role, filters=filters))

    @app.route("/logs/export.csv", methods=["GET"], endpoint="export_logs_csv")
    @admin_required
    def export_logs_csv():
        filters = LogFilters.from_mapping(request.args)
        text = container.attendance_service.export_csv(current_role=g.role, filters=filters)
        filename = f"attendance-logs-{date.today().isoformat()}.csv"
        return app.response_class(
            text.encode("utf-8-sig"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/people/<int:person_id>/logs", methods=["GET"], endpoint="person_logs")
    @admin_required
    def person_logs(person_id: int):
        limit = parse_positive_int(
            request.args.get("limit"), "limit", default=DEFAULT_PERSON_LOGS_LIMIT, maximum=MAX_PAGE_SIZE
        )
        return ok(
            container.attendance_service.person_logs(current_role=g.role, person_id=person_id, limit=limit)
        )

    @app.route("/dashboard/stats", methods=["GET"], endpoint="dashboard_stats")
    @admin_required
    def dashboard_stats():
        return ok(container.attendance_service.dashboard_stats())

    @app.route("/dashboard/today-punches", methods=["GET"], endpoint="dashboard_today_punches")
    @admin_required
    def dashboard_today_punches():
        return ok(container.attendance_service.today_attendance_with_location())
