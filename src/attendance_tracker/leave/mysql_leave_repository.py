from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus, LeaveStatus, LeaveType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LeaveRequest, LeaveRequestWithPerson
from .repository import LeaveRepository

_REQUEST_COLUMNS = """
    r.id, r.person_id, r.start_date, r.end_date, r.leave_type, r.reason, r.status,
    r.reviewed_by, r.reviewed_at, r.review_notes, r.created_at
"""


def _request_kwargs(r: dict) -> dict:
    return dict(
        request_id=int(r["id"]),
        person_id=int(r["person_id"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        leave_type=LeaveType(r["leave_type"]),
        status=LeaveStatus(r["status"]),
        reason=r.get("reason"),
        reviewed_by=r.get("reviewed_by"),
        reviewed_at=r.get("reviewed_at"),
        review_notes=r.get("review_notes"),
        created_at=r.get("created_at"),
    )


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_unless_overlapping(
        self,
        *,
        person_id: int,
        start_date: date,
        end_date: date,
        leave_type: LeaveType,
        reason: Optional[str],
    ) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            # Row lock on the person serializes concurrent requests for the same person.
            cur.execute("SELECT id FROM people WHERE id=%s FOR UPDATE", (int(person_id),))
            fetchone(cur)
            cur.execute(
                """
                SELECT 1 AS hit
                FROM leave_requests
                WHERE person_id=%s AND status <> %s AND start_date <= %s AND end_date >= %s
                LIMIT 1
                """,
                (int(person_id), LeaveStatus.REJECTED.value, end_date, start_date),
            )
            if fetchone(cur) is not None:
                return None

            cur.execute(
                """
                INSERT INTO leave_requests(person_id, start_date, end_date, leave_type, reason, status)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(person_id), start_date, end_date, leave_type.value, reason, LeaveStatus.PENDING.value),
            )
            return int(cur.lastrowid)

    def get_by_id(self, request_id: int) -> Optional[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_REQUEST_COLUMNS} FROM leave_requests r WHERE r.id=%s",
                (int(request_id),),
            )
            r = fetchone(cur)
            return LeaveRequest(**_request_kwargs(r)) if r else None

    def delete_pending(self, request_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM leave_requests WHERE id=%s AND status=%s",
                (int(request_id), LeaveStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def decide(
        self,
        *,
        request_id: int,
        status: LeaveStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        review_notes: Optional[str],
        leave_days: Sequence[date] = (),
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_requests
                SET status=%s, reviewed_by=%s, reviewed_at=%s, review_notes=%s
                WHERE id=%s AND status=%s
                """,
                (
                    status.value,
                    int(reviewed_by),
                    reviewed_at,
                    review_notes,
                    int(request_id),
                    LeaveStatus.PENDING.value,
                ),
            )
            if cur.rowcount == 0:
                return False

            if leave_days:
                cur.execute("SELECT person_id FROM leave_requests WHERE id=%s", (int(request_id),))
                person_id = int(fetchone(cur)["person_id"])
                cur.executemany(
                    """
                    INSERT INTO attendance_logs(person_id, attendance_date, status, recorded_by)
                    VALUES(%s,%s,%s,%s)
                    ON DUPLICATE KEY UPDATE status=VALUES(status), recorded_by=VALUES(recorded_by)
                    """,
                    [(person_id, day, AttendanceStatus.LEAVE.value, int(reviewed_by)) for day in leave_days],
                )
            return True

    def list_for_person(self, person_id: int) -> Sequence[LeaveRequestWithPerson]:
        return self._list(where="r.person_id=%s", params=(int(person_id),))

    def list_all(self, *, status: Optional[LeaveStatus] = None) -> Sequence[LeaveRequestWithPerson]:
        if status is None:
            return self._list(where="1=1", params=())
        return self._list(where="r.status=%s", params=(status.value,))

    def _list(self, *, where: str, params: tuple) -> Sequence[LeaveRequestWithPerson]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_REQUEST_COLUMNS}, p.full_name, p.role AS person_role
                FROM leave_requests r
                JOIN people p ON p.id = r.person_id
                WHERE {where}
                ORDER BY r.created_at DESC, r.id DESC
                """,
                params,
            )
            return [
                LeaveRequestWithPerson(**_request_kwargs(r), full_name=r["full_name"], person_role=r.get("person_role"))
                for r in fetchall(cur)
            ]
