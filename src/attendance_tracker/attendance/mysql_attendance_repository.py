from __future__ import annotations

from datetime import date, datetime
from typing import Mapping, Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, optional_float
from .model import AttendanceEntry, AttendanceLog, AttendanceLogWithPerson, LogFilters, PunchLocation
from .repository import AttendanceRepository

_LOG_COLUMNS = """
    a.id, a.person_id, a.attendance_date, a.status, a.notes,
    a.punch_in_time, a.punch_out_time,
    a.punch_in_latitude, a.punch_in_longitude, a.punch_in_address,
    a.punch_out_latitude, a.punch_out_longitude, a.punch_out_address,
    a.recorded_by, a.created_at
"""

# Member punches never touch a day closed as absent or leave.
_DAY_OPEN = "(status IS NULL OR status NOT IN ('absent', 'leave'))"

# A row may take a punch-in only while it has none and the day is open.
_PUNCH_IN_OPEN = f"(punch_in_time IS NULL AND {_DAY_OPEN})"

# Shared guard: the absence marker only touches rows that carry neither punch-in nor status.
_UNRECORDED = "(punch_in_time IS NULL AND status IS NULL)"


def _log_kwargs(r: dict) -> dict:
    return dict(
        attendance_id=int(r["id"]),
        person_id=int(r["person_id"]),
        attendance_date=r["attendance_date"],
        status=AttendanceStatus(r["status"]) if r.get("status") else None,
        notes=r.get("notes"),
        punch_in_time=r.get("punch_in_time"),
        punch_out_time=r.get("punch_out_time"),
        punch_in_latitude=optional_float(r.get("punch_in_latitude")),
        punch_in_longitude=optional_float(r.get("punch_in_longitude")),
        punch_in_address=r.get("punch_in_address"),
        punch_out_latitude=optional_float(r.get("punch_out_latitude")),
        punch_out_longitude=optional_float(r.get("punch_out_longitude")),
        punch_out_address=r.get("punch_out_address"),
        recorded_by=r.get("recorded_by"),
        created_at=r.get("created_at"),
    )


def _to_log(r: dict) -> AttendanceLog:
    return AttendanceLog(**_log_kwargs(r))


def _to_log_with_person(r: dict) -> AttendanceLogWithPerson:
    return AttendanceLogWithPerson(**_log_kwargs(r), full_name=r["full_name"], person_role=r.get("person_role"))


def _filter_clause(filters: LogFilters) -> tuple[str, list[object]]:
    clauses = ["1=1"]
    params: list[object] = []

    if filters.date_from is not None:
        clauses.append("a.attendance_date >= %s")
        params.append(filters.date_from)
    if filters.date_to is not None:
        clauses.append("a.attendance_date <= %s")
        params.append(filters.date_to)
    if filters.person_id is not None:
        clauses.append("a.person_id = %s")
        params.append(int(filters.person_id))
    if filters.status is not None:
        clauses.append("a.status = %s")
        params.append(filters.status.value)

    return " AND ".join(clauses), params


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_person_and_date(self, person_id: int, attendance_date: date) -> Optional[AttendanceLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_LOG_COLUMNS}
                FROM attendance_logs a
                WHERE a.person_id=%s AND a.attendance_date=%s
                """,
                (int(person_id), attendance_date),
            )
            r = fetchone(cur)
            return _to_log(r) if r else None

    def claim_punch_in(
        self,
        *,
        person_id: int,
        attendance_date: date,
        punch_in_time: datetime,
        location: Optional[PunchLocation],
        recorded_by: Optional[int],
    ) -> bool:
        lat = location.latitude if location else None
        lng = location.longitude if location else None
        address = location.address if location else None

        # MySQL applies assignments left to right: punch_in_time must be assigned last
        # so every earlier guard still sees the pre-update value.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT INTO attendance_logs(
                    person_id, attendance_date, status, punch_in_time,
                    punch_in_latitude, punch_in_longitude, punch_in_address, recorded_by
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    punch_in_latitude=IF({_PUNCH_IN_OPEN}, VALUES(punch_in_latitude), punch_in_latitude),
                    punch_in_longitude=IF({_PUNCH_IN_OPEN}, VALUES(punch_in_longitude), punch_in_longitude),
                    punch_in_address=IF({_PUNCH_IN_OPEN}, VALUES(punch_in_address), punch_in_address),
                    recorded_by=IF({_PUNCH_IN_OPEN}, VALUES(recorded_by), recorded_by),
                    status=IF({_PUNCH_IN_OPEN}, VALUES(status), status),
                    punch_in_time=IF({_PUNCH_IN_OPEN}, VALUES(punch_in_time), punch_in_time)
                """,
                (
                    int(person_id),
                    attendance_date,
                    AttendanceStatus.PRESENT.value,
                    punch_in_time,
                    lat,
                    lng,
                    address,
                    recorded_by,
                ),
            )
            return cur.rowcount > 0

    def record_punch_out(
        self,
        *,
        attendance_id: int,
        punch_out_time: datetime,
        location: Optional[PunchLocation],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE attendance_logs
                SET punch_out_time=%s, punch_out_latitude=%s, punch_out_longitude=%s, punch_out_address=%s
                WHERE id=%s AND punch_in_time IS NOT NULL AND punch_out_time IS NULL AND {_DAY_OPEN}
                """,
                (
                    punch_out_time,
                    location.latitude if location else None,
                    location.longitude if location else None,
                    location.address if location else None,
                    int(attendance_id),
                ),
            )
            return cur.rowcount > 0

    def upsert_entries(
        self,
        *,
        attendance_date: date,
        entries: Sequence[AttendanceEntry],
        recorded_by: Optional[int],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT INTO attendance_logs(person_id, attendance_date, status, notes, recorded_by)
                VALUES(%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    status=VALUES(status), notes=VALUES(notes), recorded_by=VALUES(recorded_by)
                """,
                [(e.person_id, attendance_date, e.status.value, e.notes, recorded_by) for e in entries],
            )
            return len(entries)

    def mark_absent_if_unrecorded(
        self,
        *,
        person_ids: Sequence[int],
        attendance_date: date,
        notes: str,
    ) -> Sequence[int]:
        marked: list[int] = []
        with db_cursor(self._conn_factory) as (_, cur):
            for person_id in person_ids:
                cur.execute(
                    f"""
                    INSERT INTO attendance_logs(person_id, attendance_date, status, notes, recorded_by)
                    VALUES(%s,%s,%s,%s,NULL)
                    ON DUPLICATE KEY UPDATE
                        notes=IF({_UNRECORDED}, VALUES(notes), notes),
                        recorded_by=IF({_UNRECORDED}, NULL, recorded_by),
                        status=IF({_UNRECORDED}, VALUES(status), status)
                    """,
                    (int(person_id), attendance_date, AttendanceStatus.ABSENT.value, notes),
                )
                if cur.rowcount > 0:
                    marked.append(int(person_id))
        return marked

    def list_for_date(self, attendance_date: date) -> Sequence[AttendanceLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_LOG_COLUMNS} FROM attendance_logs a WHERE a.attendance_date=%s",
                (attendance_date,),
            )
            return [_to_log(r) for r in fetchall(cur)]

    def count_by_status(self, attendance_date: date) -> Mapping[AttendanceStatus, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT status, COUNT(*) AS n
                FROM attendance_logs
                WHERE attendance_date=%s AND status IS NOT NULL
                GROUP BY status
                """,
                (attendance_date,),
            )
            return {AttendanceStatus(r["status"]): int(r["n"]) for r in fetchall(cur)}

    def search(
        self,
        filters: LogFilters,
        *,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Sequence[AttendanceLogWithPerson]:
        where, params = _filter_clause(filters)
        page_sql = ""
        if limit is not None:
            page_sql = "LIMIT %s OFFSET %s"
            params = params + [int(limit), int(offset or 0)]

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_LOG_COLUMNS}, p.full_name, p.role AS person_role
                FROM attendance_logs a
                JOIN people p ON p.id = a.person_id
                WHERE {where}
                ORDER BY a.attendance_date DESC, a.created_at DESC
                {page_sql}
                """,
                tuple(params),
            )
            return [_to_log_with_person(r) for r in fetchall(cur)]

    def count(self, filters: LogFilters) -> int:
        where, params = _filter_clause(filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS n
                FROM attendance_logs a
                JOIN people p ON p.id = a.person_id
                WHERE {where}
                """,
                tuple(params),
            )
            return int(fetchone(cur)["n"])

    def list_for_person(self, person_id: int, limit: int) -> Sequence[AttendanceLogWithPerson]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_LOG_COLUMNS}, p.full_name, p.role AS person_role
                FROM attendance_logs a
                JOIN people p ON p.id = a.person_id
                WHERE a.person_id=%s
                ORDER BY a.attendance_date DESC
                LIMIT %s
                """,
                (int(person_id), int(limit)),
            )
            return [_to_log_with_person(r) for r in fetchall(cur)]

    def list_punches_for_date(self, attendance_date: date) -> Sequence[AttendanceLogWithPerson]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_LOG_COLUMNS}, p.full_name, p.role AS person_role
                FROM attendance_logs a
                JOIN people p ON p.id = a.person_id
                WHERE a.attendance_date=%s AND a.punch_in_time IS NOT NULL
                ORDER BY a.punch_in_time DESC
                """,
                (attendance_date,),
            )
            return [_to_log_with_person(r) for r in fetchall(cur)]
