from __future__ import annotations

import csv
import io
from datetime import datetime
from typing import Iterable, Optional

from .model import AttendanceLogWithPerson

CSV_HEADER = [
    "Date",
    "Person",
    "Role",
    "Status",
    "Punch In",
    "In Location",
    "Punch Out",
    "Out Location",
    "Notes",
    "Recorded At",
]


def _time(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else ""


def log_to_row(log: AttendanceLogWithPerson) -> list[str]:
    return [
        log.attendance_date.isoformat(),
        log.full_name or "",
        log.person_role or "",
        log.status.value if log.status else "",
        _time(log.punch_in_time),
        log.punch_in_map_url or "",
        _time(log.punch_out_time),
        log.punch_out_map_url or "",
        log.notes or "",
        _time(log.created_at),
    ]


def logs_to_csv(logs: Iterable[AttendanceLogWithPerson]) -> str:
    """Render logs as CSV text; every cell quoted, embedded quotes doubled."""
    out = io.StringIO()
    writer = csv.writer(out, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for log in logs:
        writer.writerow(log_to_row(log))
    return out.getvalue()
