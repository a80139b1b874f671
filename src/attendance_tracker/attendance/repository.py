from __future__ import annotations

from datetime import date, datetime
from typing import Mapping, Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceEntry, AttendanceLog, AttendanceLogWithPerson, LogFilters, PunchLocation


class AttendanceRepository(Protocol):
    """Ledger of attendance rows, unique on (person_id, attendance_date).

    Every write is an upsert on that key; the guarded variants re-check their
    precondition inside the same statement so concurrent callers collapse to one row.
    """

    def get_for_person_and_date(self, person_id: int, attendance_date: date) -> Optional[AttendanceLog]:
        raise NotImplementedError

    def claim_punch_in(
        self,
        *,
        person_id: int,
        attendance_date: date,
        punch_in_time: datetime,
        location: Optional[PunchLocation],
        recorded_by: Optional[int],
    ) -> bool:
        """Set punch-in and status=present unless the row already has a punch-in or is absent/leave.

        Returns False when the guard refused the write.
        """

        raise NotImplementedError

    def record_punch_out(
        self,
        *,
        attendance_id: int,
        punch_out_time: datetime,
        location: Optional[PunchLocation],
    ) -> bool:
        """Set punch-out only on a punched-in row without one whose day is not absent/leave."""

        raise NotImplementedError

    def upsert_entries(
        self,
        *,
        attendance_date: date,
        entries: Sequence[AttendanceEntry],
        recorded_by: Optional[int],
    ) -> int:
        """Admin bulk entry: overwrite status/notes/recorded_by, keep punch data."""

        raise NotImplementedError

    def mark_absent_if_unrecorded(
        self,
        *,
        person_ids: Sequence[int],
        attendance_date: date,
        notes: str,
    ) -> Sequence[int]:
        """Mark absent (recorded_by NULL) every given person whose row is missing or blank.

        Returns the ids actually marked by this call.
        """

        raise NotImplementedError

    def list_for_date(self, attendance_date: date) -> Sequence[AttendanceLog]:
        raise NotImplementedError

    def count_by_status(self, attendance_date: date) -> Mapping[AttendanceStatus, int]:
        raise NotImplementedError

    def search(
        self,
        filters: LogFilters,
        *,
        offset: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Sequence[AttendanceLogWithPerson]:
        """Filtered rows joined with person, newest date first then newest created first."""

        raise NotImplementedError

    def count(self, filters: LogFilters) -> int:
        raise NotImplementedError

    def list_for_person(self, person_id: int, limit: int) -> Sequence[AttendanceLogWithPerson]:
        raise NotImplementedError

    def list_punches_for_date(self, attendance_date: date) -> Sequence[AttendanceLogWithPerson]:
        """Rows with a punch-in on that date, latest punch-in first."""

        raise NotImplementedError
