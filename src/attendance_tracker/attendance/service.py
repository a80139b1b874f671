from __future__ import annotations

import logging
import math
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from ..core.constants import DEFAULT_MY_LOGS_LIMIT, DEFAULT_PERSON_LOGS_LIMIT
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import (
    AlreadyMarked,
    AlreadyPunchedIn,
    AlreadyPunchedOut,
    AuthorizationError,
    NoPunchInYet,
    NotFoundError,
    ValidationError,
)
from ..common.datetime_utils import now_local
from ..identity.service import IdentityService
from ..people.repository import PersonRepository
from .export import logs_to_csv
from .model import (
    AttendanceEntry,
    AttendanceLog,
    AttendanceLogWithPerson,
    AttendanceSheetRow,
    DashboardStats,
    LogFilters,
    LogPage,
    PunchLocation,
    TodayPunch,
    TodayPunchStatus,
)
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

# Member actions cannot reopen a day closed by an admin, a leave approval or the absence marker.
_CLOSED_STATUSES = (AttendanceStatus.ABSENT, AttendanceStatus.LEAVE)


def _require_admin(current_role: Role) -> None:
    if current_role != Role.ADMIN:
        raise AuthorizationError("Admin access required")


class AttendanceService:
    """Use cases over the attendance ledger: member punches and admin record keeping."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        people: PersonRepository,
        identity: IdentityService,
    ):
        self._attendance = attendance
        self._people = people
        self._identity = identity

    def _punch_in_refusal(self, existing: Optional[AttendanceLog]) -> Optional[Exception]:
        if existing is None:
            return None
        if existing.punch_in_time is not None:
            return AlreadyPunchedIn("You have already punched in today")
        if existing.status in _CLOSED_STATUSES:
            return AlreadyMarked(f"Today is already marked as {existing.status.value}")
        return None

    def punch_in(
        self,
        account_id: int,
        location: Optional[PunchLocation] = None,
        *,
        now: Optional[datetime] = None,
    ) -> AttendanceLog:
        now = now or now_local()
        today = now.date()
        person = self._identity.resolve_person_for_account(account_id)

        refusal = self._punch_in_refusal(self._attendance.get_for_person_and_date(person.person_id, today))
        if refusal:
            raise refusal

        claimed = self._attendance.claim_punch_in(
            person_id=person.person_id,
            attendance_date=today,
            punch_in_time=now,
            location=location,
            recorded_by=account_id,
        )
        current = self._attendance.get_for_person_and_date(person.person_id, today)
        if not claimed:
            # Another writer got there between the read and the upsert.
            raise self._punch_in_refusal(current) or AlreadyPunchedIn("You have already punched in today")

        logger.info("Person %s punched in at %s", person.person_id, now.isoformat())
        return current

    def punch_out(
        self,
        account_id: int,
        location: Optional[PunchLocation] = None,
        *,
        now: Optional[datetime] = None,
    ) -> AttendanceLog:
        now = now or now_local()
        today = now.date()
        person = self._identity.resolve_person_for_account(account_id)

        existing = self._attendance.get_for_person_and_date(person.person_id, today)
        if existing is None or existing.punch_in_time is None:
            raise NoPunchInYet("You need to punch in first")
        if existing.punch_out_time is not None:
            raise AlreadyPunchedOut("You have already punched out today")
        if existing.status in _CLOSED_STATUSES:
            raise AlreadyMarked(f"Today is already marked as {existing.status.value}")

        if not self._attendance.record_punch_out(
            attendance_id=existing.attendance_id,
            punch_out_time=now,
            location=location,
        ):
            current = self._attendance.get_for_person_and_date(person.person_id, today)
            if current is not None and current.status in _CLOSED_STATUSES:
                raise AlreadyMarked(f"Today is already marked as {current.status.value}")
            raise AlreadyPunchedOut("You have already punched out today")

        logger.info("Person %s punched out at %s", person.person_id, now.isoformat())
        return self._attendance.get_for_person_and_date(person.person_id, today)

    def get_today_status(self, account_id: int, *, now: Optional[datetime] = None) -> TodayPunchStatus:
        today = (now or now_local()).date()
        person = self._identity.resolve_person_for_account(account_id)
        row = self._attendance.get_for_person_and_date(person.person_id, today)
        if row is None:
            return TodayPunchStatus(
                has_punched_in=False,
                has_punched_out=False,
                punch_in_time=None,
                punch_out_time=None,
                status=None,
                attendance_id=None,
            )
        return TodayPunchStatus(
            has_punched_in=row.punch_in_time is not None,
            has_punched_out=row.punch_out_time is not None,
            punch_in_time=row.punch_in_time,
            punch_out_time=row.punch_out_time,
            status=row.status,
            attendance_id=row.attendance_id,
        )

    def bulk_upsert_attendance(
        self,
        *,
        current_role: Role,
        attendance_date: date,
        records: Iterable[dict],
        recorded_by: int,
    ) -> int:
        _require_admin(current_role)
        entries = [AttendanceEntry.from_mapping(r) for r in (records or [])]
        if not entries:
            raise ValidationError("No attendance records to save")

        known = {p.person_id for p in self._people.list_all()}
        unknown = sorted({e.person_id for e in entries} - known)
        if unknown:
            raise NotFoundError(f"Person not found: {unknown[0]}")

        saved = self._attendance.upsert_entries(
            attendance_date=attendance_date,
            entries=entries,
            recorded_by=recorded_by,
        )
        logger.info("Saved %s attendance rows for %s by account %s", saved, attendance_date, recorded_by)
        return saved

    def attendance_for_date(self, *, current_role: Role, attendance_date: date) -> list[AttendanceSheetRow]:
        _require_admin(current_role)
        by_person = {row.person_id: row for row in self._attendance.list_for_date(attendance_date)}

        sheet = []
        for person in self._people.list_all():
            row = by_person.get(person.person_id)
            sheet.append(
                AttendanceSheetRow(
                    person_id=person.person_id,
                    full_name=person.full_name,
                    role=person.role,
                    status=row.status if row else None,
                    notes=row.notes if row else None,
                    existing_id=row.attendance_id if row else None,
                )
            )
        return sheet

    def list_logs(self, *, current_role: Role, filters: LogFilters) -> LogPage:
        _require_admin(current_role)
        total = self._attendance.count(filters)
        records = self._attendance.search(filters, offset=filters.offset, limit=filters.limit)
        return LogPage(
            records=list(records),
            count=total,
            page=filters.page,
            limit=filters.limit,
            total_pages=math.ceil(total / filters.limit) if total else 0,
        )

    def list_all_filtered(self, *, current_role: Role, filters: LogFilters) -> Sequence[AttendanceLogWithPerson]:
        _require_admin(current_role)
        return self._attendance.search(filters)

    def export_csv(self, *, current_role: Role, filters: LogFilters) -> str:
        return logs_to_csv(self.list_all_filtered(current_role=current_role, filters=filters))

    def my_logs(self, account_id: int, limit: int = DEFAULT_MY_LOGS_LIMIT) -> Sequence[AttendanceLogWithPerson]:
        person = self._identity.resolve_person_for_account(account_id)
        return self._attendance.list_for_person(person.person_id, limit)

    def person_logs(
        self,
        *,
        current_role: Role,
        person_id: int,
        limit: int = DEFAULT_PERSON_LOGS_LIMIT,
    ) -> Sequence[AttendanceLogWithPerson]:
        _require_admin(current_role)
        if not self._people.get_by_id(int(person_id)):
            raise NotFoundError("Person not found")
        return self._attendance.list_for_person(int(person_id), limit)

    def dashboard_stats(self, *, now: Optional[datetime] = None) -> DashboardStats:
        today = (now or now_local()).date()
        total = self._people.count()
        counts = self._attendance.count_by_status(today)
        present = counts.get(AttendanceStatus.PRESENT, 0)
        absent = counts.get(AttendanceStatus.ABSENT, 0)

        pending = total - present - absent
        if pending < 0:
            logger.warning(
                "Attendance rows exceed people on %s (people=%s present=%s absent=%s)",
                today,
                total,
                present,
                absent,
            )
        return DashboardStats(
            total_people=total,
            today_present=present,
            today_absent=absent,
            today_pending=pending,
        )

    def today_attendance_with_location(self, *, now: Optional[datetime] = None) -> list[TodayPunch]:
        today = (now or now_local()).date()
        return [
            TodayPunch(
                attendance_id=row.attendance_id,
                person_id=row.person_id,
                full_name=row.full_name,
                person_role=row.person_role,
                status=row.status,
                punch_in_time=row.punch_in_time,
                punch_out_time=row.punch_out_time,
                punch_in_address=row.punch_in_address,
                punch_out_address=row.punch_out_address,
                punch_in_map_url=row.punch_in_map_url,
                punch_out_map_url=row.punch_out_map_url,
            )
            for row in self._attendance.list_punches_for_date(today)
        ]
