from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import date_range, now_local, parse_optional_date
from ..common.validators import optional_text, text_value
from ..core.enums import LeaveStatus, LeaveType, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..identity.service import IdentityService
from ..people.repository import PersonRepository
from .model import LeaveRequest, LeaveRequestWithPerson, LeaveStats
from .repository import LeaveRepository

logger = logging.getLogger(__name__)


def parse_leave_type(value: Optional[str]) -> LeaveType:
    v = text_value(value, "Leave type").lower()
    if not v:
        raise ValidationError("Leave type is required")
    try:
        return LeaveType(v)
    except ValueError:
        allowed = ", ".join(t.value for t in LeaveType)
        raise ValidationError(f"Leave type must be one of: {allowed}")


def parse_decision(value: Optional[str]) -> LeaveStatus:
    v = text_value(value, "Decision").lower()
    if v not in (LeaveStatus.APPROVED.value, LeaveStatus.REJECTED.value):
        raise ValidationError("Decision must be 'approved' or 'rejected'")
    return LeaveStatus(v)


def parse_status_filter(value: Optional[str]) -> Optional[LeaveStatus]:
    v = text_value(value, "Status").lower()
    if not v or v == "all":
        return None
    try:
        return LeaveStatus(v)
    except ValueError:
        raise ValidationError("Status must be one of: all, pending, approved, rejected")


class LeaveService:
    """Leave workflow: members request and cancel, admins review.

    Approving a request turns every day of its range into a ``leave`` attendance row.
    """

    def __init__(self, leaves: LeaveRepository, people: PersonRepository, identity: IdentityService):
        self._leaves = leaves
        self._people = people
        self._identity = identity

    def create_leave_request(
        self,
        account_id: int,
        *,
        start_date: Optional[str],
        end_date: Optional[str],
        leave_type: Optional[str],
        reason: Optional[str] = None,
    ) -> LeaveRequest:
        person = self._identity.resolve_person_for_account(account_id)

        start = parse_optional_date(start_date, "start_date")
        end = parse_optional_date(end_date, "end_date")
        if start is None or end is None or not text_value(leave_type, "Leave type"):
            raise ValidationError("Start date, end date and leave type are required")
        if end < start:
            raise ValidationError("End date must be after or equal to start date")
        kind = parse_leave_type(leave_type)

        request_id = self._leaves.create_unless_overlapping(
            person_id=person.person_id,
            start_date=start,
            end_date=end,
            leave_type=kind,
            reason=optional_text(reason),
        )
        if request_id is None:
            raise ValidationError("You already have a leave request for overlapping dates")
        logger.info("Leave request %s created for person %s (%s..%s)", request_id, person.person_id, start, end)
        return self._leaves.get_by_id(request_id)

    def cancel_leave_request(self, account_id: int, request_id: int) -> None:
        person = self._identity.resolve_person_for_account(account_id)

        request = self._leaves.get_by_id(int(request_id))
        if not request:
            raise NotFoundError("Leave request not found")
        if request.person_id != person.person_id:
            raise AuthorizationError("You can only cancel your own leave requests")
        if not request.is_pending:
            raise ConflictError("You can only cancel pending leave requests")

        if not self._leaves.delete_pending(request.request_id):
            raise ConflictError("You can only cancel pending leave requests")

    def review_leave_request(
        self,
        *,
        current_role: Role,
        reviewer_account_id: int,
        request_id: int,
        decision: Optional[str],
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> LeaveRequest:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")
        status = parse_decision(decision)

        request = self._leaves.get_by_id(int(request_id))
        if not request:
            raise NotFoundError("Leave request not found")
        if not request.is_pending:
            raise ConflictError(f"Leave request has already been {request.status.value}")

        leave_days: list[date] = []
        if status == LeaveStatus.APPROVED:
            leave_days = list(date_range(request.start_date, request.end_date))

        if not self._leaves.decide(
            request_id=request.request_id,
            status=status,
            reviewed_by=reviewer_account_id,
            reviewed_at=now or now_local(),
            review_notes=optional_text(notes),
            leave_days=leave_days,
        ):
            raise ConflictError("Leave request has already been reviewed")

        logger.info(
            "Leave request %s %s by account %s (%s leave days)",
            request.request_id,
            status.value,
            reviewer_account_id,
            len(leave_days),
        )
        return self._leaves.get_by_id(request.request_id)

    def list_mine(self, account_id: int) -> Sequence[LeaveRequestWithPerson]:
        person = self._identity.resolve_person_for_account(account_id)
        return self._leaves.list_for_person(person.person_id)

    def list_all(self, *, current_role: Role, status_filter: Optional[str] = None) -> Sequence[LeaveRequestWithPerson]:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")
        return self._leaves.list_all(status=parse_status_filter(status_filter))

    def person_leave_stats(self, *, current_role: Role, person_id: int) -> LeaveStats:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")
        if not self._people.get_by_id(int(person_id)):
            raise NotFoundError("Person not found")

        requests = list(self._leaves.list_for_person(int(person_id)))
        by_status = {s: 0 for s in LeaveStatus}
        for r in requests:
            by_status[r.status] += 1
        return LeaveStats(
            total=len(requests),
            pending=by_status[LeaveStatus.PENDING],
            approved=by_status[LeaveStatus.APPROVED],
            rejected=by_status[LeaveStatus.REJECTED],
            requests=requests,
        )
