from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import LeaveStatus, LeaveType
from .model import LeaveRequest, LeaveRequestWithPerson


class LeaveRepository(Protocol):
    def create_unless_overlapping(
        self,
        *,
        person_id: int,
        start_date: date,
        end_date: date,
        leave_type: LeaveType,
        reason: Optional[str],
    ) -> Optional[int]:
        """Insert a pending request unless a non-rejected request of the person intersects
        [start_date, end_date]. Returns the new id, or None on overlap.

        The check and the insert form one transaction, serialized per person.
        """

        raise NotImplementedError

    def get_by_id(self, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def delete_pending(self, request_id: int) -> bool:
        raise NotImplementedError

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
        """Review a pending request and, in the same transaction, mark every leave day.

        The status change only applies while the request is still pending; returns False otherwise
        and writes nothing.
        """

        raise NotImplementedError

    def list_for_person(self, person_id: int) -> Sequence[LeaveRequestWithPerson]:
        """Newest first."""

        raise NotImplementedError

    def list_all(self, *, status: Optional[LeaveStatus] = None) -> Sequence[LeaveRequestWithPerson]:
        """Newest first, optionally restricted to one status."""

        raise NotImplementedError
