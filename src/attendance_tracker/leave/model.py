from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from ..core.enums import LeaveStatus, LeaveType


@dataclass(frozen=True)
class LeaveRequest:
    request_id: int
    person_id: int
    start_date: date
    end_date: date
    leave_type: LeaveType
    status: LeaveStatus
    reason: Optional[str] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status == LeaveStatus.PENDING

    def overlaps(self, start: date, end: date) -> bool:
        return self.start_date <= end and self.end_date >= start


@dataclass(frozen=True)
class LeaveRequestWithPerson(LeaveRequest):
    full_name: str = ""
    person_role: Optional[str] = None


@dataclass(frozen=True)
class LeaveStats:
    total: int
    pending: int
    approved: int
    rejected: int
    requests: list = field(default_factory=list)
