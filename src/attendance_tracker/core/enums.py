from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Account role used for authorization. No stored role means MEMBER."""

    ADMIN = "admin"
    MEMBER = "member"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LEAVE = "leave"
    HALF_DAY = "half-day"


class LeaveType(str, Enum):
    SICK = "sick"
    CASUAL = "casual"
    ANNUAL = "annual"
    EMERGENCY = "emergency"
    OTHER = "other"


class LeaveStatus(str, Enum):
    """Leave request lifecycle. PENDING is the only cancellable/reviewable state."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
