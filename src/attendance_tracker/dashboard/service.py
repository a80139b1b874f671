from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..attendance.service import AttendanceService
from ..core.enums import LeaveStatus, Role
from ..core.exceptions import NotLinkedError
from ..identity.service import IdentityService
from ..leave.repository import LeaveRepository
from ..leave.service import LeaveService


class DashboardService:
    """Read-only landing view, shaped by the caller's role."""

    def __init__(
        self,
        attendance: AttendanceService,
        leave: LeaveService,
        leaves: LeaveRepository,
        identity: IdentityService,
    ):
        self._attendance = attendance
        self._leave = leave
        self._leaves = leaves
        self._identity = identity

    def admin_view(self, *, now: Optional[datetime] = None) -> dict:
        return {
            "role": Role.ADMIN,
            "stats": self._attendance.dashboard_stats(now=now),
            "today_punches": self._attendance.today_attendance_with_location(now=now),
            "pending_leaves": self._leaves.list_all(status=LeaveStatus.PENDING),
        }

    def member_view(self, account_id: int, *, now: Optional[datetime] = None) -> dict:
        try:
            person = self._identity.resolve_person_for_account(account_id)
        except NotLinkedError as e:
            # Unlinked members still get a page; it only carries the hint.
            return {"role": Role.MEMBER, "person": None, "message": str(e)}

        return {
            "role": Role.MEMBER,
            "person": person,
            "today": self._attendance.get_today_status(account_id, now=now),
            "recent_logs": self._attendance.my_logs(account_id),
            "leaves": self._leave.list_mine(account_id),
        }

    def for_account(self, account_id: int, role: Role, *, now: Optional[datetime] = None) -> dict:
        if role == Role.ADMIN:
            return self.admin_view(now=now)
        return self.member_view(account_id, now=now)
