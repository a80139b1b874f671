from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_local
from ..core.constants import AUTO_ABSENT_CUTOFF_HOUR, AUTO_ABSENT_NOTE
from ..people.repository import PersonRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AutoAbsentResult:
    marked_absent: int
    message: str
    executed_at: datetime
    members: list = field(default_factory=list)


class AutoAbsentService:
    """Marks linked people absent once the cutoff hour has passed without a punch or status.

    Safe to call repeatedly: the ledger only writes rows that are still blank.
    """

    def __init__(
        self,
        people: PersonRepository,
        attendance: AttendanceRepository,
        *,
        cutoff_hour: int = AUTO_ABSENT_CUTOFF_HOUR,
    ):
        self._people = people
        self._attendance = attendance
        self._cutoff_hour = int(cutoff_hour)

    def run_auto_absent(self, *, now: Optional[datetime] = None) -> AutoAbsentResult:
        now = now or now_local()

        if now.hour < self._cutoff_hour:
            return AutoAbsentResult(
                marked_absent=0,
                message=f"Skipped: runs after {self._cutoff_hour:02d}:00",
                executed_at=now,
            )

        linked = self._people.list_linked()
        if not linked:
            return AutoAbsentResult(marked_absent=0, message="No linked people", executed_at=now)

        names = {p.person_id: p.full_name for p in linked}
        marked = self._attendance.mark_absent_if_unrecorded(
            person_ids=list(names),
            attendance_date=now.date(),
            notes=AUTO_ABSENT_NOTE,
        )
        members = [names[pid] for pid in marked]

        logger.info("Auto-absent for %s: marked %s of %s linked people", now.date(), len(marked), len(names))
        return AutoAbsentResult(
            marked_absent=len(marked),
            members=members,
            message=f"Marked {len(marked)} people absent",
            executed_at=now,
        )
