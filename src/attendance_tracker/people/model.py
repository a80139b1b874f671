from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Person:
    """Domain entity: an employee record, distinct from the login account linked to it."""

    person_id: int
    full_name: str
    role: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    user_id: Optional[int] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def is_linked(self) -> bool:
        return self.user_id is not None
