from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Account:
    """A login credential held by the auth store.

    Note: plain data object; no database access here.
    """

    account_id: int
    email: str
    password_hash: str
    email_confirmed: bool = True
    full_name: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class SessionAccount:
    """What we store into the Flask session after login."""

    account_id: int
    email: str
