from __future__ import annotations

from typing import Optional, Protocol

from ..core.enums import Role
from .model import Account


class AccountRepository(Protocol):
    """Credential store. Deleting an account removes its role row and unlinks its person."""

    def get_by_id(self, account_id: int) -> Optional[Account]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[Account]:
        raise NotImplementedError

    def create_account(
        self,
        *,
        email: str,
        password_hash: str,
        email_confirmed: bool,
        full_name: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def update_password_hash(self, account_id: int, password_hash: str) -> bool:
        raise NotImplementedError

    def delete_by_id(self, account_id: int) -> bool:
        raise NotImplementedError


class RoleRepository(Protocol):
    def get_role(self, user_id: int) -> Optional[Role]:
        """Stored role, or None when the account has no role row."""

        raise NotImplementedError

    def set_role(self, user_id: int, role: Role) -> None:
        raise NotImplementedError
