from __future__ import annotations

import logging
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_min_length, require_non_empty, text_value
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    NotLinkedError,
    UnauthenticatedError,
    ValidationError,
)
from ..people.model import Person
from ..people.repository import PersonRepository
from .model import SessionAccount
from .repository import AccountRepository, RoleRepository

logger = logging.getLogger(__name__)

NOT_LINKED_MESSAGE = "Your account is not linked to a person profile. Contact admin."


def _credentials(email, password) -> tuple[str, str]:
    email = text_value(email, "Email")
    if not email or not password:
        raise ValidationError("Email and password are required")
    if not isinstance(password, str):
        raise ValidationError("Password must be text")
    return email, password


class AuthService:
    """Use case: login, sign-up and password change against the credential store."""

    def __init__(self, accounts: AccountRepository):
        self._accounts = accounts

    def authenticate(self, email: str, password: str) -> SessionAccount:
        email, password = _credentials(email, password)

        account = self._accounts.get_by_email(email)
        if not account:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(account.password_hash, password)
        except ValueError:
            # e.g. placeholder hashes or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")
        if not account.email_confirmed:
            raise AuthenticationError("Email address is not confirmed")

        return SessionAccount(account_id=account.account_id, email=account.email)

    def sign_up(self, email: str, password: str) -> int:
        email, password = _credentials(email, password)
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        if self._accounts.get_by_email(email):
            raise ValidationError("An account with this email already exists")

        # No verification step is available, so new accounts are confirmed on creation.
        return self._accounts.create_account(
            email=email,
            password_hash=generate_password_hash(password),
            email_confirmed=True,
        )

    def change_password(self, account_id: int, current_password: str, new_password: str) -> None:
        account = self._accounts.get_by_id(account_id)
        if not account:
            raise UnauthenticatedError("Not authenticated")

        require_min_length(new_password, "New password", MIN_PASSWORD_LENGTH)

        try:
            self.authenticate(account.email, current_password)
        except (AuthenticationError, ValidationError):
            raise ValidationError("Current password is incorrect")

        if not self._accounts.update_password_hash(account_id, generate_password_hash(new_password)):
            raise NotFoundError("Account not found")


class IdentityService:
    """Maps an authenticated account to its role and to its Person profile."""

    def __init__(self, roles: RoleRepository, people: PersonRepository, accounts: AccountRepository):
        self._roles = roles
        self._people = people
        self._accounts = accounts

    def resolve_role(self, account_id: int) -> Role:
        role = self._roles.get_role(account_id)
        if role is None:
            return Role.MEMBER
        return role

    def resolve_person_for_account(self, account_id: int) -> Person:
        person = self._people.get_by_user_id(account_id)
        if not person:
            raise NotLinkedError(NOT_LINKED_MESSAGE)
        return person

    def auto_link_on_authenticate(self, account_id: int, account_email: Optional[str]) -> Optional[Person]:
        """Post-login hook: attach the unlinked person whose email matches the account.

        Never raises; a failed link must not fail the login that triggered it.
        """
        try:
            if not account_email:
                return None
            if self._people.get_by_user_id(account_id):
                return None

            person = self._people.find_unlinked_by_email(account_email)
            if not person:
                return None

            if self._people.link_user(person.person_id, account_id):
                logger.info("Linked person %s to account %s", person.person_id, account_id)
                return self._people.get_by_id(person.person_id)
            return None
        except Exception:
            logger.exception("Auto-link failed for account %s", account_id)
            return None

    def set_user_role(self, *, current_role: Role, account_id: int, role: Role) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admins can set user roles")
        if not self._accounts.get_by_id(account_id):
            raise NotFoundError("Account not found")
        self._roles.set_role(account_id, role)

    def describe(self, account_id: int) -> dict:
        """Session summary: account, role and linked person (if any)."""
        account = self._accounts.get_by_id(account_id)
        if not account:
            raise UnauthenticatedError("Not authenticated")
        person = self._people.get_by_user_id(account_id)
        return {
            "account_id": account.account_id,
            "email": account.email,
            "role": self.resolve_role(account_id),
            "person": (
                {"person_id": person.person_id, "full_name": person.full_name, "email": person.email}
                if person
                else None
            ),
        }


def parse_role(value: Optional[str]) -> Role:
    try:
        return Role(require_non_empty(value, "Role").lower())
    except ValueError:
        raise ValidationError("Role must be 'admin' or 'member'")
