from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from werkzeug.security import generate_password_hash

from ..common.validators import optional_text, require_min_length, require_non_empty, text_value
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..identity.repository import AccountRepository, RoleRepository
from .model import Person
from .repository import PersonRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PersonFields:
    """Editable person attributes as submitted by the admin form."""

    full_name: str
    role: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: dict) -> "PersonFields":
        return cls(
            full_name=data.get("full_name") or "",
            role=data.get("role"),
            phone=data.get("phone"),
            email=data.get("email"),
        )

    def cleaned(self) -> "PersonFields":
        return PersonFields(
            full_name=require_non_empty(self.full_name, "Full name"),
            role=optional_text(self.role),
            phone=optional_text(self.phone),
            email=optional_text(self.email),
        )


class PersonService:
    """Use case: manage the people directory (admin)."""

    def __init__(self, people: PersonRepository, accounts: AccountRepository, roles: RoleRepository):
        self._people = people
        self._accounts = accounts
        self._roles = roles

    @staticmethod
    def _require_admin(current_role: Role) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Admin access required")

    def list_people(self) -> Sequence[Person]:
        return self._people.list_all()

    def get_person(self, person_id: int) -> Person:
        person = self._people.get_by_id(int(person_id))
        if not person:
            raise NotFoundError("Person not found")
        return person

    def create_person(
        self,
        *,
        current_role: Role,
        created_by: int,
        fields: PersonFields,
        password: Optional[str] = None,
    ) -> Person:
        """Create a person, optionally provisioning a member login for its email.

        Account provisioning and the person insert form one logical unit: if anything
        after the account insert fails, the account is deleted again before re-raising.
        """
        self._require_admin(current_role)
        fields = fields.cleaned()
        password = text_value(password, "Password") or None

        if not (fields.email and password):
            person_id = self._people.create(
                full_name=fields.full_name,
                role=fields.role,
                phone=fields.phone,
                email=fields.email,
                user_id=None,
                created_by=created_by,
            )
            return self.get_person(person_id)

        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        if self._accounts.get_by_email(fields.email):
            raise ValidationError("Failed to create account: email is already registered")

        account_id = self._accounts.create_account(
            email=fields.email,
            password_hash=generate_password_hash(password),
            email_confirmed=True,
            full_name=fields.full_name,
        )
        try:
            self._roles.set_role(account_id, Role.MEMBER)
            person_id = self._people.create(
                full_name=fields.full_name,
                role=fields.role,
                phone=fields.phone,
                email=fields.email,
                user_id=account_id,
                created_by=created_by,
            )
        except Exception:
            logger.warning("Person insert failed; removing provisioned account %s", account_id)
            self._accounts.delete_by_id(account_id)
            raise

        return self.get_person(person_id)

    def update_person(self, *, current_role: Role, person_id: int, fields: PersonFields) -> Person:
        self._require_admin(current_role)
        fields = fields.cleaned()

        if not self._people.update(
            int(person_id),
            full_name=fields.full_name,
            role=fields.role,
            phone=fields.phone,
            email=fields.email,
        ):
            raise NotFoundError("Person not found")
        return self.get_person(person_id)

    def delete_person(self, *, current_role: Role, person_id: int) -> None:
        self._require_admin(current_role)
        if not self._people.delete_by_id(int(person_id)):
            raise NotFoundError("Person not found")

    def link_email(self, *, current_role: Role, person_id: int, email: str) -> Person:
        """Record the email the person will sign in with; linking itself happens on their next login."""
        if current_role != Role.ADMIN:
            raise AuthorizationError("Only admins can link accounts")

        email = require_non_empty(email, "Email")
        self.get_person(person_id)

        other = self._people.get_by_email(email)
        if other and other.person_id != int(person_id):
            raise ValidationError("This email is already linked to another person")

        self._people.set_email(int(person_id), email)
        return self.get_person(person_id)
