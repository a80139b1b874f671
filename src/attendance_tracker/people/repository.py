from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Person


class PersonRepository(Protocol):
    """Repository interface for people.

    Note (DIP): services depend on this interface, not on a concrete database.
    Deleting a person must cascade to its attendance and leave rows.
    """

    def list_all(self) -> Sequence[Person]:
        """All people ordered by full_name ascending."""

        raise NotImplementedError

    def list_linked(self) -> Sequence[Person]:
        """People with a linked account."""

        raise NotImplementedError

    def count(self) -> int:
        raise NotImplementedError

    def get_by_id(self, person_id: int) -> Optional[Person]:
        raise NotImplementedError

    def get_by_user_id(self, user_id: int) -> Optional[Person]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[Person]:
        raise NotImplementedError

    def find_unlinked_by_email(self, email: str) -> Optional[Person]:
        raise NotImplementedError

    def create(
        self,
        *,
        full_name: str,
        role: Optional[str],
        phone: Optional[str],
        email: Optional[str],
        user_id: Optional[int],
        created_by: Optional[int],
    ) -> int:
        raise NotImplementedError

    def update(
        self,
        person_id: int,
        *,
        full_name: str,
        role: Optional[str],
        phone: Optional[str],
        email: Optional[str],
    ) -> bool:
        raise NotImplementedError

    def set_email(self, person_id: int, email: str) -> bool:
        raise NotImplementedError

    def link_user(self, person_id: int, user_id: int) -> bool:
        """Attach an account; only succeeds while the person is unlinked."""

        raise NotImplementedError

    def delete_by_id(self, person_id: int) -> bool:
        raise NotImplementedError
