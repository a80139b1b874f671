from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Person
from .repository import PersonRepository

_COLUMNS = "id, full_name, role, phone, email, user_id, created_by, created_at"


def _to_person(r: dict) -> Person:
    return Person(
        person_id=int(r["id"]),
        full_name=r["full_name"],
        role=r.get("role"),
        phone=r.get("phone"),
        email=r.get("email"),
        user_id=int(r["user_id"]) if r.get("user_id") is not None else None,
        created_by=r.get("created_by"),
        created_at=r.get("created_at"),
    )


class MySQLPersonRepository(PersonRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _fetch_one(self, where: str, params: tuple) -> Optional[Person]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM people WHERE {where} LIMIT 1", params)
            r = fetchone(cur)
            return _to_person(r) if r else None

    def list_all(self) -> Sequence[Person]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM people ORDER BY full_name ASC")
            return [_to_person(r) for r in fetchall(cur)]

    def list_linked(self) -> Sequence[Person]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM people WHERE user_id IS NOT NULL ORDER BY full_name ASC")
            return [_to_person(r) for r in fetchall(cur)]

    def count(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM people")
            return int(fetchone(cur)["n"])

    def get_by_id(self, person_id: int) -> Optional[Person]:
        return self._fetch_one("id=%s", (int(person_id),))

    def get_by_user_id(self, user_id: int) -> Optional[Person]:
        return self._fetch_one("user_id=%s", (int(user_id),))

    def get_by_email(self, email: str) -> Optional[Person]:
        return self._fetch_one("email=%s", (email,))

    def find_unlinked_by_email(self, email: str) -> Optional[Person]:
        return self._fetch_one("email=%s AND user_id IS NULL", (email,))

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO people(full_name, role, phone, email, user_id, created_by)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (full_name, role, phone, email, user_id, created_by),
            )
            return int(cur.lastrowid)

    def update(
        self,
        person_id: int,
        *,
        full_name: str,
        role: Optional[str],
        phone: Optional[str],
        email: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE people
                SET full_name=%s, role=%s, phone=%s, email=%s
                WHERE id=%s
                """,
                (full_name, role, phone, email, int(person_id)),
            )
            # rowcount is 0 when nothing changed, so confirm existence separately
            if cur.rowcount > 0:
                return True
            cur.execute("SELECT 1 AS found FROM people WHERE id=%s", (int(person_id),))
            return fetchone(cur) is not None

    def set_email(self, person_id: int, email: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE people SET email=%s WHERE id=%s", (email, int(person_id)))
            return cur.rowcount > 0

    def link_user(self, person_id: int, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE people SET user_id=%s WHERE id=%s AND user_id IS NULL",
                (int(user_id), int(person_id)),
            )
            return cur.rowcount > 0

    def delete_by_id(self, person_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM people WHERE id=%s", (int(person_id),))
            return cur.rowcount > 0
