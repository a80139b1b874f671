from __future__ import annotations

from typing import Optional

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Account
from .repository import AccountRepository, RoleRepository


class MySQLAccountRepository(AccountRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _fetch_one(self, where: str, params: tuple) -> Optional[Account]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT account_id, email, password_hash, email_confirmed, full_name, created_at
                FROM accounts
                WHERE {where}
                """,
                params,
            )
            r = fetchone(cur)
            if not r:
                return None
            return Account(
                account_id=int(r["account_id"]),
                email=r["email"],
                password_hash=r["password_hash"],
                email_confirmed=bool(r.get("email_confirmed")),
                full_name=r.get("full_name"),
                created_at=r.get("created_at"),
            )

    def get_by_id(self, account_id: int) -> Optional[Account]:
        return self._fetch_one("account_id=%s", (int(account_id),))

    def get_by_email(self, email: str) -> Optional[Account]:
        return self._fetch_one("email=%s", (email,))

    def create_account(
        self,
        *,
        email: str,
        password_hash: str,
        email_confirmed: bool,
        full_name: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO accounts(email, password_hash, email_confirmed, full_name)
                VALUES(%s,%s,%s,%s)
                """,
                (email, password_hash, int(bool(email_confirmed)), full_name),
            )
            return int(cur.lastrowid)

    def update_password_hash(self, account_id: int, password_hash: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE accounts SET password_hash=%s WHERE account_id=%s",
                (password_hash, int(account_id)),
            )
            return cur.rowcount > 0

    def delete_by_id(self, account_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM accounts WHERE account_id=%s", (int(account_id),))
            return cur.rowcount > 0


class MySQLRoleRepository(RoleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_role(self, user_id: int) -> Optional[Role]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT role FROM user_roles WHERE user_id=%s", (int(user_id),))
            r = fetchone(cur)
            return Role(r["role"]) if r else None

    def set_role(self, user_id: int, role: Role) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO user_roles(user_id, role) VALUES(%s,%s)
                ON DUPLICATE KEY UPDATE role=VALUES(role)
                """,
                (int(user_id), role.value),
            )
