from __future__ import annotations

from typing import Optional

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchone, new_id
from .model import Account, UserRole
from .repository import AccountRepository, RoleRepository


class MySQLAccountRepository(AccountRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_account(r: dict) -> Account:
        return Account(
            id=r["id"],
            email=r["email"],
            password_hash=r["password_hash"],
            is_active=as_bool(r.get("is_active")),
            created_at=r.get("created_at"),
        )

    def get(self, account_id: str) -> Optional[Account]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM accounts WHERE id=%s", (account_id,))
            r = fetchone(cur)
            return self._to_account(r) if r else None

    def get_by_email(self, email: str) -> Optional[Account]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM accounts WHERE LOWER(email)=LOWER(%s)", (email,))
            r = fetchone(cur)
            return self._to_account(r) if r else None

    def create(self, *, email: str, password_hash: str) -> str:
        account_id = new_id()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO accounts (id, email, password_hash) VALUES (%s,%s,%s)",
                (account_id, email, password_hash),
            )
        return account_id

    def update_password(self, account_id: str, password_hash: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE accounts SET password_hash=%s WHERE id=%s", (password_hash, account_id))
            return cur.rowcount > 0


class MySQLRoleRepository(RoleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_profile(self, profile_id: str) -> Optional[UserRole]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM user_roles WHERE profile_id=%s LIMIT 1", (profile_id,))
            r = fetchone(cur)
            if not r:
                return None
            return UserRole(id=r["id"], user_id=r.get("user_id"), profile_id=r["profile_id"], role=Role(r["role"]))

    def assign(self, *, profile_id: str, user_id: Optional[str], role: Role) -> None:
        existing = self.get_for_profile(profile_id)
        with db_cursor(self._conn_factory) as (_, cur):
            if existing:
                cur.execute(
                    "UPDATE user_roles SET user_id=COALESCE(%s, user_id), role=%s WHERE id=%s",
                    (user_id, role.value, existing.id),
                )
            else:
                cur.execute(
                    "INSERT INTO user_roles (id, user_id, profile_id, role) VALUES (%s,%s,%s,%s)",
                    (new_id(), user_id, profile_id, role.value),
                )

