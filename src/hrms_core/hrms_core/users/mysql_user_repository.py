from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.mysql_base import MySQLRepository, fetchall, fetchone
from .model import User
from .repository import UserRepository

_COLUMNS = "user_id, full_name, email, role, department, base_salary, leave_balance, is_active"


def _to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        full_name=row["full_name"],
        email=row["email"],
        role=Role(row["role"]),
        department=row.get("department"),
        base_salary=float(row.get("base_salary") or 0),
        leave_balance=float(row.get("leave_balance") or 0),
        is_active=bool(row.get("is_active", True)),
    )


class MySQLUserRepository(MySQLRepository, UserRepository):
    def get_by_id(self, user_id: int) -> Optional[User]:
        with self._cursor() as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_for_update(self, user_id: int) -> Optional[User]:
        if not self.in_transaction:
            raise RuntimeError("get_for_update requires a transaction")
        with self._cursor() as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s FOR UPDATE", (int(user_id),))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def list_active(self) -> Sequence[User]:
        with self._cursor() as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE is_active=1 ORDER BY user_id ASC")
            return [_to_user(r) for r in fetchall(cur)]

    def debit_leave_balance(self, user_id: int, days: float) -> bool:
        with self._cursor() as cur:
            cur.execute(
                "UPDATE users SET leave_balance = leave_balance - %s WHERE user_id=%s",
                (float(days), int(user_id)),
            )
            return cur.rowcount > 0
