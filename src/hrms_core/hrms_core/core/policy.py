from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .enums import Role
from .exceptions import Forbidden


@dataclass(frozen=True)
class Caller:
    """Already-authenticated identity handed in by the boundary layer."""

    user_id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def authorize(caller_role: Role, required_role: Role) -> None:
    """Raise Forbidden unless the caller holds the required role.

    Admins satisfy every requirement.
    """
    if caller_role == Role.ADMIN or caller_role == required_role:
        return
    raise Forbidden(f"Role '{required_role.value}' required")


def scoped_user_id(caller: Caller, requested_user_id: Optional[int] = None) -> Optional[int]:
    """Employees only ever see their own rows; admins may filter freely."""
    if caller.is_admin:
        return requested_user_id
    return caller.user_id


def scoped_department(caller: Caller, department: Optional[str]) -> Optional[str]:
    return department if caller.is_admin else None
