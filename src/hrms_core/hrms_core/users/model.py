from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: employee.

    Note: plain data object, no DB access. Only leave approval mutates
    leave_balance; everything else is owned by the user admin tooling.
    """

    user_id: int
    full_name: str
    email: str
    role: Role
    department: Optional[str]
    base_salary: float
    leave_balance: float
    is_active: bool = True
