from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import LeaveStatus
from ..users.model import User


@dataclass(frozen=True)
class LeaveRequest:
    leave_id: int
    user_id: int
    from_date: date
    to_date: date
    total_days: int
    reason: str
    paid_days: float
    unpaid_days: float
    status: LeaveStatus
    created_at: datetime
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    def overlaps(self, from_date: date, to_date: date) -> bool:
        return self.from_date <= to_date and self.to_date >= from_date


@dataclass(frozen=True)
class LeaveListRow:
    """Read-model for listings (joined with requester and approver)."""

    leave: LeaveRequest
    full_name: str
    email: str
    department: Optional[str]
    approver_name: Optional[str] = None


@dataclass(frozen=True)
class LeaveBalance:
    user: User
    current_balance: float
    total_leaves: int
    approved_leaves: int
    pending_leaves: int
    rejected_leaves: int
    total_approved_days_this_year: float
