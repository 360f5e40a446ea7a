from __future__ import annotations

from datetime import date, datetime
from typing import Dict, Optional, Protocol

from ..common.pagination import Page, PageRequest
from ..core.enums import LeaveStatus
from .model import LeaveListRow, LeaveRequest


class LeaveRepository(Protocol):
    def create(
        self,
        *,
        user_id: int,
        from_date: date,
        to_date: date,
        total_days: int,
        reason: str,
        paid_days: float,
        unpaid_days: float,
        created_at: datetime,
    ) -> LeaveRequest:
        raise NotImplementedError

    def get_by_id(self, leave_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def get_for_update(self, leave_id: int) -> Optional[LeaveRequest]:
        """Read the row and hold its lock until the surrounding transaction ends."""

        raise NotImplementedError

    def find_overlapping(self, user_id: int, from_date: date, to_date: date) -> Optional[LeaveRequest]:
        """First non-REJECTED request of the user intersecting [from_date, to_date]."""

        raise NotImplementedError

    def decide(
        self,
        *,
        leave_id: int,
        status: LeaveStatus,
        decided_by: int,
        decided_at: datetime,
        rejection_reason: Optional[str] = None,
        paid_days: Optional[float] = None,
        unpaid_days: Optional[float] = None,
    ) -> bool:
        """Move a PENDING request to a terminal status. False if it was not PENDING."""

        raise NotImplementedError

    def delete_pending(self, leave_id: int) -> bool:
        raise NotImplementedError

    def page(
        self,
        page: PageRequest,
        *,
        status: Optional[LeaveStatus] = None,
        department: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> Page[LeaveListRow]:
        raise NotImplementedError

    def status_counts(self, user_id: int) -> Dict[LeaveStatus, int]:
        raise NotImplementedError

    def sum_approved_days(self, user_id: int, start_date: date, end_date: date) -> float:
        """Total days of APPROVED requests whose from_date falls in the range."""

        raise NotImplementedError
