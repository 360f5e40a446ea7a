from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..common.pagination import Page, PageRequest
from ..core.enums import AttendanceStatus
from .model import AttendanceListRow, AttendanceRecord


class AttendanceRepository(Protocol):
    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create_checkin(self, *, user_id: int, work_date: date, check_in_time: datetime) -> AttendanceRecord:
        """Insert the day's record.

        Raises AlreadyCheckedIn when (user_id, work_date) already exists,
        including when a concurrent caller inserted it first.
        """

        raise NotImplementedError

    def update_checkout(
        self,
        *,
        attendance_id: int,
        check_out_time: datetime,
        work_hours: float,
        status: AttendanceStatus,
    ) -> bool:
        """Close an open record. Returns False when it was already closed."""

        raise NotImplementedError

    def get_for_user_between(self, user_id: int, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def page_for_user(
        self,
        user_id: int,
        page: PageRequest,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Page[AttendanceRecord]:
        raise NotImplementedError

    def page_all(
        self,
        page: PageRequest,
        *,
        work_date: Optional[date] = None,
        department: Optional[str] = None,
        status: Optional[AttendanceStatus] = None,
    ) -> Page[AttendanceListRow]:
        raise NotImplementedError
