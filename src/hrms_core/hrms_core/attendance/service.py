from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Optional

from ..common.datetime_utils import days_in_month, month_bounds, now_local, require_month_number, to_local_naive
from ..common.numbers import round2
from ..common.pagination import Page, PageRequest
from ..core.constants import HALF_DAY_WEIGHT
from ..core.enums import AttendanceStatus
from ..core.exceptions import AlreadyCheckedIn, AlreadyCheckedOut, InvalidTimeOrder, NoCheckInFound, UserNotFound
from ..payroll.calculator.base import SalaryCalculator
from ..payroll.calculator.standard_calculator import StandardSalaryCalculator
from ..users.repository import UserRepository
from .factory import AttendanceStrategyFactory
from .model import AttendanceListRow, AttendanceRecord, AttendanceSummary
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceTracker:
    """Per-user, per-day attendance state machine.

    A record is created open on check-in and closed exactly once on
    check-out, which is when its status is derived.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
        calculator: SalaryCalculator | None = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._attendance = attendance
        self._users = users
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._calculator = calculator or StandardSalaryCalculator()
        self._clock = clock

    def _today(self) -> date:
        return self._clock().date()

    def check_in(self, user_id: int, *, at: datetime | None = None) -> AttendanceRecord:
        today = self._today()
        check_in_time = to_local_naive(at) or self._clock()

        if not self._users.get_by_id(user_id):
            raise UserNotFound("User not found")

        if self._attendance.get_for_user_and_date(user_id, today):
            raise AlreadyCheckedIn("Already checked in for today")

        # The unique (user_id, work_date) key settles concurrent check-ins.
        record = self._attendance.create_checkin(user_id=user_id, work_date=today, check_in_time=check_in_time)
        logger.info(f"User {user_id} checked in for {today} at {check_in_time:%H:%M:%S}")
        return record

    def check_out(self, user_id: int, *, at: datetime | None = None) -> AttendanceRecord:
        today = self._today()
        check_out_time = to_local_naive(at) or self._clock()

        record = self._attendance.get_for_user_and_date(user_id, today)
        if not record:
            raise NoCheckInFound("No check-in record found for today")
        if record.check_out_time is not None:
            raise AlreadyCheckedOut("Already checked out for today")
        if check_out_time <= record.check_in_time:
            raise InvalidTimeOrder("Check-out time must be after check-in time")

        hours = (check_out_time - record.check_in_time).total_seconds() / 3600
        strategy = self._factory.for_checkout(work_hours=hours)
        decision = strategy.decide_checkout(work_hours=hours)
        work_hours = round2(hours)

        closed = self._attendance.update_checkout(
            attendance_id=record.attendance_id,
            check_out_time=check_out_time,
            work_hours=work_hours,
            status=decision.status,
        )
        if not closed:
            raise AlreadyCheckedOut("Already checked out for today")

        logger.info(f"User {user_id} checked out for {today}: {work_hours}h -> {decision.status.value}")
        return AttendanceRecord(
            attendance_id=record.attendance_id,
            user_id=record.user_id,
            work_date=record.work_date,
            check_in_time=record.check_in_time,
            check_out_time=check_out_time,
            work_hours=work_hours,
            status=decision.status,
        )

    def get_today_attendance(self, user_id: int) -> Optional[AttendanceRecord]:
        return self._attendance.get_for_user_and_date(user_id, self._today())

    def get_attendance_history(
        self,
        user_id: int,
        *,
        page: int | None = None,
        limit: int | None = None,
        month: int | str | None = None,
        year: int | None = None,
    ) -> Page[AttendanceRecord]:
        request = PageRequest.of(page, limit)
        start_date = end_date = None
        if month and year:
            start_date, end_date = month_bounds(int(year), require_month_number(month))
        return self._attendance.page_for_user(user_id, request, start_date=start_date, end_date=end_date)

    def get_attendance_summary(self, user_id: int, month: int | str, year: int) -> AttendanceSummary:
        month_num = require_month_number(month)
        start_date, end_date = month_bounds(int(year), month_num)

        records = list(self._attendance.get_for_user_between(user_id, start_date, end_date))

        user = self._users.get_by_id(user_id)
        if not user:
            raise UserNotFound("User not found")

        present_days = sum(1 for r in records if r.status == AttendanceStatus.PRESENT)
        half_days = sum(1 for r in records if r.status == AttendanceStatus.HALF_DAY)
        absent_days = sum(1 for r in records if r.status == AttendanceStatus.ABSENT)
        total_work_hours = sum(r.work_hours for r in records)

        working_days = days_in_month(int(year), month_num)
        percentage = (present_days + HALF_DAY_WEIGHT * half_days) / working_days * 100 if working_days > 0 else 0

        salary = self._calculator.compute(
            base_salary=user.base_salary,
            working_days=working_days,
            half_days=half_days,
            absent_days=absent_days,
        )

        return AttendanceSummary(
            user=user,
            month=month_num,
            year=int(year),
            working_days=working_days,
            present_days=present_days,
            half_days=half_days,
            absent_days=absent_days,
            total_work_hours=round2(total_work_hours),
            attendance_percentage=round2(percentage),
            salary=salary,
            records=records,
        )

    def get_all_attendance(
        self,
        *,
        page: int | None = None,
        limit: int | None = None,
        work_date: date | None = None,
        department: str | None = None,
        status: AttendanceStatus | None = None,
    ) -> Page[AttendanceListRow]:
        return self._attendance.page_all(
            PageRequest.of(page, limit),
            work_date=work_date,
            department=department,
            status=status,
        )
