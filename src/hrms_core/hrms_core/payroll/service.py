from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime
from typing import Callable, Optional

from ..attendance.service import AttendanceTracker
from ..common.datetime_utils import now_local, parse_month_label
from ..common.numbers import round2
from ..common.pagination import Page, PageRequest
from ..core.exceptions import Forbidden, SalaryRecordNotFound, UserNotFound
from ..users.repository import UserRepository
from .calculator.base import SalaryCalculator
from .calculator.standard_calculator import StandardSalaryCalculator
from .model import DepartmentSalaryStats, SalaryListRow, SalaryRecord, SalarySummary
from .repository import SalaryRepository

logger = logging.getLogger(__name__)


class PayrollCalculator:
    """Derives a monthly SalaryRecord from the month's attendance summary.

    Calculation is idempotent per (user, month): once a record exists it is
    returned as stored and never recomputed.
    """

    def __init__(
        self,
        salaries: SalaryRepository,
        users: UserRepository,
        attendance: AttendanceTracker,
        *,
        calculator: Optional[SalaryCalculator] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._salaries = salaries
        self._users = users
        self._attendance = attendance
        self._calculator = calculator or StandardSalaryCalculator()
        self._clock = clock

    def calculate_salary(self, user_id: int, month: str, year: int) -> SalaryRecord:
        month_num = parse_month_label(month, year)

        existing = self._salaries.get_for_user_month(user_id, month)
        if existing:
            logger.debug(f"Salary for user {user_id} {month} already processed (id={existing.salary_id})")
            return existing

        if not self._users.get_by_id(user_id):
            raise UserNotFound("User not found")

        summary = self._attendance.get_attendance_summary(user_id, month_num, int(year))
        figures = self._calculator.compute(
            base_salary=summary.user.base_salary,
            working_days=summary.working_days,
            half_days=summary.half_days,
            absent_days=summary.absent_days,
        )

        record, created = self._salaries.create_if_absent(
            SalaryRecord(
                salary_id=0,
                user_id=user_id,
                month=month,
                year=int(year),
                base_salary=figures.base_salary,
                working_days=summary.working_days,
                present_days=summary.present_days,
                half_days=summary.half_days,
                absent_days=summary.absent_days,
                attendance_percentage=summary.attendance_percentage,
                salary_deduction=figures.salary_deduction,
                final_salary=figures.final_salary,
                is_processed=True,
                processed_at=self._clock().replace(microsecond=0),
            )
        )
        if created:
            logger.info(
                f"Salary for user {user_id} {month}: base={record.base_salary} "
                f"deduction={record.salary_deduction} final={record.final_salary}"
            )
        else:
            logger.info(f"Salary for user {user_id} {month} was processed concurrently; returning stored record")
        return record

    def get_salary_records(
        self,
        *,
        page: int | None = None,
        limit: int | None = None,
        month: str | None = None,
        year: int | None = None,
        department: str | None = None,
        user_id: int | None = None,
    ) -> Page[SalaryListRow]:
        return self._salaries.page(
            PageRequest.of(page, limit),
            month=month,
            year=year,
            department=department,
            user_id=user_id,
        )

    def get_user_salary_history(self, user_id: int, *, page: int | None = None, limit: int | None = None) -> Page[SalaryListRow]:
        return self.get_salary_records(page=page, limit=limit, user_id=user_id)

    def get_salary_by_id(self, salary_id: int, requesting_user_id: Optional[int] = None) -> SalaryRecord:
        record = self._salaries.get_by_id(salary_id)
        if not record:
            raise SalaryRecordNotFound("Salary record not found")
        if requesting_user_id is not None and record.user_id != requesting_user_id:
            raise Forbidden("Access denied to this salary record")
        return record

    def get_salary_summary(self, *, month: str | None = None, year: int | None = None) -> SalarySummary:
        rows = list(self._salaries.list_for_summary(month=month, year=year))

        by_department: dict = defaultdict(lambda: {"users": set(), "base": 0.0, "final": 0.0, "deductions": 0.0})
        for row in rows:
            stats = by_department[row.department]
            stats["users"].add(row.record.user_id)
            stats["base"] += row.record.base_salary
            stats["final"] += row.record.final_salary
            stats["deductions"] += row.record.salary_deduction

        breakdown = [
            DepartmentSalaryStats(
                department=department,
                employee_count=len(stats["users"]),
                total_base_salary=round2(stats["base"]),
                total_final_salary=round2(stats["final"]),
                total_deductions=round2(stats["deductions"]),
            )
            for department, stats in by_department.items()
        ]
        breakdown.sort(key=lambda d: d.department or "")

        total = len(rows)
        return SalarySummary(
            month=month,
            year=year,
            total_records=total,
            total_base_salary=round2(sum(r.record.base_salary for r in rows)),
            total_final_salary=round2(sum(r.record.final_salary for r in rows)),
            total_deductions=round2(sum(r.record.salary_deduction for r in rows)),
            average_attendance=round2(sum(r.record.attendance_percentage for r in rows) / total) if total else 0.0,
            department_breakdown=breakdown,
        )
