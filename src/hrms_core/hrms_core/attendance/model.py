from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from ..core.enums import AttendanceStatus
from ..payroll.calculator.base import SalaryFigures
from ..users.model import User


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one user's attendance for one calendar day."""

    attendance_id: int
    user_id: int
    work_date: date
    check_in_time: datetime
    check_out_time: Optional[datetime]
    work_hours: float
    status: AttendanceStatus

    @property
    def is_open(self) -> bool:
        return self.check_out_time is None


@dataclass(frozen=True)
class AttendanceListRow:
    """Read-model for admin listings (joined with the user)."""

    record: AttendanceRecord
    full_name: str
    email: str
    department: Optional[str]


@dataclass(frozen=True)
class AttendanceSummary:
    user: User
    month: int
    year: int
    working_days: int
    present_days: int
    half_days: int
    absent_days: int
    total_work_hours: float
    attendance_percentage: float
    salary: SalaryFigures
    records: List[AttendanceRecord] = field(default_factory=list)
