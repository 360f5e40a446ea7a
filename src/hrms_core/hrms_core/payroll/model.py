from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass(frozen=True)
class SalaryRecord:
    """Processed monthly compensation. Immutable once stored."""

    salary_id: int
    user_id: int
    month: str
    year: int
    base_salary: float
    working_days: int
    present_days: int
    half_days: int
    absent_days: int
    attendance_percentage: float
    salary_deduction: float
    final_salary: float
    is_processed: bool
    processed_at: Optional[datetime]


@dataclass(frozen=True)
class SalaryListRow:
    record: SalaryRecord
    full_name: str
    email: str
    department: Optional[str]


@dataclass(frozen=True)
class DepartmentSalaryStats:
    department: Optional[str]
    employee_count: int
    total_base_salary: float
    total_final_salary: float
    total_deductions: float


@dataclass(frozen=True)
class SalarySummary:
    month: Optional[str]
    year: Optional[int]
    total_records: int
    total_base_salary: float
    total_final_salary: float
    total_deductions: float
    average_attendance: float
    department_breakdown: List[DepartmentSalaryStats] = field(default_factory=list)


@dataclass(frozen=True)
class BulkPayrollItem:
    user_id: int
    user_name: str
    status: str
    salary: Optional[SalaryRecord] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "success"


@dataclass(frozen=True)
class BulkPayrollReport:
    month: str
    year: int
    total_users: int
    successful: int
    failed: int
    results: List[BulkPayrollItem] = field(default_factory=list)
    errors: List[BulkPayrollItem] = field(default_factory=list)
