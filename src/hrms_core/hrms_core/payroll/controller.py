from __future__ import annotations

from typing import Optional

from ..core.enums import Role
from ..core.policy import Caller, authorize, scoped_department, scoped_user_id
from .bulk import BulkPayrollRunner
from .model import BulkPayrollItem, BulkPayrollReport, SalaryListRow, SalaryRecord, SalarySummary
from .service import PayrollCalculator


def salary_to_dict(s: SalaryRecord) -> dict:
    return {
        "id": s.salary_id,
        "user_id": s.user_id,
        "month": s.month,
        "year": s.year,
        "base_salary": s.base_salary,
        "working_days": s.working_days,
        "present_days": s.present_days,
        "half_days": s.half_days,
        "absent_days": s.absent_days,
        "attendance_percentage": s.attendance_percentage,
        "salary_deduction": s.salary_deduction,
        "final_salary": s.final_salary,
        "is_processed": s.is_processed,
        "processed_at": s.processed_at.isoformat() if s.processed_at else None,
    }


def _list_row_to_dict(row: SalaryListRow) -> dict:
    out = salary_to_dict(row.record)
    out["user"] = {"id": row.record.user_id, "name": row.full_name, "email": row.email, "department": row.department}
    return out


def _item_to_dict(item: BulkPayrollItem) -> dict:
    out = {"user_id": item.user_id, "user_name": item.user_name, "status": item.status}
    if item.ok:
        out["salary"] = salary_to_dict(item.salary)
    else:
        out["error"] = item.error
    return out


def report_to_dict(r: BulkPayrollReport) -> dict:
    return {
        "month": r.month,
        "year": r.year,
        "total_users": r.total_users,
        "successful": r.successful,
        "failed": r.failed,
        "results": [_item_to_dict(i) for i in r.results],
        "errors": [_item_to_dict(i) for i in r.errors],
    }


def _summary_to_dict(s: SalarySummary) -> dict:
    return {
        "month": s.month,
        "year": s.year,
        "summary": {
            "total_records": s.total_records,
            "total_base_salary": s.total_base_salary,
            "total_final_salary": s.total_final_salary,
            "total_deductions": s.total_deductions,
            "average_attendance": s.average_attendance,
        },
        "department_breakdown": [
            {
                "department": d.department,
                "employee_count": d.employee_count,
                "total_base_salary": d.total_base_salary,
                "total_final_salary": d.total_final_salary,
                "total_deductions": d.total_deductions,
            }
            for d in s.department_breakdown
        ],
    }


class PayrollController:
    def __init__(self, payroll: PayrollCalculator, bulk: BulkPayrollRunner):
        self._payroll = payroll
        self._bulk = bulk

    def calculate(self, caller: Caller, user_id: int, *, month: str, year: int) -> dict:
        authorize(caller.role, Role.ADMIN)
        return salary_to_dict(self._payroll.calculate_salary(int(user_id), month, int(year)))

    def calculate_bulk(self, caller: Caller, *, month: str, year: int) -> dict:
        authorize(caller.role, Role.ADMIN)
        return report_to_dict(self._bulk.calculate_bulk_salary(month, int(year)))

    def records(
        self,
        caller: Caller,
        *,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        month: Optional[str] = None,
        year: Optional[int] = None,
        department: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> dict:
        result = self._payroll.get_salary_records(
            page=page,
            limit=limit,
            month=month,
            year=year,
            department=scoped_department(caller, department),
            user_id=scoped_user_id(caller, user_id),
        )
        return {"salaries": [_list_row_to_dict(r) for r in result.items], "pagination": result.pagination()}

    def summary(self, caller: Caller, *, month: Optional[str] = None, year: Optional[int] = None) -> dict:
        authorize(caller.role, Role.ADMIN)
        return _summary_to_dict(self._payroll.get_salary_summary(month=month, year=year))

    def by_id(self, caller: Caller, salary_id: int) -> dict:
        owner = None if caller.is_admin else caller.user_id
        return salary_to_dict(self._payroll.get_salary_by_id(int(salary_id), owner))

    def history(
        self,
        caller: Caller,
        *,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> dict:
        target = scoped_user_id(caller, user_id) or caller.user_id
        result = self._payroll.get_user_salary_history(target, page=page, limit=limit)
        return {"salaries": [_list_row_to_dict(r) for r in result.items], "pagination": result.pagination()}
